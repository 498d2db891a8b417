"""
runfile.yml documents: a ``scripts`` mapping from script name to a command
line or a list of command lines.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .command import BuiltCommand, parse_command
from .environment import EnvStorage
from .errors import InvalidConfigFile, InvalidScriptShape

CONFIG_FILENAMES = ("runfile.yml", "runfile.yaml")


def find_config_file(directory: Path) -> Optional[Path]:
    """Return the first recognized config file in ``directory``, if any."""
    for name in CONFIG_FILENAMES:
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None


@dataclass
class ConfigFile:
    """Parsed representation of one config file."""
    path: Optional[Path] = None
    scripts: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "ConfigFile":
        path = Path(path)
        try:
            with path.open('r') as f:
                document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidConfigFile(path, str(e)) from e

        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise InvalidConfigFile(path, "expected a mapping at the top level")

        scripts = document.get('scripts') or {}
        if not isinstance(scripts, dict):
            raise InvalidConfigFile(path, "'scripts' must be a mapping")

        return cls(path=path, scripts={str(name): value for name, value in scripts.items()})

    def has_script(self, script: str) -> bool:
        return script in self.scripts

    def lines(self, script: str) -> List[str]:
        """Raw command lines of ``script``, before any expansion."""
        value = self.scripts[script]
        if isinstance(value, str):
            return [value]
        if isinstance(value, list) and all(isinstance(line, str) for line in value):
            return list(value)
        raise InvalidScriptShape(script)

    def commands(self, script: str, env: Optional[EnvStorage] = None) -> List[BuiltCommand]:
        return [parse_command(line, env) for line in self.lines(script)]

    def set_script(self, script: str, commands: Sequence[str]) -> None:
        """Store ``commands`` under ``script``; a single command is kept as a string."""
        if not commands:
            return
        self.scripts[script] = commands[0] if len(commands) == 1 else list(commands)

    def to_yaml(self) -> str:
        return yaml.safe_dump({'scripts': self.scripts}, default_flow_style=False, sort_keys=False)
