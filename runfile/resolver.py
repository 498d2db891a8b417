"""
Looks up scripts across the config files of every registered lookup path.
"""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .command import BuiltCommand
from .config import ConfigFile, find_config_file
from .context import RunContext
from .errors import ConfigNotFound, MultipleDefinedScript, ScriptNotFound

_VARIABLE = re.compile(r'\$\{([^}]+)\}')


@dataclass
class ResolvedScript:
    """Commands of a script plus where they came from."""
    name: str
    source: Path
    commands: List[BuiltCommand] = field(default_factory=list)
    duplicates: List[Path] = field(default_factory=list)

    @property
    def multiple_defined(self) -> Optional[MultipleDefinedScript]:
        if not self.duplicates:
            return None
        return MultipleDefinedScript(self.name, self.source, self.duplicates)


class ScriptResolver:
    """Resolves script names against config files, first registered file wins."""

    def __init__(self, context: Optional[RunContext] = None):
        self.context = context or RunContext()
        self.target_files: List[Path] = []
        self._parsed: Dict[Path, ConfigFile] = {}

    def add_lookup_path(self, directory) -> Path:
        """Register the config file found in ``directory``.

        Raises ConfigNotFound when the directory holds no recognized file.
        Registering a file that is already registered does nothing.
        """
        found = find_config_file(Path(directory))
        if found is None:
            raise ConfigNotFound(Path(directory))

        config_path = found.resolve()
        if config_path not in self.target_files:
            self.target_files.append(config_path)
            logging.debug(f"Registered config file: {config_path}")
        return config_path

    def resolve(self, script: str) -> ResolvedScript:
        """Build the commands of ``script`` from the first file that defines it."""
        resolved: Optional[ResolvedScript] = None

        for config in self._configs():
            if not config.has_script(script):
                continue
            if resolved is None:
                resolved = ResolvedScript(
                    name=script,
                    source=config.path,
                    commands=config.commands(script, self.context.env),
                )
            else:
                resolved.duplicates.append(config.path)

        if resolved is None:
            raise ScriptNotFound(script)

        for command in resolved.commands:
            logging.debug(f"  {script}: {command}")
        return resolved

    def list_scripts(self, prefix: str = "") -> List[str]:
        """Sorted, de-duplicated script names starting with ``prefix``."""
        names = set()
        for config in self._configs():
            names.update(name for name in config.scripts if name.startswith(prefix))
        return sorted(names)

    def lookup_variables(self, script: str) -> List[str]:
        """Names referenced as ``${NAME}`` by every definition of ``script``.

        Advisory: returns an empty list when nothing is registered.
        """
        if not self.target_files:
            return []

        variables: List[str] = []
        for config in self._configs():
            if not config.has_script(script):
                continue
            value = config.scripts[script]
            raw_lines = [value] if isinstance(value, str) else value if isinstance(value, list) else []
            for line in raw_lines:
                if not isinstance(line, str):
                    continue
                for name in _VARIABLE.findall(line):
                    if name not in variables:
                        variables.append(name)
        return variables

    def _configs(self) -> List[ConfigFile]:
        if not self.target_files:
            raise ConfigNotFound()

        configs = []
        for path in self.target_files:
            if path not in self._parsed:
                self._parsed[path] = ConfigFile.load(path)
            configs.append(self._parsed[path])
        return configs
