"""
Command values: a program name plus its ordered argument list.

Lines coming from config files go through ``parse_command``, which expands
environment variables and then splits the line into shell words.
"""
import re
import shlex
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

from .environment import EnvStorage
from .errors import MalformedCommandLine

if TYPE_CHECKING:
    from .runner import Runner

_ENV_REF = re.compile(r'\$\{([^}]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)')


@runtime_checkable
class Command(Protocol):
    """Anything the runner can execute."""

    @property
    def program(self) -> str: ...

    @property
    def args(self) -> List[str]: ...

    def append_args(self, *args: str) -> None: ...

    def __str__(self) -> str: ...


@dataclass
class BuiltCommand:
    """A command built from a line or from a pre-split argument list."""
    program: str
    args: List[str] = field(default_factory=list)

    def append_args(self, *args: str) -> None:
        self.args.extend(args)

    def __str__(self) -> str:
        return " ".join([self.program, *self.args]).strip()

    def look_path(self, runner: "Runner") -> None:
        runner.look_path(self)

    def exec(self, runner: "Runner", *extra_args: str) -> str:
        return runner.exec(self, *extra_args)

    def interactive(self, runner: "Runner", *extra_args: str) -> None:
        runner.interactive(self, *extra_args)


@dataclass
class FakeCommand:
    """Programmable stand-in for a command, used in tests."""
    mock_program: str = ""
    mock_args: List[str] = field(default_factory=list)
    mock_exec_output: str = ""
    mock_exec_error: Optional[Exception] = None
    mock_interactive_error: Optional[Exception] = None
    mock_look_path_error: Optional[Exception] = None

    called_append_args: bool = False
    args_appended: List[str] = field(default_factory=list)
    called_exec: bool = False
    called_interactive: bool = False
    called_look_path: bool = False

    @property
    def program(self) -> str:
        return self.mock_program

    @property
    def args(self) -> List[str]:
        return self.mock_args + self.args_appended

    def append_args(self, *args: str) -> None:
        self.called_append_args = True
        self.args_appended.extend(args)

    def __str__(self) -> str:
        return " ".join([self.program, *self.args]).strip()

    def look_path(self, runner: "Runner") -> None:
        self.called_look_path = True
        if self.mock_look_path_error:
            raise self.mock_look_path_error

    def exec(self, runner: "Runner", *extra_args: str) -> str:
        self.called_exec = True
        if self.mock_exec_error:
            raise self.mock_exec_error
        return self.mock_exec_output

    def interactive(self, runner: "Runner", *extra_args: str) -> None:
        self.called_interactive = True
        if self.mock_interactive_error:
            raise self.mock_interactive_error


def expand_env(line: str, env: Optional[EnvStorage] = None) -> str:
    """Replace ``$NAME`` and ``${NAME}`` with their values; unset names become empty."""
    env = env or EnvStorage()

    def replacer(match):
        return env.get(match.group(1) if match.group(1) is not None else match.group(2))

    return _ENV_REF.sub(replacer, line)


def parse_command(line: str, env: Optional[EnvStorage] = None) -> BuiltCommand:
    """Expand environment variables in ``line`` and split it into a command."""
    expanded = expand_env(line, env)
    try:
        words = shlex.split(expanded)
    except ValueError as e:
        raise MalformedCommandLine(line, str(e)) from e

    if not words:
        raise MalformedCommandLine(line, "empty command")

    return BuiltCommand(program=words[0], args=words[1:])
