"""
Runfile - runs named scripts defined in runfile.yml files.

This package resolves scripts across a hierarchy of config files, expands
their variables and runs the resulting commands as interactive child processes.
"""

from .command import BuiltCommand, Command, FakeCommand, parse_command
from .context import LookupCache, RunContext
from .environment import EnvStorage, FakeEnvStorage
from .redirect import ParsedRedirect, parse_redirects
from .resolver import ResolvedScript, ScriptResolver
from .runner import Runner

__version__ = "0.1.0"
__all__ = [
    "BuiltCommand",
    "Command",
    "EnvStorage",
    "FakeCommand",
    "FakeEnvStorage",
    "LookupCache",
    "ParsedRedirect",
    "ResolvedScript",
    "RunContext",
    "Runner",
    "ScriptResolver",
    "parse_command",
    "parse_redirects",
]
