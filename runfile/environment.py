"""
Key/value environment storage used by the resolver and runner.
"""
import os
from typing import Dict, Optional

VERBOSE_VAR = "RUNFILE_VERBOSE"
NAME_VAR = "RUNFILE_NAME"
GLOBAL_PATH_VAR = "RUNFILE_GLOBAL_PATH"

_TRUTHY = {"1", "true", "yes", "on"}


class EnvStorage:
    """Environment storage backed by the process environment.

    Values set here are inherited by every child process started afterwards.
    """

    def get(self, name: str) -> str:
        return os.environ.get(name, "")

    def set(self, name: str, value: str) -> None:
        os.environ[name] = value

    def is_true(self, name: str) -> bool:
        return self.get(name).strip().lower() in _TRUTHY

    def all(self) -> Dict[str, str]:
        return dict(os.environ)


class FakeEnvStorage(EnvStorage):
    """In-memory storage for tests; never touches ``os.environ``."""

    def __init__(self, envs: Optional[Dict[str, str]] = None):
        self.envs: Dict[str, str] = dict(envs or {})

    def get(self, name: str) -> str:
        return self.envs.get(name, "")

    def set(self, name: str, value: str) -> None:
        self.envs[name] = value

    def all(self) -> Dict[str, str]:
        return dict(self.envs)
