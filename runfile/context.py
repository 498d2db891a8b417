"""
Process-wide state shared by the resolver and the runner.
"""
import shutil
import sys
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, TextIO

from .environment import EnvStorage


class LookupCache:
    """Remembers executable lookups so repeated runs skip the PATH walk."""

    def __init__(self):
        self._found: Dict[str, Optional[str]] = {}
        self._lock = threading.Lock()

    def lookup(self, program: str) -> Optional[str]:
        """Return the resolved path of ``program`` or None if it is not on PATH."""
        with self._lock:
            if program not in self._found:
                self._found[program] = shutil.which(program)
            return self._found[program]

    def __contains__(self, program: str) -> bool:
        with self._lock:
            return program in self._found


@dataclass
class RunContext:
    """Owns the env storage, lookup cache and standard streams for one run."""
    env: EnvStorage = field(default_factory=EnvStorage)
    lookup_cache: LookupCache = field(default_factory=LookupCache)
    in_stream: TextIO = field(default_factory=lambda: sys.stdin)
    out_stream: TextIO = field(default_factory=lambda: sys.stdout)
    err_stream: TextIO = field(default_factory=lambda: sys.stderr)
