"""
Errors raised (or reported) while resolving and running scripts.
"""
from pathlib import Path
from typing import Optional, Sequence


class RunfileError(Exception):
    """Base class for every runfile error."""


class MalformedCommandLine(RunfileError):
    """A command line could not be lexed into a program and arguments."""

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"malformed command line {line!r}: {reason}")


class RedirectTargetUnreadable(RunfileError):
    """An input redirect target could not be opened for reading."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        super().__init__(f"cannot read redirect target '{path}'" + (f": {reason}" if reason else ""))


class RedirectTargetUnwritable(RunfileError):
    """An output redirect target could not be opened for writing."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        super().__init__(f"cannot write redirect target '{path}'" + (f": {reason}" if reason else ""))


class ExecutableNotFound(RunfileError):
    """The program is not on PATH or could not be launched."""

    exit_code = 2

    def __init__(self, program: str):
        self.program = program
        super().__init__(f"command not found: {program}")


class ConfigNotFound(RunfileError):
    """No config file exists in the lookup paths."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        if path is None:
            super().__init__("runfile.yml not found")
        else:
            super().__init__(f"runfile.yml not found in {path}")


class InvalidConfigFile(RunfileError):
    """A config file is not valid YAML or is not shaped like a runfile."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"invalid config file {path}: {reason}")


class ScriptNotFound(RunfileError):
    """No registered config file defines the script."""

    def __init__(self, script: str):
        self.script = script
        super().__init__(f"script not found: {script}")


class MultipleDefinedScript(RunfileError):
    """Advisory: the script is defined in more than one config file.

    Never raised by the resolver; handed back on the resolution result so the
    caller decides whether to warn or abort.
    """

    def __init__(self, script: str, used: Path, ignored: Sequence[Path]):
        self.script = script
        self.used = used
        self.ignored = list(ignored)
        others = ", ".join(str(p) for p in self.ignored)
        super().__init__(f"script '{script}' is defined in {used} and also in {others}")


class InvalidScriptShape(RunfileError):
    """A script is neither a string nor a list of strings."""

    def __init__(self, script: str):
        self.script = script
        super().__init__(f"failed parsing script '{script}': expected string or array of strings")


class ChildNonZeroExit(RunfileError):
    """The child exited with a non-zero status.

    ``code`` is the exact exit status to propagate. When the child was killed
    by a signal, ``signal`` holds its number and ``code`` is 128 + signal.
    """

    def __init__(self, program: str, code: int, signal: Optional[int] = None, output: str = ""):
        self.program = program
        self.code = code
        self.signal = signal
        self.output = output
        if signal is not None:
            super().__init__(f"{program} terminated by signal {signal}")
        else:
            super().__init__(f"{program} exited with status {code}")


class SignalRelayFailed(RunfileError):
    """Non-fatal; logged by the runner and never raised."""

    def __init__(self, signum: int, reason: str):
        self.signum = signum
        super().__init__(f"error sending signal {signum} to child process: {reason}")


class ExtraArgumentsNotAllowed(RunfileError):
    """Extra arguments were given to a script with several commands."""

    def __init__(self):
        super().__init__("error: you cannot pass in extra arguments to multiple commands scripts")


class PromptAborted(RunfileError):
    """Input ended before a prompt was answered."""

    def __init__(self, question: str):
        self.question = question
        super().__init__(f"no answer given to: {question}")
