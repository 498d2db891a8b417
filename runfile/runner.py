"""
Runs built commands as child processes.

``Runner.exec`` captures the combined output of short, non-interactive
commands. ``Runner.interactive`` hands the caller's terminal streams to the
child, relays every signal the runner receives until the child terminates,
and propagates the child's exact exit status.
"""
import logging
import os
import queue
import signal
import subprocess
import threading
from typing import IO, Dict, List, Optional, Sequence

from .command import BuiltCommand, Command
from .context import RunContext
from .environment import NAME_VAR, VERBOSE_VAR
from .errors import ChildNonZeroExit, ExecutableNotFound, SignalRelayFailed
from .redirect import parse_redirects

SELF_PROGRAM = "runfile"
DOCKER_COMPOSE = "docker-compose"

_UNRELAYABLE = {
    getattr(signal, name) for name in ("SIGKILL", "SIGSTOP", "SIGCHLD") if hasattr(signal, name)
}


class Runner:
    """Executes commands within a ``RunContext``."""

    def __init__(self, context: Optional[RunContext] = None):
        self.context = context or RunContext()

    def exec(self, command: Command, *extra_args: str) -> str:
        """Run ``command`` to completion and return its trimmed combined output.

        Raises ChildNonZeroExit (carrying the output) when the exit status is
        not zero, and ExecutableNotFound when the program cannot be launched.
        """
        program = command.program
        args = self._final_args(command, extra_args)
        logging.debug(f"Executing: {program} {' '.join(args)}")

        try:
            result = subprocess.run(
                [program, *args],
                env=self._child_env(),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                **_stdin_kwargs(self.context.in_stream),
            )
        except FileNotFoundError as e:
            raise ExecutableNotFound(program) from e

        output = result.stdout.decode(errors="replace").strip()
        if result.returncode != 0:
            raise _exit_error(program, result.returncode, output)
        return output

    def interactive(self, command: Command, *extra_args: str) -> None:
        """Run ``command`` attached to the caller's terminal.

        Returns None on a zero exit status; raises ChildNonZeroExit with the
        exact status otherwise.
        """
        program = command.program
        args = self._final_args(command, extra_args)

        if self.context.env.is_true(VERBOSE_VAR):
            print("$", program, " ".join(args), file=self.context.out_stream, flush=True)

        self.look_path(command)

        with parse_redirects(args, self.context.in_stream, self.context.out_stream) as redirect:
            logging.debug(f"Starting: {program} {' '.join(redirect.args)}")
            _flush(self.context.out_stream, self.context.err_stream)
            with SignalRelay() as relay:
                try:
                    process = subprocess.Popen(
                        [program, *redirect.args],
                        env=self._child_env(),
                        stdin=redirect.stdin,
                        stdout=redirect.stdout,
                        stderr=self.context.err_stream,
                    )
                except FileNotFoundError as e:
                    raise ExecutableNotFound(program) from e

                returncode = relay.wait(process)

        if returncode != 0:
            raise _exit_error(program, returncode)

    def look_path(self, command: Command) -> None:
        """Raise ExecutableNotFound unless the program can be found on PATH.

        The runner's own program and explicit paths are not looked up.
        """
        program = command.program
        if program == SELF_PROGRAM or program.startswith(("./", "../")) or os.path.isabs(program):
            return

        if self.context.lookup_cache.lookup(program) is None:
            raise ExecutableNotFound(program)

    def _final_args(self, command: Command, extra_args: Sequence[str]) -> List[str]:
        args = list(command.args)
        if command.program == DOCKER_COMPOSE:
            args = self._docker_compose_default_args() + args
        args.extend(extra_args)
        return args

    def _docker_compose_default_args(self) -> List[str]:
        name = self.context.env.get(NAME_VAR)
        return ["-p", name] if name else []

    def _child_env(self) -> Dict[str, str]:
        return {**os.environ, **self.context.env.all()}


class SignalRelay:
    """Forwards every signal the runner receives to a child process.

    Handlers are installed on enter, before the child is started. Signals
    received until ``wait`` attaches the child are queued and forwarded then.
    The previous handlers come back on exit, whatever the exit path.

    The child shares the runner's process group, so a Ctrl-C typed at the
    terminal reaches it twice: once from the terminal and once relayed.
    """

    def __init__(self):
        self.process: Optional[subprocess.Popen] = None
        self.pending: List[int] = []
        self._previous = {}

    def __enter__(self) -> "SignalRelay":
        if threading.current_thread() is not threading.main_thread():
            logging.debug("Not on the main thread; signals will not be relayed")
            return self

        for signum in signal.valid_signals():
            if signum in _UNRELAYABLE:
                continue
            try:
                self._previous[signum] = signal.signal(signum, self._handle)
            except (OSError, ValueError):
                # reserved by the C library or not catchable on this platform
                continue
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _handle(self, signum, frame) -> None:
        if self.process is None:
            self.pending.append(signum)
        else:
            self.forward(self.process, signum)

    def wait(self, process: subprocess.Popen) -> int:
        """Block until ``process`` exits, relaying signals meanwhile."""
        done: "queue.Queue[int]" = queue.Queue(maxsize=1)
        waiter = threading.Thread(
            target=lambda: done.put(process.wait()),
            name=f"wait-{process.pid}",
            daemon=True,
        )
        waiter.start()

        self.process = process
        while self.pending:
            self.forward(process, self.pending.pop(0))

        try:
            return done.get()
        finally:
            waiter.join()

    @staticmethod
    def forward(process: subprocess.Popen, signum: int) -> None:
        try:
            process.send_signal(signum)
        except ProcessLookupError:
            pass
        except OSError as e:
            logging.warning(str(SignalRelayFailed(signum, e.strerror or str(e))))


def _exit_error(program: str, returncode: int, output: str = "") -> ChildNonZeroExit:
    if returncode < 0:
        return ChildNonZeroExit(program, 128 - returncode, signal=-returncode, output=output)
    return ChildNonZeroExit(program, returncode, output=output)


def _stdin_kwargs(stream: IO) -> dict:
    """Bind ``stream`` as child stdin, feeding its contents when it has no fd."""
    try:
        stream.fileno()
    except (AttributeError, OSError):
        data = stream.read()
        return {"input": data.encode() if isinstance(data, str) else data}
    return {"stdin": stream}


def _flush(*streams: IO) -> None:
    for stream in streams:
        flush = getattr(stream, "flush", None)
        if flush is not None:
            flush()


def exec_command(program: str, *args: str) -> str:
    """Run ``program`` once with a default context and return its output."""
    return Runner().exec(BuiltCommand(program, list(args)))


def interactive(program: str, *args: str) -> None:
    """Run ``program`` once, interactively, with a default context."""
    Runner().interactive(BuiltCommand(program, list(args)))
