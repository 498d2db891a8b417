"""
Shell-style redirections (``<``, ``>``, ``>>``) stripped from argument lists.
"""
import logging
from dataclasses import dataclass, field
from typing import IO, List, Sequence

from .errors import MalformedCommandLine, RedirectTargetUnreadable, RedirectTargetUnwritable

_OUTPUT_MODES = {'>': 'wb', '>>': 'ab'}


@dataclass
class ParsedRedirect:
    """Streams for a child process plus the arguments left after redirections."""
    stdin: IO
    stdout: IO
    args: List[str] = field(default_factory=list)
    close_stdin: bool = False
    close_stdout: bool = False

    def release(self) -> None:
        """Close the handles opened by ``parse_redirects``. Safe to call twice."""
        if self.close_stdin:
            self.stdin.close()
            self.close_stdin = False
        if self.close_stdout:
            self.stdout.close()
            self.close_stdout = False

    def __enter__(self) -> "ParsedRedirect":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def parse_redirects(args: Sequence[str], stdin: IO, stdout: IO) -> ParsedRedirect:
    """Scan ``args`` once and bind ``<``/``>``/``>>`` targets to opened files.

    ``stdin``/``stdout`` are the inherited streams used when no redirection
    is present; they are never closed by the returned value.
    """
    parsed = ParsedRedirect(stdin=stdin, stdout=stdout)
    i = 0

    try:
        while i < len(args):
            token = args[i]
            if token != '<' and token not in _OUTPUT_MODES:
                parsed.args.append(token)
                i += 1
                continue

            if i + 1 >= len(args):
                raise MalformedCommandLine(" ".join(args), f"missing redirect target after '{token}'")
            target = args[i + 1]
            i += 2

            if token == '<':
                try:
                    handle = open(target, 'rb')
                except OSError as e:
                    raise RedirectTargetUnreadable(target, e.strerror or str(e)) from e
                if parsed.close_stdin:
                    parsed.stdin.close()
                parsed.stdin, parsed.close_stdin = handle, True
                logging.debug(f"  stdin < {target}")
            else:
                try:
                    handle = open(target, _OUTPUT_MODES[token])
                except OSError as e:
                    raise RedirectTargetUnwritable(target, e.strerror or str(e)) from e
                if parsed.close_stdout:
                    parsed.stdout.close()
                parsed.stdout, parsed.close_stdout = handle, True
                logging.debug(f"  stdout {token} {target}")
    except Exception:
        parsed.release()
        raise

    return parsed
