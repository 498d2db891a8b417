#!/usr/bin/env python3
"""
Command-line entry point: resolves a script and runs its commands interactively.
"""
import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .context import RunContext
from .environment import GLOBAL_PATH_VAR
from .errors import ChildNonZeroExit, ConfigNotFound, ExecutableNotFound, ExtraArgumentsNotAllowed, RunfileError
from .prompt import PromptInput
from .resolver import ScriptResolver
from .runner import Runner

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)

_VARIABLE_ARG = re.compile(r'--([A-Za-z_][A-Za-z0-9_]*)=(.*)', re.DOTALL)


class ScriptRun:
    """Drives one ``runfile <script>`` invocation."""

    def __init__(self, context: Optional[RunContext] = None, resolver=None, runner=None, prompt=None):
        self.context = context or RunContext()
        self.resolver = resolver or ScriptResolver(self.context)
        self.runner = runner or Runner(self.context)
        self.prompt = prompt or PromptInput(self.context)

    def global_path(self) -> Path:
        configured = self.context.env.get(GLOBAL_PATH_VAR)
        return Path(configured).expanduser() if configured else Path.home() / ".runfile"

    def add_default_lookup_paths(self, cwd: Optional[Path] = None) -> None:
        """Register the working directory, then the global directory."""
        for directory in (cwd or Path.cwd(), self.global_path()):
            try:
                self.resolver.add_lookup_path(directory)
            except ConfigNotFound:
                logging.debug(f"No config file in {directory}")

    def is_terminal(self) -> bool:
        isatty = getattr(self.context.in_stream, "isatty", None)
        return bool(isatty and isatty())

    def bind_variables(self, script: str, args: Sequence[str]) -> List[str]:
        """Give every variable used by ``script`` a value.

        ``--NAME=value`` arguments naming a variable are consumed; other unset
        variables are asked for when running on a terminal. Returns the
        arguments that were not consumed.
        """
        variables = self.resolver.lookup_variables(script)
        remaining = []

        for arg in args:
            match = _VARIABLE_ARG.fullmatch(arg)
            if match and match.group(1) in variables:
                self.context.env.set(match.group(1), match.group(2))
            else:
                remaining.append(arg)

        if self.is_terminal():
            for name in variables:
                if self.context.env.get(name):
                    continue
                value = self.prompt.ask(f"There is no value for variable '{name}'. Please, type one:")
                self.context.env.set(name, value)

        return remaining

    def run(self, script: str, args: Sequence[str] = ()) -> None:
        """Resolve ``script`` and run each command, stopping at the first failure."""
        args = self.bind_variables(script, args)
        resolved = self.resolver.resolve(script)

        if resolved.multiple_defined:
            logging.warning("Attention: the script was found in more than one runfile.yml file")
            logging.debug(str(resolved.multiple_defined))

        if args and len(resolved.commands) > 1:
            raise ExtraArgumentsNotAllowed()

        logging.debug(f"Running {script}: {len(resolved.commands)} command(s)")
        for command in resolved.commands:
            if args:
                command.append_args(*args)
            command.interactive(self.runner)

    def list_scripts(self, prefix: str = "") -> List[str]:
        return self.resolver.list_scripts(prefix)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="runfile",
        description="Run scripts defined in runfile.yml files",
    )
    parser.add_argument("-l", "--list", nargs="?", const="", metavar="PREFIX",
                        help="list available scripts, optionally filtered by prefix")
    parser.add_argument("-d", "--debug", action="store_true", help="enable debug logging")
    parser.add_argument("script", nargs="?", help="name of the script to run")
    parser.add_argument("args", nargs=argparse.REMAINDER,
                        help="extra arguments, or --NAME=value for script variables")
    return parser


def main(argv: Optional[Sequence[str]] = None, run: Optional[ScriptRun] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    options = parser.parse_args(argv)

    if options.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    run = run or ScriptRun()
    out = run.context.out_stream

    try:
        run.add_default_lookup_paths()

        if options.list is not None:
            for name in run.list_scripts(options.list):
                print(name, file=out)
            return 0

        if not options.script:
            parser.print_usage(file=out)
            return 1

        run.run(options.script, options.args)
        return 0

    except ChildNonZeroExit as e:
        logging.debug(f"{e}")
        return e.code
    except ExecutableNotFound as e:
        logging.error(f"{e}")
        return e.exit_code
    except RunfileError as e:
        logging.error(f"{e}")
        return 1
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=options.debug)
        return 1


def entrypoint() -> None:
    sys.exit(main())


if __name__ == "__main__":
    entrypoint()
