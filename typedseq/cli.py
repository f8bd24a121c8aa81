from __future__ import annotations

from abc import ABCMeta, abstractmethod
import argparse
from importlib import metadata
import inspect
import logging
import re
import shlex
from typing import (
    Callable,
    ClassVar,
    Final,
    Iterable,
    Iterator,
    KeysView,
    List,
    NoReturn,
    Optional,
    Sequence,
    Tuple,
    Type,
)

from prompt_toolkit import PromptSession
from prompt_toolkit.document import Document
from prompt_toolkit.validation import Validator, ValidationError
from tabulate import tabulate

from typedseq.coercion import compile_pattern
from typedseq.core import TypedSequence


logger = logging.getLogger(__name__)


# Constants
PROGRAM_NAME: Final[str] = "typedseq"
PROMPT_MESSAGE: Final[str] = "> "
DEFAULT_LOG_LEVEL: Final[str] = "WARNING"
LOG_LEVELS: Final[Tuple[str, ...]] = (
    "CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG",
)

INSPECTOR_HELP: Final[str] = """
# HELP

Inspector of `TypedSequence` operations.

The values given on the command line form the current sequence.
Type a command to apply an operation to it. Quoting works like in
a shell, so patterns with spaces have to be quoted.
"""


# =============
# Run inspector
# =============


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level)

    inspector = Inspector(TypedSequence(args.values))
    logger.debug("Inspecting %r", inspector.sequence)

    print(starting_header(program_version()))
    run_inspector(inspector)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="Try TypedSequence operations on given values.",
    )
    parser.add_argument(
        "values",
        nargs="*",
        help="elements of the inspected sequence",
    )
    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        type=str.upper,
        choices=LOG_LEVELS,
        help=f"logging level (default: {DEFAULT_LOG_LEVEL})",
    )
    return parser.parse_args(argv)


def program_version() -> str:
    return f" {PROGRAM_NAME} v{metadata.version(PROGRAM_NAME)} "


def starting_header(title: str) -> str:
    line = "=" * len(title)
    return f"{line}\n{title}\n{line}"


def run_inspector(inspector: Inspector) -> None:
    for cmd_line in command_getter(inspector.commands):
        try:
            process_command(cmd_line, inspector.commands)
        except QuitInspector:
            return


# =========
# Inspector
# =========


class InspectorException(Exception):
    """Base inspector exception class."""


class QuitInspector(InspectorException):
    """Quit inspector exception."""


class Inspector:
    """Hold the inspected sequence and the commands operating on it."""

    def __init__(self, sequence: TypedSequence) -> None:
        self.initial = sequence
        self.sequence = sequence
        self.commands = get_commands(self)


# ===========
# Main prompt
# ===========


def command_getter(commands: Commands) -> Iterator[str]:
    """Take command lines from user until EOF."""
    session: PromptSession[str] = PromptSession(
        validator=CommandValidator(commands),
        validate_while_typing=False,
    )
    while True:
        try:
            input_ = session.prompt(PROMPT_MESSAGE)
        except EOFError:
            return
        except KeyboardInterrupt:
            continue

        if input_.strip():
            yield input_


def process_command(cmd_line: str, commands: Commands) -> None:
    if not cmd_line.strip():
        print("Type 'help' to get available commands")
        return

    cmd_name, *args = shlex.split(cmd_line)
    try:
        command = commands[cmd_name]
    except KeyError:
        print(f"No command '{cmd_name}'")
        return
    command.parse_args(args)


def validate_command(cmd_line: str, commands: Commands) -> None:
    """Validate command line string. Can raise `ValueError`."""
    words = shlex.split(cmd_line)
    if not words:
        return

    cmd_name, *args = words
    if cmd_name not in commands:
        raise ValueError(f"No command '{cmd_name}'")
    commands[cmd_name].validate_args(args)


class CommandValidator(Validator):

    def __init__(self, commands: Commands) -> None:
        self.commands = commands

    def validate(self, document: Document) -> None:
        try:
            validate_command(document.text, self.commands)
        except ValueError as err:
            raise ValidationError(
                message=str(err),
                cursor_position=document.cursor_position,
            ) from err


# ======
# Tables
# ======


def commands_table(commands: Commands) -> str:
    return tabulate(
        [
            (cmd.name, cmd.shorthand or "-", cmd.summary)
            for cmd in commands
        ],
        headers=("Command", "Short", "Description"),
        colalign=("left", "center", "left"),
    )


# ========
# Commands
# ========


class Command(metaclass=ABCMeta):
    """Command abstract class."""

    shorthand: ClassVar[Optional[str]] = None

    def __init__(self, inspector: Inspector) -> None:
        self.inspector = inspector
        self.args_range = get_args_lims(self.execute)

    def validate_args(self, args: List[str]) -> None:
        """Check number of arguments and their values.

        Can raise `ValueError`.
        """
        min_, max_ = self.args_range

        if not min_ <= len(args) <= max_:
            if min_ == max_:
                raise ValueError(
                    f"'{self.name}' command get {min_} arguments. "
                    f"{len(args)} was given."
                )
            raise ValueError(
                f"'{self.name}' command get between {min_} and {max_} "
                f"arguments. {len(args)} was given."
            )
        self.validate(*args)

    def parse_args(self, args: List[str]) -> None:
        """Execute command if arguments are valid. Otherwise print why not."""
        try:
            self.validate_args(args)
        except ValueError as err:
            print(err)
            return
        self.execute(*args)

    def validate(self, *args: str) -> None:
        """Validate argument values. Can raise `ValueError`."""

    @property
    def summary(self) -> str:
        doc = inspect.getdoc(self)
        if doc is None:
            return ""
        *_, last_paragraph = doc.split("\n\n")
        return " ".join(last_paragraph.split())

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def execute(self):
        """Execute command by parsing `str` type arguments."""


def get_args_lims(func: Callable) -> Tuple[int, float]:
    params = inspect.signature(func).parameters.values()
    min_, max_ = 0, 0
    for param in params:
        if param.kind is inspect.Parameter.POSITIONAL_OR_KEYWORD:
            if param.default is inspect.Parameter.empty:
                min_ += 1
            max_ += 1
        elif param.kind is inspect.Parameter.VAR_POSITIONAL:
            return min_, float("inf")
    return min_, max_


class Commands:
    """Store `Command`'s and let take it by name or shorthand."""

    def __init__(self, cmds: Iterable[Command]) -> None:
        self.data = data = tuple(cmds)
        self.by_name = {cmd.name: cmd for cmd in data}
        self.by_shorthand = {
            cmd.shorthand: cmd
            for cmd in data
            if cmd.shorthand
        }

    def __iter__(self) -> Iterator[Command]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, key: str) -> Command:
        """Return Command by given name or shorthand."""
        try:
            return self.by_shorthand[key]
        except KeyError:
            return self.by_name[key]

    def __contains__(self, key: object) -> bool:
        return key in self.by_name or key in self.by_shorthand

    @property
    def names(self) -> KeysView[str]:
        return self.by_name.keys()


def get_commands(
        inspector: Inspector,
        *,
        command_classes: Optional[Iterable[Type[Command]]] = None,
) -> Commands:
    command_classes = (
        command_classes
        if command_classes is not None
        else Command.__subclasses__()
    )
    return Commands(
        command_cls(inspector)
        for command_cls in command_classes
    )


class HelpCmd(Command):
    """
    h[elp] [{command}]

        Show help about {command}. Without it list all commands.
    """

    name = "help"
    shorthand = "h"

    def execute(self, arg: str = "") -> None:
        commands = self.inspector.commands

        if not arg:
            print(INSPECTOR_HELP)
            print(commands_table(commands))
        elif arg in commands:
            cmd = commands[arg]
            doc = inspect.getdoc(cmd)
            if doc is not None:
                print(doc)
            else:
                print(f"Command '{cmd.name}' don't have documentation")
        else:
            print(f"No command '{arg}'")


class ShowCmd(Command):
    """
    s[how]

        Show current sequence.
    """

    name = "show"
    shorthand = "s"

    def execute(self) -> None:
        if not self.inspector.sequence:
            print("Sequence is empty")
            return
        print(self.inspector.sequence.to_table())


class IntCmd(Command):
    """
    i[nt]

        Show elements mapped as integers.
    """

    name = "int"
    shorthand = "i"

    def execute(self) -> None:
        print(self.inspector.sequence.map_integer())


class StrCmd(Command):
    """
    st[r] [{pattern}]

        Show elements mapped as strings, only matching {pattern} if given.
    """

    name = "str"
    shorthand = "st"

    def validate(self, pattern: str = "") -> None:
        if not pattern:
            return
        try:
            compile_pattern(pattern)
        except re.error as err:
            raise ValueError(f"Invalid pattern: {err}") from err

    def execute(self, pattern: str = "") -> None:
        print(self.inspector.sequence.map_string(pattern or None))


class CompressCmd(Command):
    """
    c[ompress]

        Remove loose-falsy elements from current sequence.
    """

    name = "compress"
    shorthand = "c"

    def execute(self) -> None:
        before = len(self.inspector.sequence)
        self.inspector.sequence = self.inspector.sequence.compress()
        print(f"Removed {before - len(self.inspector.sequence)} elements")


class FirstCmd(Command):
    """
    f[irst]

        Show first element.
    """

    name = "first"
    shorthand = "f"

    def execute(self) -> None:
        print(repr(self.inspector.sequence.first()))


class LastCmd(Command):
    """
    l[ast]

        Show last element.
    """

    name = "last"
    shorthand = "l"

    def execute(self) -> None:
        print(repr(self.inspector.sequence.last()))


class OkCmd(Command):
    """
    ok

        Show whether all responses succeeded.
    """

    name = "ok"

    def execute(self) -> None:
        print(self.inspector.sequence.are_ok())


class ResetCmd(Command):
    """
    r[eset]

        Restore initial sequence.
    """

    name = "reset"
    shorthand = "r"

    def execute(self) -> None:
        self.inspector.sequence = self.inspector.initial


class QuitCmd(Command):
    """
    q[uit]

        Leave the inspector.
    """

    name = "quit"
    shorthand = "q"

    def execute(self) -> NoReturn:
        raise QuitInspector
