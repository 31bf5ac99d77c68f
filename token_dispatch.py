"""Generic token-dispatch engine used by every chart DSL sub-parser.

A :class:`TokenParser` subclass declares a command table mapping
case-insensitive command names to :class:`FixedCommand` or
:class:`RangedCommand` entries, and optionally overrides
:meth:`TokenParser.preamble` to consume positional tokens before the table
takes over.  :meth:`TokenParser.loop` then walks the token stream from a
cursor and returns the position of the first token it could not handle, so
a sub-parser hands control back to its caller as soon as it meets a token
outside its own vocabulary::

    class SizeParser(TokenParser):
        def __init__(self, tokens, target):
            self.target = target
            super().__init__(tokens)

        def command_table(self):
            return {"WIDTH": FixedCommand(self._parse_width)}

        def _parse_width(self, token):
            self.target.width = int(token)

    cursor = SizeParser(["WIDTH", "400", "HEIGHT"], chart).loop()
    # cursor == 2: HEIGHT is left for the caller

The module also holds the case-insensitive matching helpers
(:func:`normalize`, :func:`match_one_of`, :func:`match_bool`,
:func:`match_keyword`) and the type-directed variant dispatch used to set
attributes shared by unrelated mark classes (:func:`visit_variant`,
:func:`visitors_for`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

from chart_errors import ArityError

logger = logging.getLogger(__name__)

Action = Callable[[], None]


# ---------------------------------------------------------------------------
# Case-insensitive token utilities
# ---------------------------------------------------------------------------

def normalize(token: str) -> str:
    """Return the lookup form of *token* (upper-cased).

    Only ASCII tokens are folded, so ``bın`` or ``ſTEP`` never turn into a
    keyword.
    """
    return token.upper() if token.isascii() else token


def match_one_of(token: str, cases: Mapping[str, Action]) -> bool:
    """Run the action registered for *token* in *cases*.

    Keys of *cases* are upper-case keywords.  Returns ``True`` when an action
    was found and called, ``False`` otherwise.
    """
    action = cases.get(normalize(token))
    if action is None:
        return False
    action()
    return True


def match_bool(token: str, setter: Callable[[bool], None]) -> bool:
    """Call ``setter(True)`` / ``setter(False)`` for ``TRUE`` / ``FALSE``."""
    return match_one_of(token, {
        "TRUE":  lambda: setter(True),
        "FALSE": lambda: setter(False),
    })


def match_keyword(token: str, vocabulary: Mapping[str, str]) -> str | None:
    """Return the stored value for *token* in *vocabulary*, or ``None``."""
    return vocabulary.get(normalize(token))


# ---------------------------------------------------------------------------
# Type-directed variant dispatch
# ---------------------------------------------------------------------------

def visit_variant(value: Any, visitors: Mapping[type, Callable[[Any], None]]) -> bool:
    """Call the visitor registered for the exact type of *value*.

    The lookup is on ``type(value)`` only; subclasses are not matched.  When
    no visitor is registered the value is left untouched, a warning is
    logged and ``False`` is returned.
    """
    visitor = visitors.get(type(value))
    if visitor is None:
        logger.warning("Unregistered variant type %r", type(value).__name__)
        return False
    visitor(value)
    return True


def visitors_for(
    kinds: Iterable[type], visitor: Callable[[Any], None]
) -> dict[type, Callable[[Any], None]]:
    """Register the same *visitor* for every type in *kinds*."""
    return {kind: visitor for kind in kinds}


# ---------------------------------------------------------------------------
# Command table entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FixedCommand:
    """A command taking exactly one argument token.

    The handler receives that token; the engine always resumes right after
    it.
    """

    handler: Callable[[str], None]
    min_args: int = 1

    def run(self, tokens: Sequence[str], cursor: int, end: int) -> int:
        self.handler(tokens[cursor])
        return cursor + 1


@dataclass(frozen=True)
class RangedCommand:
    """A command that decides itself how many tokens to consume.

    The handler receives ``(cursor, end)`` where *cursor* points at the
    first token after the command name, and returns the resume position.
    """

    handler: Callable[[int, int], int]
    min_args: int = 1

    def run(self, tokens: Sequence[str], cursor: int, end: int) -> int:
        return self.handler(cursor, end)


Command = Union[FixedCommand, RangedCommand]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TokenParser:
    """Base class of the table-driven sub-parsers.

    Attributes:
        tokens: The token stream.  It is never mutated; only cursors move.
        commands: Normalized command name -> command entry.
    """

    def __init__(self, tokens: Sequence[str]) -> None:
        self.tokens = tokens
        self.commands: dict[str, Command] = {}
        for name, command in self.command_table().items():
            key = normalize(name)
            if key in self.commands:
                raise ValueError(
                    f"{self.__class__.__name__}: duplicate command '{name}'"
                )
            self.commands[key] = command

    def command_table(self) -> dict[str, Command]:
        """Return the command table of this parser."""
        return {}

    def preamble(self, cursor: int, end: int) -> int:
        """Consume positional tokens before command dispatch starts.

        The default consumes nothing.
        """
        return cursor

    def step(self, cursor: int, end: int) -> int:
        """Parse the command at *cursor* and its arguments.

        Returns the position after the last consumed token, or *cursor*
        unchanged when the token is not one of this parser's commands.

        Raises:
            ArityError: If fewer than ``min_args`` tokens follow the command.
        """
        token = self.tokens[cursor]
        logger.debug("%s: parsing %r at %d", self.__class__.__name__, token, cursor)
        command = self.commands.get(normalize(token))
        if command is None:
            return cursor

        remaining = end - (cursor + 1)
        if remaining < command.min_args:
            raise ArityError(
                f"Token {cursor}: '{token}' requires {command.min_args} "
                f"argument(s), got {remaining}."
            )
        return command.run(self.tokens, cursor + 1, end)

    def loop(self, cursor: int = 0, end: int | None = None) -> int:
        """Run the preamble, then :meth:`step` until no command applies.

        Returns the position of the first token not consumed by this parser
        (``end`` when everything was consumed).
        """
        if end is None:
            end = len(self.tokens)
        cursor = self.preamble(cursor, end)
        while cursor < end:
            next_cursor = self.step(cursor, end)
            if next_cursor == cursor:
                break
            cursor = next_cursor
        return cursor
