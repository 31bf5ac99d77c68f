"""Exceptions raised while parsing chart DSL tokens.

Every parse failure is a :exc:`ChartSyntaxError` (a :exc:`SyntaxError`
subclass), so callers can catch the whole family with one ``except`` clause
or pick out a specific kind:

:class:`ArityError`
    A recognized command is not followed by enough tokens.
:class:`MalformedNumberError`
    A number was expected but the token does not parse as one.
:class:`InvalidVocabularyError`
    A mandatory attribute got a keyword outside its vocabulary.
:class:`MissingBinningError`
    ``BIN`` was followed by neither a boolean nor any binning attribute.
:class:`MarkAlreadySetError`
    A second ``MARK`` tried to change the chart's mark.
:class:`TrailingTokensError`
    Parsing stopped before the end of the token stream.
"""

from __future__ import annotations


class ChartSyntaxError(SyntaxError):
    """Base class for all chart DSL parse errors."""


class ArityError(ChartSyntaxError):
    """A command is missing some of its required trailing tokens."""


class MalformedNumberError(ChartSyntaxError):
    """A token that should be numeric is not."""


class InvalidVocabularyError(ChartSyntaxError):
    """A token does not match any keyword accepted by a mandatory attribute."""


class MissingBinningError(ChartSyntaxError):
    """``BIN`` produced neither a flag nor a binning configuration."""


class MarkAlreadySetError(ChartSyntaxError):
    """The chart's mark was already selected earlier in the same parse."""


class TrailingTokensError(ChartSyntaxError):
    """The top-level parser returned before consuming every token."""
