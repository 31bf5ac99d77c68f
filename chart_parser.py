"""Parser for the chart DSL.

Turns an already-split token stream into a populated
:class:`~chart_spec.ChartSpec`.  The work is shared by four table-driven
sub-parsers built on :class:`~token_dispatch.TokenParser`:

:class:`ChartParser`
    Top level: ``WIDTH``, ``HEIGHT``, ``X_FIELD``, ``Y_FIELD``, ``MARK``,
    ``GRID``, ``TITLE``.
:class:`FieldParser`
    One axis encoding: ``<field> [TYPE t] [BIN ...] [AGGREGATE a]
    [TIME_UNIT u]``.
:class:`BinParser`
    Binning options after ``BIN``: ``ANCHOR``, ``BASE``, ``BINNED``,
    ``MAXBINS``, ``MINSTEP``, ``NICE``, ``STEP``, ``EXTENT``, ``DIVIDE``,
    ``STEPS``.
:class:`MarkParser`
    ``<kind> [COLOR c]`` with kind one of ARC, AREA, BAR, CIRCLE, LINE,
    POINT, RECT, RULE, SQUARE, TICK, TRAIL.

Keywords are case-insensitive.  A sub-parser stops at the first token it
does not know and hands it back to its caller, so
``X_FIELD sales TYPE NOMINAL MARK BAR`` switches from the field parser back
to the chart parser at ``MARK``.

Example::

    spec = parse_chart(
        "MARK BAR COLOR RED X_FIELD sales BIN MAXBINS 20".split(), df
    )
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Sequence

from chart_errors import (
    InvalidVocabularyError,
    MalformedNumberError,
    MarkAlreadySetError,
    MissingBinningError,
    TrailingTokensError,
)
from chart_spec import (
    AGGREGATES,
    DEFAULT_AXIS_GRID,
    DEFAULT_FIELD_TYPE,
    FIELD_TYPES,
    MARK_KINDS,
    TIME_UNITS,
    AxisConfig,
    Bin,
    ChartSpec,
    Config,
    Encoding,
)
from token_dispatch import (
    FixedCommand,
    RangedCommand,
    TokenParser,
    match_bool,
    match_keyword,
    normalize,
    visit_variant,
    visitors_for,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Number helpers
# ---------------------------------------------------------------------------

# Plain ASCII decimals only: no nan/inf, no '_' separators.
_DECIMAL_RE = re.compile(r'[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')
_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


def _is_number(token: str) -> bool:
    return bool(_DECIMAL_RE.fullmatch(token)) and math.isfinite(float(token))


def _is_float_like(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _parse_float(token: str, command: str) -> float:
    if not _is_number(token):
        raise MalformedNumberError(
            f"'{command}' requires a finite number, got '{token}'. "
            f"Example: {command} 10"
        )
    return float(token)


def _parse_int(token: str, command: str) -> int:
    if not _INTEGER_RE.fullmatch(token):
        raise MalformedNumberError(
            f"'{command}' requires an integer, got '{token}'. "
            f"Example: {command} 400"
        )
    return int(token)


# ---------------------------------------------------------------------------
# Binning
# ---------------------------------------------------------------------------

class BinParser(TokenParser):
    """Fill a :class:`~chart_spec.Bin` from the tokens following ``BIN``.

    ``num_parsed`` counts the attributes actually set, which lets
    :class:`FieldParser` tell a missing configuration from a present one.
    An unrecognized ``BINNED``/``NICE`` value is ignored and not counted.
    """

    def __init__(self, tokens: Sequence[str], bin_config: Bin) -> None:
        self.bin = bin_config
        self.num_parsed = 0
        super().__init__(tokens)

    def command_table(self):
        return {
            "ANCHOR":  FixedCommand(self._number_setter("anchor")),
            "BASE":    FixedCommand(self._number_setter("base")),
            "BINNED":  FixedCommand(self._flag_setter("binned")),
            "MAXBINS": FixedCommand(self._number_setter("maxbins")),
            "MINSTEP": FixedCommand(self._number_setter("minstep")),
            "NICE":    FixedCommand(self._flag_setter("nice")),
            "STEP":    FixedCommand(self._number_setter("step")),
            "EXTENT":  RangedCommand(self._parse_extent, min_args=2),
            "DIVIDE":  RangedCommand(self._number_list_setter("divide")),
            "STEPS":   RangedCommand(self._number_list_setter("steps")),
        }

    def _set(self, attr: str, value: Any) -> None:
        setattr(self.bin, attr, value)
        self.num_parsed += 1

    def _number_setter(self, attr: str) -> Callable[[str], None]:
        """Return a handler storing its token as a float in ``bin.<attr>``."""
        def _handler(token: str) -> None:
            self._set(attr, _parse_float(token, attr.upper()))
        return _handler

    def _flag_setter(self, attr: str) -> Callable[[str], None]:
        def _handler(token: str) -> None:
            match_bool(token, lambda flag: self._set(attr, flag))
        return _handler

    def _parse_extent(self, cursor: int, end: int) -> int:
        """``EXTENT <min> <max>``."""
        low = _parse_float(self.tokens[cursor], "EXTENT")
        high = _parse_float(self.tokens[cursor + 1], "EXTENT")
        self._set("extent", (low, high))
        return cursor + 2

    def _number_list_setter(self, attr: str) -> Callable[[int, int], int]:
        """Return a handler reading numbers until the first non-numeric token.

        Example: ``DIVIDE 5 2 NICE TRUE`` stores ``[5.0, 2.0]``.  Tokens
        such as ``inf`` or ``1_0`` that Python would read as numbers are
        rejected rather than handed back to the caller.
        """
        def _handler(cursor: int, end: int) -> int:
            command = attr.upper()
            values = [_parse_float(self.tokens[cursor], command)]
            cursor += 1
            while cursor < end and _is_float_like(self.tokens[cursor]):
                values.append(_parse_float(self.tokens[cursor], command))
                cursor += 1
            self._set(attr, values)
            return cursor
        return _handler


# ---------------------------------------------------------------------------
# Axis field
# ---------------------------------------------------------------------------

class FieldParser(TokenParser):
    """Fill one :class:`~chart_spec.Encoding`.

    The first token is the field name, taken verbatim; the semantic type
    starts as ``quantitative``.
    """

    def __init__(self, tokens: Sequence[str], encoding: Encoding) -> None:
        self.encoding = encoding
        super().__init__(tokens)

    def command_table(self):
        return {
            "TYPE":      FixedCommand(self._parse_type),
            "BIN":       RangedCommand(self._parse_bin),
            "AGGREGATE": RangedCommand(self._parse_aggregate),
            "TIME_UNIT": FixedCommand(self._parse_time_unit),
        }

    def preamble(self, cursor: int, end: int) -> int:
        name = self.tokens[cursor]
        if not name.strip():
            raise InvalidVocabularyError(
                f"Token {cursor}: a field name is required. Example: X_FIELD sales"
            )
        self.encoding.field = name
        self.encoding.type = DEFAULT_FIELD_TYPE
        return cursor + 1

    def _parse_type(self, token: str) -> None:
        value = match_keyword(token, FIELD_TYPES)
        if value is None:
            raise InvalidVocabularyError(
                f"Missing or invalid TYPE '{token}'. "
                f"Supported: {', '.join(FIELD_TYPES)}"
            )
        self.encoding.type = value

    def _parse_bin(self, cursor: int, end: int) -> int:
        """``BIN TRUE|FALSE`` or ``BIN <binning attributes...>``."""
        if match_bool(self.tokens[cursor], self._set_bin_flag):
            return cursor + 1

        bin_config = Bin()
        parser = BinParser(self.tokens, bin_config)
        next_cursor = parser.loop(cursor, end)
        if parser.num_parsed == 0:
            raise MissingBinningError(
                f"Token {cursor}: missing or invalid BIN value '{self.tokens[cursor]}'. "
                "Example: BIN TRUE  or  BIN MAXBINS 20"
            )
        self.encoding.bin = bin_config
        return next_cursor

    def _set_bin_flag(self, flag: bool) -> None:
        self.encoding.bin = flag

    def _parse_aggregate(self, cursor: int, end: int) -> int:
        token = self.tokens[cursor]
        value = match_keyword(token, AGGREGATES)
        if value is None:
            raise InvalidVocabularyError(
                f"Token {cursor}: missing or invalid AGGREGATE '{token}'. "
                f"Supported: {', '.join(AGGREGATES)}"
            )
        self.encoding.aggregate = value
        return cursor + 1

    def _parse_time_unit(self, token: str) -> None:
        value = match_keyword(token, TIME_UNITS)
        if value is None:
            raise InvalidVocabularyError(
                f"Missing or invalid TIME_UNIT '{token}'. "
                f"Supported: {', '.join(TIME_UNITS)}"
            )
        self.encoding.time_unit = value


# ---------------------------------------------------------------------------
# Mark
# ---------------------------------------------------------------------------

class MarkParser(TokenParser):
    """Select the chart's mark and set its color."""

    def __init__(self, tokens: Sequence[str], chart: ChartSpec) -> None:
        self.chart = chart
        super().__init__(tokens)

    def command_table(self):
        return {"COLOR": FixedCommand(self._parse_color)}

    def preamble(self, cursor: int, end: int) -> int:
        token = self.tokens[cursor]
        if self.chart.mark is not None:
            raise MarkAlreadySetError(
                f"Token {cursor}: the mark is already '{self.chart.mark.kind}'; "
                "a chart has a single MARK."
            )
        kind = MARK_KINDS.get(normalize(token))
        if kind is None:
            raise InvalidVocabularyError(
                f"Token {cursor}: missing or invalid MARK type '{token}'. "
                f"Supported: {', '.join(MARK_KINDS)}"
            )
        self.chart.mark = kind()
        return cursor + 1

    def _parse_color(self, token: str) -> None:
        color = token.lower()

        def _apply(mark) -> None:
            mark.color = color

        visit_variant(self.chart.mark, visitors_for(MARK_KINDS.values(), _apply))


# ---------------------------------------------------------------------------
# Chart (top level)
# ---------------------------------------------------------------------------

class ChartParser(TokenParser):
    """Top-level parser owning the :class:`~chart_spec.ChartSpec`."""

    def __init__(self, tokens: Sequence[str], chart: ChartSpec) -> None:
        self.chart = chart
        super().__init__(tokens)

    def command_table(self):
        return {
            "WIDTH":   FixedCommand(self._parse_width),
            "HEIGHT":  FixedCommand(self._parse_height),
            "X_FIELD": RangedCommand(self._field_parser("x")),
            "Y_FIELD": RangedCommand(self._field_parser("y")),
            "MARK":    RangedCommand(self._parse_mark),
            "GRID":    FixedCommand(self._parse_grid),
            "TITLE":   FixedCommand(self._parse_title),
        }

    def preamble(self, cursor: int, end: int) -> int:
        self.chart.config = Config(axis=AxisConfig(grid=DEFAULT_AXIS_GRID))
        return cursor

    def _parse_width(self, token: str) -> None:
        self.chart.width = _parse_int(token, "WIDTH")

    def _parse_height(self, token: str) -> None:
        self.chart.height = _parse_int(token, "HEIGHT")

    def _field_parser(self, axis: str) -> Callable[[int, int], int]:
        """Return the ``X_FIELD``/``Y_FIELD`` handler for *axis*.

        A fresh encoding replaces whatever the slot held before.
        """
        def _handler(cursor: int, end: int) -> int:
            encoding = Encoding()
            setattr(self.chart.encoding, axis, encoding)
            logger.debug("%s_FIELD: delegating from token %d", axis.upper(), cursor)
            return FieldParser(self.tokens, encoding).loop(cursor, end)
        return _handler

    def _parse_mark(self, cursor: int, end: int) -> int:
        logger.debug("MARK: delegating from token %d", cursor)
        return MarkParser(self.tokens, self.chart).loop(cursor, end)

    def _parse_grid(self, token: str) -> None:
        def _set_grid(flag: bool) -> None:
            self.chart.config.axis.grid = flag

        if not match_bool(token, _set_grid):
            raise InvalidVocabularyError(
                f"Missing or invalid GRID value '{token}'. Example: GRID FALSE"
            )

    def _parse_title(self, token: str) -> None:
        self.chart.title = token


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_chart(tokens: Sequence[str], data: Any = None) -> ChartSpec:
    """Build a :class:`~chart_spec.ChartSpec` from DSL *tokens*.

    Args:
        tokens: The command tokens, already split on whitespace.
        data: The data reference attached to the chart (typically a pandas
            or polars DataFrame).  It is stored as-is.

    Returns:
        The populated chart specification.

    Raises:
        ChartSyntaxError: Any of its subclasses when a command is malformed,
            or :class:`~chart_errors.TrailingTokensError` when some tokens
            are not valid commands.
    """
    chart = ChartSpec(data=data)
    end = len(tokens)
    last_parsed = ChartParser(tokens, chart).loop(0, end)
    if last_parsed != end:
        raise TrailingTokensError(
            f"'{' '.join(tokens)}' is not a valid chart command: "
            f"could not parse token {last_parsed} ('{tokens[last_parsed]}'). "
            "Supported commands: WIDTH, HEIGHT, X_FIELD, Y_FIELD, MARK, GRID, TITLE"
        )
    return chart
