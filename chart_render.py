"""Hand a parsed :class:`~chart_spec.ChartSpec` to altair.

Defines :func:`to_altair` (spec -> :class:`altair.Chart`) and
:func:`process_chart_input`, the entry point that parses DSL tokens against
a data frame and returns the renderable chart.  Vega-Lite JSON and notebook
display bundles are produced by altair itself (``chart.to_dict()``,
``chart.to_json()``, rich display).
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import altair as alt
import pandas as pd
import polars as pl

from chart_parser import parse_chart
from chart_spec import Bin, ChartSpec, Encoding, mark_properties

logger = logging.getLogger(__name__)


def _as_pandas(data: Any) -> pd.DataFrame | None:
    """Return *data* as a pandas DataFrame (or ``None`` when absent).

    Polars frames are converted with ``to_pandas()``; anything else is
    handed to the :class:`pandas.DataFrame` constructor (e.g. a list of
    records).
    """
    if data is None or isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, pl.DataFrame):
        return data.to_pandas()
    return pd.DataFrame(data)


def _bin_params(bin_config: Bin) -> alt.Bin:
    params: dict[str, Any] = {}
    for name in ("anchor", "base", "binned", "maxbins", "minstep", "nice", "step"):
        value = getattr(bin_config, name)
        if value is not None:
            params[name] = value
    if bin_config.extent is not None:
        params["extent"] = list(bin_config.extent)
    if bin_config.divide is not None:
        params["divide"] = list(bin_config.divide)
    if bin_config.steps is not None:
        params["steps"] = list(bin_config.steps)
    return alt.Bin(**params)


def _channel(channel_cls: type, encoding: Encoding):
    """Build an ``alt.X``/``alt.Y`` channel from *encoding*."""
    kwargs: dict[str, Any] = {"field": encoding.field, "type": encoding.type}
    if isinstance(encoding.bin, bool):
        kwargs["bin"] = encoding.bin
    elif encoding.bin is not None:
        kwargs["bin"] = _bin_params(encoding.bin)
    if encoding.aggregate is not None:
        kwargs["aggregate"] = encoding.aggregate
    if encoding.time_unit is not None:
        kwargs["timeUnit"] = encoding.time_unit
    return channel_cls(**kwargs)


def to_altair(spec: ChartSpec) -> alt.Chart:
    """Build the :class:`altair.Chart` described by *spec*.

    Raises:
        ValueError: If *spec* has no mark; Vega-Lite cannot render it.
    """
    if spec.mark is None:
        raise ValueError("nothing to render: the chart has no MARK. Example: MARK BAR")

    df = _as_pandas(spec.data)
    base = alt.Chart(df) if df is not None else alt.Chart()
    chart = getattr(base, f"mark_{spec.mark.kind}")(**mark_properties(spec.mark))

    channels: dict[str, Any] = {}
    if spec.encoding.x is not None:
        channels["x"] = _channel(alt.X, spec.encoding.x)
    if spec.encoding.y is not None:
        channels["y"] = _channel(alt.Y, spec.encoding.y)
    if channels:
        chart = chart.encode(**channels)

    props: dict[str, Any] = {}
    if spec.width is not None:
        props["width"] = spec.width
    if spec.height is not None:
        props["height"] = spec.height
    if spec.title is not None:
        props["title"] = spec.title
    if props:
        chart = chart.properties(**props)

    if spec.config.axis is not None:
        chart = chart.configure_axis(grid=spec.config.axis.grid)
    return chart


def process_chart_input(tokens: Sequence[str], data: Any = None) -> alt.Chart:
    """Parse chart DSL *tokens* against *data* and return the altair chart.

    Args:
        tokens: Command tokens, already split on whitespace.
        data: pandas or polars DataFrame holding the rows to plot.

    Raises:
        ChartSyntaxError: Propagated unchanged from :func:`~chart_parser.parse_chart`.
        ValueError: If the parsed chart has no mark.
    """
    spec = parse_chart(tokens, data)
    logger.debug(
        "rendering %s chart from %d token(s)",
        spec.mark.kind if spec.mark is not None else "unmarked",
        len(tokens),
    )
    return to_altair(spec)
