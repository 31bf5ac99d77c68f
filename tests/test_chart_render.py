"""Tests for the altair hand-off."""

from __future__ import annotations

import altair as alt
import pytest

from chart_errors import ChartSyntaxError, TrailingTokensError
from chart_parser import parse_chart
from chart_render import process_chart_input, to_altair


def render(line: str, data=None) -> dict:
    """Parse *line*, build the altair chart and return its Vega-Lite dict."""
    return process_chart_input(line.split(), data).to_dict()


class TestToAltair:
    def test_returns_chart(self, sample_df):
        chart = process_chart_input("MARK BAR X_FIELD region TYPE NOMINAL".split(), sample_df)
        assert isinstance(chart, alt.Chart)

    def test_mark_and_color(self, sample_df):
        vl = render("MARK BAR COLOR RED X_FIELD region TYPE NOMINAL", sample_df)
        assert vl["mark"]["type"] == "bar"
        assert vl["mark"]["color"] == "red"

    def test_encodings(self, sample_df):
        vl = render(
            "MARK LINE X_FIELD date TYPE TEMPORAL TIME_UNIT MONTH "
            "Y_FIELD sales AGGREGATE MEAN",
            sample_df,
        )
        assert vl["encoding"]["x"] == {"field": "date", "type": "temporal", "timeUnit": "month"}
        assert vl["encoding"]["y"] == {"field": "sales", "type": "quantitative", "aggregate": "mean"}

    def test_bin_flag(self, sample_df):
        vl = render("MARK BAR X_FIELD age BIN TRUE Y_FIELD age AGGREGATE COUNT", sample_df)
        assert vl["encoding"]["x"]["bin"] is True

    def test_bin_params(self, sample_df):
        vl = render("MARK BAR X_FIELD age BIN MAXBINS 10 EXTENT 0 50", sample_df)
        assert vl["encoding"]["x"]["bin"] == {"maxbins": 10.0, "extent": [0.0, 50.0]}

    def test_size_title_and_grid(self, sample_df):
        vl = render("MARK POINT WIDTH 400 HEIGHT 300 TITLE Ages GRID FALSE", sample_df)
        assert vl["width"] == 400
        assert vl["height"] == 300
        assert vl["title"] == "Ages"
        assert vl["config"]["axis"]["grid"] is False

    def test_default_grid(self, sample_df):
        vl = render("MARK POINT", sample_df)
        assert vl["config"]["axis"]["grid"] is True

    def test_data_attached(self, sample_df):
        vl = render("MARK POINT", sample_df)
        assert "datasets" in vl
        (rows,) = vl["datasets"].values()
        assert len(rows) == len(sample_df)

    def test_polars_data(self, sample_pl):
        vl = render("MARK POINT X_FIELD sales", sample_pl)
        (rows,) = vl["datasets"].values()
        assert len(rows) == sample_pl.height

    def test_records_data(self):
        vl = render("MARK TICK X_FIELD v", [{"v": 1}, {"v": 2}])
        (rows,) = vl["datasets"].values()
        assert rows == [{"v": 1}, {"v": 2}]

    def test_no_mark_raises(self, sample_df):
        with pytest.raises(ValueError, match="no MARK"):
            to_altair(parse_chart(["WIDTH", "10"], sample_df))


class TestErrorsPropagate:
    def test_parse_error_unchanged(self, sample_df):
        with pytest.raises(TrailingTokensError):
            process_chart_input(["MARK", "BAR", "OOPS"], sample_df)

    def test_base_class(self, sample_df):
        with pytest.raises(ChartSyntaxError):
            process_chart_input(["GRID", "sometimes"], sample_df)
