"""Shared pytest fixtures for the chart DSL test suite."""

from __future__ import annotations

import pandas as pd
import polars as pl
import pytest


@pytest.fixture
def sample_df() -> pd.DataFrame:
    """Small sales table used as the chart data reference."""
    return pd.DataFrame(
        {
            "region": ["North", "South", "East", "West", "North"],
            "sales": [120.0, 80.5, 99.0, 42.0, 63.5],
            "age": [30, 17, 25, 42, 16],
            "date": pd.to_datetime(
                ["2023-01-01", "2023-02-01", "2023-03-01", "2023-04-01", "2023-05-01"]
            ),
        }
    )


@pytest.fixture
def sample_pl(sample_df) -> pl.DataFrame:
    """*sample_df* as a polars DataFrame."""
    return pl.from_pandas(sample_df)


@pytest.fixture
def tokens():
    """Return a helper that splits a DSL line into tokens."""
    def _split(line: str) -> list[str]:
        return line.split()
    return _split
