"""Tabular export of decoded stream items."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import polars as pl
from pydantic import BaseModel


def _as_row(item: Any) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        # Extra fields are included; nested models become dicts.
        return item.model_dump()
    if isinstance(item, Mapping):
        return dict(item)
    raise TypeError(f"Cannot convert {type(item).__name__} to a row")


def to_frame(items: Iterable[Any], columns: list[str] | None = None) -> pl.DataFrame:
    """Collect decoded items (models or dicts) into a polars DataFrame.

    Consumes ``items`` fully, so bound a stream first, e.g.
    ``to_frame(take(client.stream_markets(), 500))``. A terminal stream error
    propagates unchanged.

    Args:
        items: Decoded records.
        columns: Optional subset of columns to keep, in order.

    Returns:
        DataFrame with one row per item; empty when there are no items.
    """
    rows = [_as_row(item) for item in items]
    if not rows:
        return pl.DataFrame(schema=columns or [])
    df = pl.DataFrame(rows, infer_schema_length=None)
    if columns:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"Columns not found in items: {missing}")
        df = df.select(columns)
    return df
