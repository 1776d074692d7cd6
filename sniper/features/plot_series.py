# -*- coding: utf-8 -*-
"""Indicator output surface - per-bar plot rows for renderers (Unavailable = None / NaN)."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Deque, List, Optional

import numpy as np
import pandas as pd

from ..anchor.divergence import DivergenceEvent, DivergenceKind
from ..anchor.rsi import IndicatorSnapshot


PLOT_COLUMNS = (
    "rsi",
    "ma_value",
    "upper_band",
    "lower_band",
    "bullish_marker",
    "bearish_marker",
)


@dataclass(frozen=True)
class PlotRow:
    bar_index: int
    timestamp: Any
    rsi: float
    ma_value: Optional[float] = None
    upper_band: Optional[float] = None
    lower_band: Optional[float] = None
    bullish_marker: Optional[float] = None
    bearish_marker: Optional[float] = None

    def as_tuple(self):
        """(rsi, ma, upper, lower, bullish, bearish)"""
        return tuple(getattr(self, c) for c in PLOT_COLUMNS)


class IndicatorSeries:
    """Bounded store of plot rows; divergence markers land on the (lagged) pivot row."""

    def __init__(self, maxlen: int = 500):
        self._rows: Deque[PlotRow] = deque(maxlen=maxlen)

    def clear(self):
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)

    def append(self, snapshot: IndicatorSnapshot, timestamp: Any = None) -> PlotRow:
        row = PlotRow(
            bar_index=snapshot.bar_index,
            timestamp=timestamp,
            rsi=snapshot.rsi,
            ma_value=snapshot.ma_value,
            upper_band=snapshot.upper_band,
            lower_band=snapshot.lower_band,
        )
        self._rows.append(row)
        return row

    def mark(self, event: DivergenceEvent) -> bool:
        """Returns False when the pivot row already scrolled out."""
        if not self._rows:
            return False
        offset = event.pivot_bar_index - self._rows[0].bar_index
        if offset < 0 or offset >= len(self._rows):
            return False

        row = self._rows[offset]
        if event.kind is DivergenceKind.BULLISH:
            self._rows[offset] = replace(row, bullish_marker=event.marker_value)
        else:
            self._rows[offset] = replace(row, bearish_marker=event.marker_value)
        return True

    def rows(self) -> List[PlotRow]:
        return list(self._rows)

    def to_frame(self) -> pd.DataFrame:
        records = [
            {c: (np.nan if v is None else v) for c, v in zip(PLOT_COLUMNS, row.as_tuple())}
            for row in self._rows
        ]
        frame = pd.DataFrame.from_records(records, columns=list(PLOT_COLUMNS)).astype("float64")

        timestamps = [row.timestamp for row in self._rows]
        if timestamps and all(ts is not None for ts in timestamps):
            frame.index = pd.Index(timestamps, name="timestamp")
        else:
            frame.index = pd.Index([row.bar_index for row in self._rows], name="bar_index")
        return frame
