# -*- coding: utf-8 -*-
"""Indicator output surface for renderers."""

from .plot_series import (
    IndicatorSeries,
    PlotRow,
    PLOT_COLUMNS,
)

__all__ = [
    "IndicatorSeries",
    "PlotRow",
    "PLOT_COLUMNS",
]
