"""
Time variables for plotting topic attention over time.

A time variable is either a sequence of calendar dates (``date``,
``datetime`` or numpy ``datetime64``) or a sequence of plain numbers (already
discrete time steps such as years or issue numbers, as ints or floats). The
kind is decided once by ``as_time_var``; each kind knows how to put its values
into buckets and how to fill the gaps between buckets.
"""

import math
import numbers
import typing as t
from collections.abc import Sequence
from datetime import date, datetime

import numpy as np
import polars as pl
import pydantic

from LdaReport.models import DateInterval

INTERVALS: dict[str, str] = {"day": "1d", "week": "1w", "month": "1mo", "year": "1y"}


def _every(date_interval: str) -> str:
    try:
        return INTERVALS[date_interval]
    except KeyError as e:
        raise ValueError(
            f"date_interval must be one of {list(INTERVALS)}, got {date_interval!r}"
        ) from e


def _fill(series: pl.DataFrame, labels: pl.Series) -> pl.DataFrame:
    all_labels = pl.concat([labels.to_frame("label"), series.select("label")]).unique()
    return (
        all_labels.join(series, on="label", how="left")
        .with_columns(pl.col("value").fill_null(0))
        .sort("label")
    )


class CalendarDates(pydantic.BaseModel):
    kind: t.Literal["calendar"] = "calendar"
    values: list[date]

    @pydantic.field_validator("values", mode="before")
    @classmethod
    def _drop_time_of_day(cls, v: t.Any) -> list[date]:
        return [x.date() if isinstance(x, datetime) else x for x in v]

    def bucket(self, date_interval: DateInterval) -> pl.Series:
        """Day: unchanged. Week: Monday of the ISO week. Month: 1st. Year: January 1."""
        return pl.Series("label", self.values, dtype=pl.Date).dt.truncate(
            _every(date_interval)
        )

    def fill_gaps(self, series: pl.DataFrame, date_interval: DateInterval) -> pl.DataFrame:
        every = _every(date_interval)
        if series.is_empty():
            return series.sort("label")
        labels = pl.date_range(
            series["label"].min(), series["label"].max(), interval=every, eager=True
        )
        return _fill(series, labels)


class DiscreteIndex(pydantic.BaseModel):
    kind: t.Literal["discrete"] = "discrete"
    values: list[int] | list[float]
    """Whole numbers are stored as ints, anything else keeps its float value."""

    @property
    def dtype(self) -> type[pl.DataType]:
        return pl.Int64 if all(isinstance(x, int) for x in self.values) else pl.Float64

    def bucket(self, date_interval: DateInterval) -> pl.Series:
        # numeric time steps are already buckets
        _every(date_interval)
        return pl.Series("label", self.values, dtype=self.dtype)

    def fill_gaps(self, series: pl.DataFrame, date_interval: DateInterval) -> pl.DataFrame:
        _every(date_interval)
        if series.is_empty():
            return series.sort("label")
        first, last = series["label"].min(), series["label"].max()
        steps = pl.int_range(0, int(last - first) + 1, eager=True)  # type: ignore[operator]
        # unit steps from the first label; labels off that grid are kept as well
        labels = (steps + first).cast(series["label"].dtype)
        return _fill(series, labels)


TimeVar = CalendarDates | DiscreteIndex


def _is_number(x: t.Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, (bool, np.bool_))


def _as_step(x: numbers.Real) -> int | float:
    if isinstance(x, numbers.Integral):
        return int(x)
    x = float(x)
    if math.isnan(x):
        raise ValueError("time_var contains NaN")
    return int(x) if x.is_integer() else x


def _datetime64_to_dates(values: t.Any) -> list[date]:
    arr = np.asarray(values, dtype="datetime64[us]")
    if np.isnat(arr).any():
        raise ValueError("time_var contains NaT")
    return pl.Series(arr).dt.date().to_list()


def as_time_var(values: t.Any) -> TimeVar:
    """
    Decide once whether ``values`` are calendar dates or discrete time steps.

    Dates may be ``date``, ``datetime`` or numpy ``datetime64``. Time steps may
    be any real number except booleans; whole floats such as ``2001.0`` become
    ints.

    Raises:
        TypeError: If the values are mixed or neither dates nor numbers
        ValueError: If the values contain NaN or NaT
    """
    if isinstance(values, (CalendarDates, DiscreteIndex)):
        return values
    if isinstance(values, np.ndarray) and np.issubdtype(values.dtype, np.datetime64):
        return CalendarDates(values=_datetime64_to_dates(values))
    if isinstance(values, pl.Series):
        values = values.to_list()
    if not isinstance(values, Sequence) or isinstance(values, str):
        values = list(values)

    if all(isinstance(x, date) for x in values):
        return CalendarDates(values=list(values))
    if values and all(isinstance(x, np.datetime64) for x in values):
        return CalendarDates(values=_datetime64_to_dates(values))
    if all(_is_number(x) for x in values):
        steps = [_as_step(x) for x in values]
        if not all(isinstance(x, int) for x in steps):
            steps = [float(x) for x in steps]
        return DiscreteIndex(values=steps)
    raise TypeError(
        "time_var must contain only dates/datetimes or only numbers, "
        f"got types {sorted({type(x).__name__ for x in values})}"
    )


def prepare_time_var(time_var: t.Any, date_interval: DateInterval) -> pl.Series:
    """Normalise a time variable to ``date_interval`` buckets."""
    return as_time_var(time_var).bucket(date_interval)


def fill_time_gaps(
    time_var: t.Any, series: pl.DataFrame, date_interval: DateInterval
) -> pl.DataFrame:
    """
    Insert zero-valued rows for every missing bucket between the first and last.

    ``series`` has the columns ``label`` and ``value``; the result is sorted
    by label and keeps the existing values unchanged.
    """
    return as_time_var(time_var).fill_gaps(series, date_interval)
