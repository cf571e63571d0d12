import typing as t

import numpy as np
import polars as pl

from LdaReport.models import ValueMode

VALUE_MODES = t.get_args(ValueMode)


def prepare_plot_values(
    docsums: np.ndarray,
    break_var: t.Any,
    topic_nr: int,
    pct: bool = False,
    value: ValueMode = "relative",
) -> pl.DataFrame:
    """
    Aggregate one topic's per-document counts by a breakdown vector.

    Args:
        docsums: K x D topic-document matrix (see ``documentsums``)
        break_var: One label per document (time bucket or category), in document order
        topic_nr: Topic number, 1 to K
        pct: Divide the aggregated values by their sum so the series sums to 1
        value: 'total' for summed counts, 'relative' for the topic's share of
            all topic counts within each label (0 where a label has no counts)

    Returns:
        DataFrame with columns ``label`` and ``value``, one row per distinct
        label, sorted by label.

    Raises:
        ValueError: On a length mismatch, an unknown topic or an unknown value mode
    """
    if value not in VALUE_MODES:
        raise ValueError(f"value must be one of {VALUE_MODES}, got {value!r}")
    n_topics, n_docs = docsums.shape
    if not 1 <= topic_nr <= n_topics:
        raise ValueError(f"topic_nr must be between 1 and {n_topics}, got {topic_nr}")
    labels = break_var if isinstance(break_var, pl.Series) else pl.Series(list(break_var))
    if labels.len() != n_docs:
        raise ValueError(
            f"break_var has {labels.len()} values but the model has {n_docs} documents"
        )

    # hits and totals are summed in one group_by so every label keeps its own denominator
    d = (
        pl.DataFrame(
            {
                "label": labels,
                "hits": docsums[topic_nr - 1],
                "total": docsums.sum(axis=0),
            }
        )
        .group_by("label")
        .agg(pl.col("hits").sum(), pl.col("total").sum())
        .sort("label")
    )

    if value == "relative":
        d = d.with_columns(
            pl.when(pl.col("total") > 0)
            .then(pl.col("hits") / pl.col("total"))
            .otherwise(0.0)
            .alias("value")
        )
    else:
        d = d.with_columns(pl.col("hits").alias("value"))

    if pct:
        series_sum = d["value"].sum()
        if series_sum:
            d = d.with_columns(pl.col("value") / series_sum)
    return d.select("label", "value")
