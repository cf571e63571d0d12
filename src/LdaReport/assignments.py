import numpy as np
import polars as pl

from LdaReport.logging_config import get_logger
from LdaReport.models import DocumentTermMatrix, FittedTopicModel

logger = get_logger(__name__)


def documentsums(
    model: FittedTopicModel, weight_by_dtm: DocumentTermMatrix | None = None
) -> np.ndarray:
    """
    Count the words assigned to each topic in each document.

    LDA assigns one topic to every unique word of a document. Without a weighting
    matrix each assignment counts once; with ``weight_by_dtm`` each assignment
    counts as often as the word occurs in the document.

    Args:
        model: The fitted topic model
        weight_by_dtm: Optional document-term matrix used to weight assignments
            by term frequency. It is aligned to the model's documents and terms
            first; assignments without a matching count contribute zero.

    Returns:
        A K x D matrix. Row ``topic_nr - 1`` holds topic ``topic_nr``; columns
        follow ``model.documents`` (documents without assignments are all zero).
    """
    assignments = model.assignments

    if weight_by_dtm is not None:
        dtm = weight_by_dtm.align(model.documents, model.terms)
        coo = dtm.matrix.tocoo()
        counts = pl.DataFrame(
            {
                "doc": coo.row.astype(np.int64),
                "term": coo.col.astype(np.int64),
                "count": coo.data.astype(float),
            }
        )
        joined = assignments.join(counts, on=["doc", "term"], how="left")
        unmatched = joined["count"].null_count()
        if unmatched:
            logger.warning(
                f"{unmatched} word assignments have no count in the weighting matrix; "
                "they are counted as zero"
            )
        sums = (
            joined.with_columns(pl.col("count").fill_null(0.0))
            .group_by(["topic", "doc"])
            .agg(pl.col("count").sum().alias("value"))
        )
        docsums = np.zeros((model.k, len(model.documents)), dtype=float)
    else:
        sums = assignments.group_by(["topic", "doc"]).agg(pl.len().alias("value"))
        docsums = np.zeros((model.k, len(model.documents)), dtype=np.int64)

    docsums[sums["topic"].to_numpy() - 1, sums["doc"].to_numpy()] = sums[
        "value"
    ].to_numpy()
    return docsums


def topics_per_document(
    model: FittedTopicModel, as_wordassignments: bool = False
) -> pl.DataFrame:
    """Topic occurrence per document, from the posterior or from word assignments."""
    if as_wordassignments:
        values = documentsums(model).T
    else:
        values = np.asarray(model.doc_topic)
    columns = {f"topic_{k + 1}": values[:, k] for k in range(model.k)}
    return pl.DataFrame({"id": model.documents, **columns})


def order_meta(
    model: FittedTopicModel, meta: pl.DataFrame, match_by: str = "id"
) -> pl.DataFrame:
    """
    Reorder document metadata to the model's document order.

    The result has one row per model document; documents absent from ``meta``
    get a row of nulls, which is logged.
    """
    if match_by not in meta.columns:
        raise ValueError(f"meta has no column '{match_by}'")

    order = pl.DataFrame({match_by: model.documents}).with_row_index("_order")
    ordered = (
        order.join(
            meta.with_columns(pl.col(match_by).cast(pl.String)),
            on=match_by,
            how="left",
        )
        .unique(subset="_order", keep="first")
        .sort("_order")
        .drop("_order")
    )

    unmatched = len(set(model.documents) - set(meta[match_by].cast(pl.String)))
    if unmatched:
        logger.warning(f"{unmatched} model documents have no metadata row")
    return ordered
