import typing as t

import numpy as np
import polars as pl
import pydantic
from scipy import sparse

from LdaReport.logging_config import get_logger

logger = get_logger(__name__)

ASSIGNMENT_COLUMNS = ("doc", "term", "topic")


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True)
    array.setflags(write=False)
    return array


def _check_unique(ids: list[str], what: str) -> list[str]:
    if len(set(ids)) != len(ids):
        raise ValueError(f"{what} identifiers must be unique")
    return ids


class WordScore(pydantic.BaseModel):
    word: str
    score: float


class TopicWordDistribution(pydantic.BaseModel):
    topic_id: int
    word_scores: list[WordScore]

    def as_frequencies(self) -> dict[str, float]:
        return {ws.word: ws.score for ws in self.word_scores}


# -----------------------------
# Fitted model / weighting matrix
# -----------------------------


class FittedTopicModel(pydantic.BaseModel):
    """Read-only view of a fitted LDA model.

    Topic numbers run from 1 to K. Row ``topic_nr - 1`` of ``topic_term``
    (and of any topic x document matrix derived from the model) belongs to
    topic ``topic_nr``.
    """

    model_config = pydantic.ConfigDict(frozen=True, arbitrary_types_allowed=True)

    documents: list[str]
    "Document identifiers, in the order used by ``doc_topic`` and ``assignments``"
    terms: list[str]
    "Vocabulary, in the column order of ``topic_term``"
    assignments: pl.DataFrame
    "One row per (document, unique term): doc index, term index, topic number"
    topic_term: np.ndarray  # phi, K x V
    doc_topic: np.ndarray  # theta, D x K

    @pydantic.field_validator("documents")
    @classmethod
    def _unique_documents(cls, v: list[str]) -> list[str]:
        return _check_unique(v, "Document")

    @pydantic.field_validator("terms")
    @classmethod
    def _unique_terms(cls, v: list[str]) -> list[str]:
        return _check_unique(v, "Term")

    @pydantic.field_validator("topic_term", "doc_topic", mode="before")
    @classmethod
    def _as_float_array(cls, v: t.Any) -> np.ndarray:
        array = np.asarray(v, dtype=float)
        if array.ndim != 2:
            raise ValueError("posterior matrices must be two-dimensional")
        return _readonly(array)

    @pydantic.field_validator("assignments")
    @classmethod
    def _assignment_columns(cls, v: pl.DataFrame) -> pl.DataFrame:
        missing = [c for c in ASSIGNMENT_COLUMNS if c not in v.columns]
        if missing:
            raise ValueError(f"assignments is missing columns: {missing}")
        return v.select([pl.col(c).cast(pl.Int64) for c in ASSIGNMENT_COLUMNS])

    @pydantic.model_validator(mode="after")
    def _check_shapes(self) -> "FittedTopicModel":
        k, n_terms = self.topic_term.shape
        n_docs = len(self.documents)
        if n_terms != len(self.terms):
            raise ValueError(
                f"topic_term has {n_terms} columns but there are {len(self.terms)} terms"
            )
        if self.doc_topic.shape != (n_docs, k):
            raise ValueError(
                f"doc_topic must have shape ({n_docs}, {k}), got {self.doc_topic.shape}"
            )
        if self.assignments.height:
            bounds = {"doc": n_docs - 1, "term": n_terms - 1, "topic": k}
            lower = {"doc": 0, "term": 0, "topic": 1}
            for col, upper in bounds.items():
                s = self.assignments[col]
                if s.min() < lower[col] or s.max() > upper:  # type: ignore[operator]
                    raise ValueError(
                        f"assignments column '{col}' out of range [{lower[col]}, {upper}]"
                    )
        return self

    @property
    def k(self) -> int:
        return self.topic_term.shape[0]

    def check_topic(self, topic_nr: int) -> int:
        if not 1 <= topic_nr <= self.k:
            raise ValueError(f"topic_nr must be between 1 and {self.k}, got {topic_nr}")
        return topic_nr


class DocumentTermMatrix(pydantic.BaseModel):
    """Sparse document x term count matrix with document and term labels."""

    model_config = pydantic.ConfigDict(frozen=True, arbitrary_types_allowed=True)

    matrix: sparse.csr_matrix
    documents: list[str]
    terms: list[str]

    @pydantic.field_validator("matrix", mode="before")
    @classmethod
    def _as_csr(cls, v: t.Any) -> sparse.csr_matrix:
        return sparse.csr_matrix(v)

    @pydantic.field_validator("documents")
    @classmethod
    def _unique_documents(cls, v: list[str]) -> list[str]:
        return _check_unique(v, "Document")

    @pydantic.field_validator("terms")
    @classmethod
    def _unique_terms(cls, v: list[str]) -> list[str]:
        return _check_unique(v, "Term")

    @pydantic.model_validator(mode="after")
    def _check_shape(self) -> "DocumentTermMatrix":
        expected = (len(self.documents), len(self.terms))
        if self.matrix.shape != expected:
            raise ValueError(f"matrix shape {self.matrix.shape} != {expected}")
        return self

    def row_sums(self) -> np.ndarray:
        return np.asarray(self.matrix.sum(axis=1)).ravel()

    def col_sums(self) -> np.ndarray:
        return np.asarray(self.matrix.sum(axis=0)).ravel()

    def align(self, documents: list[str], terms: list[str]) -> "DocumentTermMatrix":
        """Restrict and reorder the matrix to exactly ``documents`` x ``terms``.

        Identifiers that the matrix does not contain become all-zero rows or
        columns; a warning reports how many there were.
        """
        row_map = _position_map(self.documents, documents)
        col_map = _position_map(self.terms, terms)

        missing_docs = len(documents) - int((row_map >= 0).sum())
        missing_terms = len(terms) - int((col_map >= 0).sum())
        if missing_docs or missing_terms:
            logger.warning(
                f"Weighting matrix lacks {missing_docs} documents and {missing_terms} terms "
                "of the model; their counts are treated as zero"
            )

        coo = self.matrix.tocoo()
        rows, cols = row_map[coo.row], col_map[coo.col]
        keep = (rows >= 0) & (cols >= 0)
        aligned = sparse.coo_matrix(
            (coo.data[keep], (rows[keep], cols[keep])),
            shape=(len(documents), len(terms)),
        )
        return DocumentTermMatrix(
            matrix=aligned.tocsr(), documents=list(documents), terms=list(terms)
        )

    def drop_empty(self) -> "DocumentTermMatrix":
        rows = np.flatnonzero(self.row_sums() > 0)
        cols = np.flatnonzero(self.col_sums() > 0)
        return DocumentTermMatrix(
            matrix=self.matrix[rows][:, cols],
            documents=[self.documents[i] for i in rows],
            terms=[self.terms[j] for j in cols],
        )


def _position_map(source: list[str], target: list[str]) -> np.ndarray:
    """Map each position in ``source`` to its position in ``target`` (-1 if absent)."""
    target_pos = {ident: i for i, ident in enumerate(target)}
    return np.array([target_pos.get(ident, -1) for ident in source], dtype=np.int64)


# -----------------------------
# Configuration
# -----------------------------

DateInterval = t.Literal["day", "week", "month", "year"]
ValueMode = t.Literal["total", "relative"]


class TopicModelConfig(pydantic.BaseModel):
    algorithm: str  # e.g. "LDA-Gibbs"
    num_topics: int | None = None


class ReportConfig(pydantic.BaseModel):
    date_interval: DateInterval = "day"
    value: ValueMode = "relative"
    pct: bool = False
    top_n_terms: int = 100
    width: int = 1280
    "Image width in pixels"
    height: int = 800
    "Image height in pixels"
    create_index: bool = True
    ldavis: bool = True


# -----------------------------
# LDAvis payload
# -----------------------------


class LDAvisInput(pydantic.BaseModel):
    phi: list[list[float]]  # topics x vocab
    theta: list[list[float]]  # documents x topics
    vocab: list[str]
    doc_length: list[float]
    term_frequency: list[float]
