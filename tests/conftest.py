from datetime import date

import numpy as np
import polars as pl
import pytest
from scipy import sparse

from LdaReport.models import DocumentTermMatrix, FittedTopicModel


def make_model(documents, terms, records, k, seed=0):
    """Build a model from (doc, term, topic) records with random posteriors."""
    rng = np.random.default_rng(seed)
    topic_term = rng.random((k, len(terms)))
    topic_term /= topic_term.sum(axis=1, keepdims=True)
    doc_topic = rng.random((len(documents), k))
    doc_topic /= doc_topic.sum(axis=1, keepdims=True)
    doc, term, topic = zip(*records) if records else ((), (), ())
    return FittedTopicModel(
        documents=documents,
        terms=terms,
        assignments=pl.DataFrame(
            {"doc": list(doc), "term": list(term), "topic": list(topic)},
            schema={"doc": pl.Int64, "term": pl.Int64, "topic": pl.Int64},
        ),
        topic_term=topic_term,
        doc_topic=doc_topic,
    )


@pytest.fixture
def example_model() -> FittedTopicModel:
    """d1: 3 words on topic 1, 2 on topic 2. d2: 1 word on topic 1, 4 on topic 2."""
    records = [
        (0, 0, 1), (0, 1, 1), (0, 2, 1), (0, 3, 2), (0, 4, 2),
        (1, 0, 1), (1, 1, 2), (1, 2, 2), (1, 3, 2), (1, 5, 2),
    ]
    terms = ["tax", "budget", "vote", "school", "pupil", "exam"]
    return make_model(["d1", "d2"], terms, records, k=2)


@pytest.fixture
def three_topic_model() -> FittedTopicModel:
    terms = ["run/VERB", "run/NOUN", "court", "judge", "match", "goal", "vote"]
    records = [
        (0, 0, 1), (0, 1, 1), (0, 6, 3),
        (1, 2, 2), (1, 3, 2), (1, 6, 3),
        (2, 4, 1), (2, 5, 1), (2, 0, 1),
        (3, 2, 2), (3, 6, 3), (3, 3, 3),
    ]
    return make_model(["a", "b", "c", "d"], terms, records, k=3, seed=1)


@pytest.fixture
def three_topic_dtm(three_topic_model) -> DocumentTermMatrix:
    counts = np.zeros((4, 7))
    for doc, term in three_topic_model.assignments.select("doc", "term").iter_rows():
        counts[doc, term] = doc + 1
    return DocumentTermMatrix(
        matrix=sparse.csr_matrix(counts),
        documents=three_topic_model.documents,
        terms=three_topic_model.terms,
    )


@pytest.fixture
def three_topic_dates() -> list[date]:
    return [date(2024, 1, 3), date(2024, 1, 20), date(2024, 3, 2), date(2024, 3, 30)]
