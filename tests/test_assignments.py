import logging

import numpy as np
import polars as pl
import pytest
from scipy import sparse

from LdaReport.assignments import documentsums, order_meta, topics_per_document
from LdaReport.models import DocumentTermMatrix


def test_documentsums_counts_assigned_words(example_model):
    np.testing.assert_array_equal(documentsums(example_model), [[3, 1], [2, 4]])


def test_column_sums_equal_assigned_word_counts(three_topic_model):
    docsums = documentsums(three_topic_model)
    per_doc = (
        three_topic_model.assignments.group_by("doc").len().sort("doc")["len"].to_list()
    )
    assert docsums.sum(axis=0).tolist() == per_doc


def test_weighted_with_uniform_weights_equals_unweighted(example_model):
    ones = DocumentTermMatrix(
        matrix=sparse.csr_matrix(np.ones((2, 6))),
        documents=example_model.documents,
        terms=example_model.terms,
    )
    np.testing.assert_array_equal(
        documentsums(example_model, weight_by_dtm=ones), documentsums(example_model)
    )


def test_weighted_counts_term_frequency(example_model):
    counts = np.ones((2, 6))
    counts[0, 0] = 3  # "tax" occurs three times in d1
    counts[1, 3] = 2  # "school" occurs twice in d2
    dtm = DocumentTermMatrix(
        matrix=counts, documents=example_model.documents, terms=example_model.terms
    )
    np.testing.assert_array_equal(
        documentsums(example_model, weight_by_dtm=dtm), [[5, 1], [2, 5]]
    )


def test_weighted_aligns_by_identifier(example_model):
    counts = np.ones((2, 6))
    counts[0, 0] = 3
    dtm = DocumentTermMatrix(
        matrix=counts, documents=example_model.documents, terms=example_model.terms
    )
    shuffled = dtm.align(["d2", "d1"], list(reversed(example_model.terms)))
    np.testing.assert_array_equal(
        documentsums(example_model, weight_by_dtm=shuffled),
        documentsums(example_model, weight_by_dtm=dtm),
    )


def test_weighted_missing_document_counts_as_zero(example_model, caplog):
    dtm = DocumentTermMatrix(
        matrix=np.ones((1, 6)), documents=["d1"], terms=example_model.terms
    )
    with caplog.at_level(logging.WARNING):
        docsums = documentsums(example_model, weight_by_dtm=dtm)

    assert docsums.shape == (2, 2)
    np.testing.assert_array_equal(docsums[:, 1], [0, 0])
    np.testing.assert_array_equal(docsums[:, 0], [3, 2])
    assert "no count in the weighting matrix" in caplog.text


def test_document_without_assignments_keeps_zero_column(example_model):
    model = example_model.model_copy(
        update={
            "documents": ["d1", "d2", "d3"],
            "doc_topic": np.vstack([example_model.doc_topic, [0.5, 0.5]]),
        }
    )
    docsums = documentsums(model)
    assert docsums.shape == (2, 3)
    assert docsums[:, 2].tolist() == [0, 0]


def test_topics_per_document_from_posterior(example_model):
    tpd = topics_per_document(example_model)
    assert tpd.columns == ["id", "topic_1", "topic_2"]
    assert tpd["id"].to_list() == ["d1", "d2"]
    np.testing.assert_allclose(tpd.select("topic_1", "topic_2").to_numpy(), example_model.doc_topic)


def test_topics_per_document_from_word_assignments(example_model):
    tpd = topics_per_document(example_model, as_wordassignments=True)
    assert tpd["topic_1"].to_list() == [3, 1]
    assert tpd["topic_2"].to_list() == [2, 4]


def test_order_meta_follows_model_documents(example_model):
    meta = pl.DataFrame({"id": ["d3", "d2", "d1"], "source": ["x", "b", "a"]})
    ordered = order_meta(example_model, meta)
    assert ordered["id"].to_list() == ["d1", "d2"]
    assert ordered["source"].to_list() == ["a", "b"]


def test_order_meta_missing_document_gives_null_row(example_model):
    meta = pl.DataFrame({"id": ["d2"], "source": ["b"]})
    ordered = order_meta(example_model, meta)
    assert ordered.height == 2
    assert ordered["source"].to_list() == [None, "b"]


def test_order_meta_requires_match_column(example_model):
    with pytest.raises(ValueError):
        order_meta(example_model, pl.DataFrame({"doc": ["d1"]}))
