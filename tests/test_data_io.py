from datetime import date

import pytest

from LdaReport.data_io import DataReader, build_document_term_matrix


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "2.txt").write_text("Second document, about courts.", encoding="utf-8")
    (tmp_path / "1.txt").write_text("First document about taxes and taxes.", encoding="utf-8")
    (tmp_path / "meta.csv").write_text(
        "id,date,category\n1,2024-01-05,economy\n2,2024-02-10,law\n", encoding="utf-8"
    )
    return tmp_path


def test_missing_data_dir_raises(tmp_path):
    with pytest.raises(ValueError):
        DataReader(tmp_path / "nope")


def test_read_corpus_sorted_by_id(data_dir):
    ids, docs = DataReader(data_dir).read_corpus()
    assert ids == ["1", "2"]
    assert docs[1].startswith("Second")


def test_read_metadata_parses_dates_and_ids(data_dir):
    meta = DataReader(data_dir).read_metadata()
    assert meta["id"].to_list() == ["1", "2"]
    assert meta["date"].to_list() == [date(2024, 1, 5), date(2024, 2, 10)]


def test_read_missing_file(data_dir):
    reader = DataReader(data_dir)
    with pytest.raises(FileNotFoundError):
        reader.read_metadata("other.csv")
    assert sorted(reader.list_available_files()) == ["1.txt", "2.txt", "meta.csv"]


def test_build_document_term_matrix_counts_tokens():
    dtm = build_document_term_matrix(
        ["Taxes, taxes and more TAXES!", "A court ruled on taxes."],
        ["d1", "d2"],
        stopwords={"and", "on"},
    )
    assert dtm.terms == sorted(dtm.terms)
    assert "and" not in dtm.terms
    assert "a" not in dtm.terms  # shorter than min_length
    counts = dtm.matrix.toarray()
    assert counts[0, dtm.terms.index("taxes")] == 3
    assert counts[1, dtm.terms.index("court")] == 1
    assert dtm.row_sums().tolist() == [4, 3]


def test_build_document_term_matrix_length_mismatch():
    with pytest.raises(ValueError):
        build_document_term_matrix(["one"], ["d1", "d2"])
