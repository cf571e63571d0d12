from collections import Counter
from pathlib import Path

import nltk
import polars as pl
from nltk.tokenize import wordpunct_tokenize
from scipy import sparse

from LdaReport.logging_config import get_logger
from LdaReport.models import DocumentTermMatrix

logger = get_logger(__name__)


class DataReader:
    """Reads a corpus of text files and the document metadata that goes with it."""

    def __init__(self, data_dir: str | Path = "data"):
        """
        Args:
            data_dir: Directory holding one ``<id>.txt`` file per document and
                the metadata CSV files
        """
        self.data_dir = Path(data_dir)
        if not self.data_dir.exists():
            raise ValueError(f"Data directory {data_dir} does not exist")

    def read_txt_file(self, file_path: str | Path) -> str:
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File {file_path} not found")
        return file_path.read_text(encoding="utf-8")

    def read_corpus(self) -> tuple[list[str], list[str]]:
        """
        Read every ``.txt`` file in the data directory.

        Returns:
            Document ids (file stems) and document texts, sorted by id
        """
        files = sorted(self.data_dir.glob("*.txt"))
        ids = [f.stem for f in files]
        documents = [self.read_txt_file(f) for f in files]
        logger.info(f"Read {len(documents)} documents from {self.data_dir}")
        return ids, documents

    def read_metadata(
        self, filename: str = "meta.csv", date_column: str | None = "date"
    ) -> pl.DataFrame:
        """
        Read document metadata from a CSV file.

        Args:
            filename: CSV file name inside the data directory
            date_column: Column to parse as dates (skipped when None or absent)
        """
        file_path = self.data_dir / filename
        if not file_path.exists():
            raise FileNotFoundError(f"File {file_path} not found")
        meta = pl.read_csv(file_path, infer_schema_length=None)
        if "id" in meta.columns:
            meta = meta.with_columns(pl.col("id").cast(pl.String))
        if date_column and date_column in meta.columns:
            meta = meta.with_columns(pl.col(date_column).str.to_date())
        return meta

    def list_available_files(self) -> list[str]:
        return [f.name for f in self.data_dir.iterdir() if f.is_file()]


def english_stopwords() -> set[str]:
    """NLTK's English stopword list, downloaded on first use."""
    nltk.download("stopwords", quiet=True)
    from nltk.corpus import stopwords

    return set(stopwords.words("english"))


def build_document_term_matrix(
    documents: list[str],
    ids: list[str],
    stopwords: set[str] | None = None,
    min_length: int = 2,
) -> DocumentTermMatrix:
    """
    Tokenize documents and count terms.

    Tokens are lower-cased; only alphabetic tokens of at least ``min_length``
    characters that are not in ``stopwords`` are kept. The vocabulary is sorted.
    """
    if len(documents) != len(ids):
        raise ValueError(f"Got {len(documents)} documents but {len(ids)} ids")
    stopwords = stopwords or set()

    counts: list[Counter[str]] = []
    for doc_id, doc in enumerate(documents):
        tokens = [
            w
            for w in (tok.lower() for tok in wordpunct_tokenize(doc))
            if w.isalpha() and len(w) >= min_length and w not in stopwords
        ]
        counts.append(Counter(tokens))
        if (doc_id + 1) % 1000 == 0:
            logger.info(f"Tokenized {doc_id + 1}/{len(documents)} documents")

    terms = sorted(set().union(*counts)) if counts else []
    term_pos = {term: j for j, term in enumerate(terms)}
    rows, cols, data = [], [], []
    for i, counter in enumerate(counts):
        for term, count in counter.items():
            rows.append(i)
            cols.append(term_pos[term])
            data.append(count)

    matrix = sparse.csr_matrix(
        (data, (rows, cols)), shape=(len(documents), len(terms)), dtype=float
    )
    logger.info(f"Document-term matrix: {len(documents)} documents, {len(terms)} terms")
    return DocumentTermMatrix(matrix=matrix, documents=list(ids), terms=terms)
