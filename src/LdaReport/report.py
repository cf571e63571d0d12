import typing as t
from pathlib import Path

import polars as pl

from LdaReport.assignments import documentsums, order_meta
from LdaReport.data_io import DataReader, build_document_term_matrix, english_stopwords
from LdaReport.gibbs_lda import GibbsLdaModeler, LdaConfig
from LdaReport.ldavis import ldavis_json
from LdaReport.logging_config import get_logger, log_section, log_step, setup_logging
from LdaReport.models import ReportConfig
from LdaReport.plots import plot_all_topics

logger = get_logger(__name__)


def run_lda_report(
    documents: list[str],
    ids: list[str],
    meta: pl.DataFrame,
    path: str | Path,
    time_column: str = "date",
    category_column: str = "category",
    lda_config: LdaConfig | None = None,
    report_config: ReportConfig | None = None,
    stopwords: set[str] | None = None,
) -> dict[str, t.Any]:
    """
    Fit an LDA model on raw documents and write the topic report.

    Args:
        documents: Document texts
        ids: Document ids, in the order of ``documents``
        meta: Document metadata with an ``id`` column and the time and
            category columns; matched to the modeled documents by id
        path: Output directory for the images, the index and ``ldavis.json``

    Returns:
        The fitted model, its topic-document counts, the dtm and the files written
    """
    lda_config = lda_config or LdaConfig()
    report_config = report_config or ReportConfig()
    path = Path(path)

    log_section(logger, "Starting LDA report")
    logger.info(f"Parameters: {lda_config.model_dump()}")

    log_step(logger, 1, "Document-term matrix")
    dtm = build_document_term_matrix(documents, ids, stopwords=stopwords)

    log_step(logger, 2, "Fitting the topic model")
    model = GibbsLdaModeler(lda_config).fit(dtm)
    if len(model.documents) < len(ids):
        logger.info(f"{len(ids) - len(model.documents)} empty documents left out of the model")

    log_step(logger, 3, "Topic plots")
    meta = order_meta(model, meta)
    if meta[time_column].null_count():
        raise ValueError(f"'{time_column}' is missing for some modeled documents")
    docsums = documentsums(model)
    index = plot_all_topics(
        model,
        meta[time_column].to_list(),
        meta[category_column].to_list(),
        path,
        config=report_config,
        docsums=docsums,
    )

    written = [path / f"{k}.png" for k in range(1, model.k + 1)]
    if index is not None:
        written.append(path / "index.html")

    if report_config.ldavis:
        log_step(logger, 4, "LDAvis data")
        fn = path / "ldavis.json"
        fn.write_text(ldavis_json(model, dtm), encoding="utf-8")
        written.append(fn)

    logger.info("LDA report complete")
    return {"model": model, "docsums": docsums, "dtm": dtm, "files": written}


if __name__ == "__main__":
    import sys

    data_dir = sys.argv[1] if len(sys.argv) > 1 else "data"
    out_dir = sys.argv[2] if len(sys.argv) > 2 else "lda_report"
    setup_logging(level="INFO", log_file=Path(out_dir) / "report.log")
    logger.info(f"Running LDA report demo on {data_dir}...")

    reader = DataReader(data_dir)
    doc_ids, docs = reader.read_corpus()

    try:
        results = run_lda_report(
            docs,
            doc_ids,
            reader.read_metadata(),
            out_dir,
            lda_config=LdaConfig(num_topics=10, num_iterations=200, seed=1),
            report_config=ReportConfig(date_interval="month"),
            stopwords=english_stopwords(),
        )
        logger.info(f"Wrote {len(results['files'])} files to {out_dir}")
    except Exception as e:
        logger.error(f"Demo failed with error: {e}")
        raise
