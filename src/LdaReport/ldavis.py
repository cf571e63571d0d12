import numpy as np
import pyLDAvis

from LdaReport.logging_config import get_logger
from LdaReport.models import DocumentTermMatrix, FittedTopicModel, LDAvisInput

logger = get_logger(__name__)


def ldavis_data(model: FittedTopicModel, dtm: DocumentTermMatrix) -> LDAvisInput:
    """
    Collect the inputs LDAvis needs from a fitted model and its dtm.

    Document lengths come from the dtm rows matched to ``model.documents``,
    term frequencies from the dtm columns matched to ``model.terms``. Documents
    of length zero are left out of both ``theta`` and ``doc_length``.
    """
    aligned = dtm.align(model.documents, model.terms)
    doc_length = np.asarray(dtm.align(model.documents, dtm.terms).row_sums(), dtype=float)
    term_frequency = np.asarray(aligned.col_sums(), dtype=float)

    keep = doc_length > 0
    if not keep.all():
        logger.info(f"Leaving out {int((~keep).sum())} documents of length zero")

    return LDAvisInput(
        phi=model.topic_term.tolist(),
        theta=model.doc_topic[keep].tolist(),
        vocab=list(model.terms),
        doc_length=doc_length[keep].tolist(),
        term_frequency=term_frequency.tolist(),
    )


def ldavis_json(model: FittedTopicModel, dtm: DocumentTermMatrix, **prepare_kwargs) -> str:
    """JSON for the LDAvis viewer; keyword arguments go to ``pyLDAvis.prepare``."""
    data = ldavis_data(model, dtm)
    vis_data = pyLDAvis.prepare(
        topic_term_dists=np.array(data.phi),
        doc_topic_dists=np.array(data.theta),
        doc_lengths=np.array(data.doc_length),
        vocab=data.vocab,
        term_frequency=np.array(data.term_frequency),
        **prepare_kwargs,
    )
    return vis_data.to_json()
