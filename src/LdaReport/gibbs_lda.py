import numpy as np
import polars as pl
import pydantic
import tomotopy as tp

from LdaReport.base_lda_modeler import BaseLdaModeler
from LdaReport.logging_config import get_logger
from LdaReport.models import DocumentTermMatrix, FittedTopicModel, TopicModelConfig

logger = get_logger(__name__)


class LdaConfig(TopicModelConfig):
    algorithm: str = "LDA-Gibbs"
    num_topics: int = pydantic.Field(default=50, gt=0)
    num_iterations: int = pydantic.Field(default=500, gt=0)
    alpha: float | None = None
    "Document-topic prior; None means 50 / num_topics"
    eta: float = 0.01
    burn_in: int = 250
    "Iterations before hyperparameter optimisation starts (only with optimize_alpha)"
    optimize_alpha: bool = False
    seed: int | None = None

    @property
    def effective_alpha(self) -> float:
        return self.alpha if self.alpha is not None else 50 / self.num_topics


class GibbsLdaModeler(BaseLdaModeler):
    """Collapsed Gibbs sampling LDA backed by tomotopy."""

    _config: LdaConfig

    def __init__(self, model_config: LdaConfig | None = None):
        super().__init__(model_config or LdaConfig())

    def fit(self, dtm: DocumentTermMatrix) -> FittedTopicModel:
        config = self._config
        dtm = self.prepare_dtm(dtm)
        logger.info(
            f"Fitting LDA: K={config.num_topics}, {len(dtm.documents)} documents, "
            f"{len(dtm.terms)} terms, {config.num_iterations} iterations"
        )

        kwargs = {}
        if config.seed is not None:
            kwargs["seed"] = config.seed
        mdl = tp.LDAModel(
            k=config.num_topics, alpha=config.effective_alpha, eta=config.eta, **kwargs
        )
        mdl.burn_in = config.burn_in
        mdl.optim_interval = 10 if config.optimize_alpha else 0

        for tokens in _expand_tokens(dtm):
            mdl.add_doc(tokens)
        mdl.train(config.num_iterations, workers=1)
        logger.info(f"Training done, log-likelihood per word {mdl.ll_per_word:.4f}")

        return _to_fitted_model(mdl, dtm.documents)


def fit_lda(dtm: DocumentTermMatrix, **config) -> FittedTopicModel:
    """Fit a Gibbs LDA model on ``dtm``; keyword arguments go to ``LdaConfig``."""
    return GibbsLdaModeler(LdaConfig(**config)).fit(dtm)


def _expand_tokens(dtm: DocumentTermMatrix):
    """Yield each document as a token list, repeating terms by their count."""
    matrix = dtm.matrix
    for i in range(matrix.shape[0]):
        start, end = matrix.indptr[i], matrix.indptr[i + 1]
        tokens: list[str] = []
        for j, count in zip(matrix.indices[start:end], matrix.data[start:end]):
            tokens.extend([dtm.terms[j]] * int(count))
        yield tokens


def _to_fitted_model(mdl: tp.LDAModel, documents: list[str]) -> FittedTopicModel:
    terms = list(mdl.used_vocabs)
    topic_term = np.array([mdl.get_topic_word_dist(k) for k in range(mdl.k)])
    doc_topic = np.array([doc.get_topic_dist() for doc in mdl.docs])

    words = [np.asarray(doc.words, dtype=np.int64) for doc in mdl.docs]
    tokens = pl.DataFrame(
        {
            "doc": np.repeat(np.arange(len(words)), [len(w) for w in words]),
            "term": np.concatenate(words),
            "topic": np.concatenate(
                [np.asarray(doc.topics, dtype=np.int64) for doc in mdl.docs]
            ),
        }
    )
    # One topic per unique term in a document: the most frequent one,
    # ties going to the lowest topic number.
    assignments = (
        tokens.group_by(["doc", "term", "topic"])
        .len()
        .sort(["doc", "term", "len", "topic"], descending=[False, False, True, False])
        .unique(subset=["doc", "term"], keep="first", maintain_order=True)
        .select("doc", "term", pl.col("topic") + 1)
    )
    logger.info(
        f"Collapsed {tokens.height} token assignments into {assignments.height} word assignments"
    )

    return FittedTopicModel(
        documents=documents,
        terms=terms,
        assignments=assignments,
        topic_term=topic_term,
        doc_topic=doc_topic,
    )
