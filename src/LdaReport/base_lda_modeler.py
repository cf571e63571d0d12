from abc import ABC, abstractmethod

from LdaReport.models import DocumentTermMatrix, FittedTopicModel, TopicModelConfig


class BaseLdaModeler(ABC):
    def __init__(self, model_config: TopicModelConfig):
        self._config = model_config

    @property
    def config(self) -> TopicModelConfig:
        return self._config

    def prepare_dtm(self, dtm: DocumentTermMatrix) -> DocumentTermMatrix:
        """Drop empty documents and unused terms before fitting."""
        return dtm.drop_empty()

    @abstractmethod
    def fit(self, dtm: DocumentTermMatrix) -> FittedTopicModel:
        pass
