# ml_job_analyzer/analytics/base.py
from abc import ABC
from abc import abstractmethod
from typing import List
from typing import Optional
from typing import Tuple

from ml_job_analyzer.models.analysis_config import AnalysisConfig


class BaseCardinalityStrategy(ABC):
    """Abstract base class for strategies choosing which fields need cardinality checks."""

    @abstractmethod
    def select_fields(self, analysis_config: AnalysisConfig) -> Tuple[List[str], List[str]]:
        """Returns the overall cardinality fields and the max bucket cardinality fields."""
        pass


class BaseMemoryLimitStrategy(ABC):
    """Abstract base class for strategies turning an estimate into a model memory limit."""

    @abstractmethod
    def resolve_limit(
        self,
        estimated_model_memory_limit: str,
        max_model_memory_limit: Optional[str],
        allow_mml_greater_than_max: bool = False,
    ) -> str:
        """Returns the model memory limit to use in the job configuration."""
        pass
