from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Dict

from ml_job_analyzer.models.estimate import EstimationRecord


class IDataSink(ABC):
    """Where estimation records and processing status entries are written."""

    @abstractmethod
    def save(self, record: EstimationRecord) -> None:
        """Persist one model memory estimation."""
        pass

    @abstractmethod
    def log(self, log_entry: Dict[str, Any]) -> None:
        """Record whether an estimation for a job succeeded or failed."""
        pass
