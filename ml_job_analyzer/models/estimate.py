from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from typing import Any
from typing import Dict
from typing import Optional


@dataclass
class Cardinalities:
    """Overall and max bucket cardinalities of the fields used by a job."""

    overall_cardinality: Dict[str, int] = field(default_factory=dict)
    max_bucket_cardinality: Dict[str, int] = field(default_factory=dict)


@dataclass
class ModelMemoryEstimationResult:
    """
    Result of a model memory limit calculation.

    estimated_model_memory_limit is the raw value returned by the estimation
    endpoint; model_memory_limit is the value to put in the job config, which
    is clamped to max_model_memory_limit unless that was explicitly allowed.
    """

    model_memory_limit: str
    estimated_model_memory_limit: str
    max_model_memory_limit: Optional[str] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization, omitting an unknown max."""
        result = asdict(self)
        if not self.max_model_memory_limit:
            result.pop("max_model_memory_limit")
        return result


@dataclass
class EstimationResults:
    estimate: ModelMemoryEstimationResult
    cardinalities: Cardinalities


@dataclass
class EstimationRecord:
    """A persisted estimation run, as written by the Parquet sink."""

    job_id: Optional[str]
    index_pattern: str
    time_field_name: str
    earliest_ms: int
    latest_ms: int
    bucket_span: str
    model_memory_limit: str
    estimated_model_memory_limit: str
    max_model_memory_limit: Optional[str]
    overall_cardinality: Dict[str, int]
    max_bucket_cardinality: Dict[str, int]
    estimation_dt: date

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)
