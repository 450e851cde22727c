"""Data models for anomaly detection job analysis configurations.

Field names match the Elasticsearch job API so that ``to_dict`` can be sent
unchanged to the ``_estimate_model_memory`` endpoint.
"""

from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from typing import Any
from typing import Dict
from typing import List
from typing import Optional


@dataclass
class Detector:
    """Represents a single detector of an analysis configuration."""

    function: str
    field_name: Optional[str] = field(default=None)
    by_field_name: Optional[str] = field(default=None)
    over_field_name: Optional[str] = field(default=None)
    partition_field_name: Optional[str] = field(default=None)
    detector_description: Optional[str] = field(default=None)
    exclude_frequent: Optional[str] = field(default=None)
    use_null: Optional[bool] = field(default=None)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def split_fields(self) -> List[Optional[str]]:
        """The fields that split the data of this detector."""
        return [self.by_field_name, self.partition_field_name, self.over_field_name]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Detector":
        """Create Detector from the job API representation."""
        known = {f.name for f in fields(cls)} - {"extra"}
        return cls(
            **{k: v for k, v in data.items() if k in known},
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the job API representation, dropping unset fields."""
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        result.update(self.extra)
        return result


@dataclass
class AnalysisConfig:
    """Represents the analysis_config block of an anomaly detection job."""

    bucket_span: str
    detectors: List[Detector]
    influencers: List[str] = field(default_factory=list)
    categorization_field_name: Optional[str] = field(default=None)
    summary_count_field_name: Optional[str] = field(default=None)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """Create AnalysisConfig from dictionary with nested detector conversion."""
        if "bucket_span" not in data:
            raise ValueError("analysis_config.bucket_span is required")
        if not data.get("detectors"):
            raise ValueError("analysis_config.detectors must contain at least one detector")

        known = {f.name for f in fields(cls)} - {"extra", "detectors"}
        detectors = [
            Detector.from_dict(detector) if isinstance(detector, dict) else detector
            for detector in data["detectors"]
        ]
        return cls(
            detectors=detectors,
            **{k: v for k, v in data.items() if k in known},
            extra={
                k: v for k, v in data.items() if k not in known and k != "detectors"
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the job API representation."""
        result: Dict[str, Any] = {
            "bucket_span": self.bucket_span,
            "detectors": [detector.to_dict() for detector in self.detectors],
            "influencers": list(self.influencers),
        }
        if self.categorization_field_name is not None:
            result["categorization_field_name"] = self.categorization_field_name
        if self.summary_count_field_name is not None:
            result["summary_count_field_name"] = self.summary_count_field_name
        result.update(self.extra)
        return result
