from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Dict
from typing import List
from typing import Optional


class IDataSource(ABC):
    """
    Interface for data sources that provide machine learning limits,
    field cardinalities and model memory estimates.
    """

    @abstractmethod
    def get_ml_info(self) -> Dict[str, Any]:
        """Get machine learning defaults and limits of the cluster."""
        pass

    @abstractmethod
    def get_aggregatable_fields(self, index: str, field_names: List[str]) -> List[str]:
        """Get the subset of field_names that can be aggregated on."""
        pass

    @abstractmethod
    def get_cardinality_of_fields(
        self,
        index: str,
        field_names: List[str],
        query: Optional[Dict[str, Any]],
        time_field_name: str,
        earliest_ms: int,
        latest_ms: int,
    ) -> Dict[str, int]:
        """Get the number of distinct values of each field over the time range."""
        pass

    @abstractmethod
    def get_max_bucket_cardinalities(
        self,
        index: str,
        field_names: List[str],
        query: Optional[Dict[str, Any]],
        time_field_name: str,
        earliest_ms: int,
        latest_ms: int,
        interval: str,
    ) -> Dict[str, int]:
        """Get the highest per-bucket number of distinct values of each field."""
        pass

    @abstractmethod
    def estimate_model_memory(
        self,
        analysis_config: Dict[str, Any],
        overall_cardinality: Dict[str, int],
        max_bucket_cardinality: Dict[str, int],
    ) -> Dict[str, Any]:
        """Get a model memory estimate for an analysis configuration."""
        pass
