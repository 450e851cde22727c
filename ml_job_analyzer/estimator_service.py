import logging
from typing import Any
from typing import Dict
from typing import Optional

from ml_job_analyzer.analytics.base import BaseCardinalityStrategy
from ml_job_analyzer.analytics.base import BaseMemoryLimitStrategy
from ml_job_analyzer.collectors.datasource import IDataSource
from ml_job_analyzer.models.analysis_config import AnalysisConfig
from ml_job_analyzer.models.estimate import Cardinalities
from ml_job_analyzer.models.estimate import EstimationResults
from ml_job_analyzer.models.estimate import ModelMemoryEstimationResult

logger = logging.getLogger(__name__)


class ModelMemoryLimitError(RuntimeError):
    """Raised when the cluster's machine learning limits cannot be retrieved."""


class MemoryEstimatorService:
    """Orchestrates the estimation of an anomaly detection job's model memory limit."""

    def __init__(
        self,
        datasource: IDataSource,
        cardinality_strategy: BaseCardinalityStrategy,
        memory_limit_strategy: BaseMemoryLimitStrategy,
    ):
        self.datasource = datasource
        self.cardinality_strategy = cardinality_strategy
        self.memory_limit_strategy = memory_limit_strategy

    def get_max_model_memory_limit(self) -> Optional[str]:
        """Returns the upper-cased max_model_memory_limit of the cluster, or None if unset."""
        try:
            info = self.datasource.get_ml_info()
        except Exception as e:
            raise ModelMemoryLimitError("Unable to retrieve max model memory limit") from e

        max_model_memory_limit = ((info or {}).get("limits") or {}).get(
            "max_model_memory_limit"
        )
        if max_model_memory_limit is None:
            return None
        return str(max_model_memory_limit).upper()

    def get_cardinalities(
        self,
        analysis_config: AnalysisConfig,
        index_pattern: str,
        query: Optional[Dict[str, Any]],
        time_field_name: str,
        earliest_ms: int,
        latest_ms: int,
    ) -> Cardinalities:
        """Retrieves overall and max bucket cardinalities."""
        (
            overall_cardinality_fields,
            max_bucket_cardinality_fields,
        ) = self.cardinality_strategy.select_fields(analysis_config)
        cardinalities = Cardinalities()

        if overall_cardinality_fields:
            cardinalities.overall_cardinality = self.datasource.get_cardinality_of_fields(
                index_pattern,
                overall_cardinality_fields,
                query,
                time_field_name,
                earliest_ms,
                latest_ms,
            )

        if max_bucket_cardinality_fields:
            cardinalities.max_bucket_cardinality = (
                self.datasource.get_max_bucket_cardinalities(
                    index_pattern,
                    max_bucket_cardinality_fields,
                    query,
                    time_field_name,
                    earliest_ms,
                    latest_ms,
                    analysis_config.bucket_span,
                )
            )

        logger.debug(
            f"Cardinalities for {index_pattern}: overall={cardinalities.overall_cardinality} "
            f"max_bucket={cardinalities.max_bucket_cardinality}"
        )
        return cardinalities

    def generate_estimate(
        self,
        analysis_config: AnalysisConfig,
        index_pattern: str,
        query: Optional[Dict[str, Any]],
        time_field_name: str,
        earliest_ms: int,
        latest_ms: int,
        allow_mml_greater_than_max: bool = False,
    ) -> EstimationResults:
        """
        Fetches the max limit and cardinalities, calls the estimation endpoint and
        returns an results object containing both the estimate and the cardinalities used.
        """
        # 1. Max model memory limit of the cluster
        max_model_memory_limit = self.get_max_model_memory_limit()

        # 2. Cardinalities of the split fields and influencers
        cardinalities = self.get_cardinalities(
            analysis_config,
            index_pattern,
            query,
            time_field_name,
            earliest_ms,
            latest_ms,
        )

        # 3. Remote estimate
        estimate = self.datasource.estimate_model_memory(
            analysis_config.to_dict(),
            cardinalities.overall_cardinality,
            cardinalities.max_bucket_cardinality,
        )
        estimated_model_memory_limit = estimate["model_memory_estimate"].upper()

        # 4. Clamp to the max unless explicitly allowed
        model_memory_limit = self.memory_limit_strategy.resolve_limit(
            estimated_model_memory_limit,
            max_model_memory_limit,
            allow_mml_greater_than_max,
        )

        return EstimationResults(
            estimate=ModelMemoryEstimationResult(
                model_memory_limit=model_memory_limit,
                estimated_model_memory_limit=estimated_model_memory_limit,
                max_model_memory_limit=max_model_memory_limit,
            ),
            cardinalities=cardinalities,
        )

    def calculate_model_memory_limit(
        self,
        analysis_config: AnalysisConfig,
        index_pattern: str,
        query: Optional[Dict[str, Any]],
        time_field_name: str,
        earliest_ms: int,
        latest_ms: int,
        allow_mml_greater_than_max: bool = False,
    ) -> ModelMemoryEstimationResult:
        """
        Retrieves an estimated size of the model memory limit used in the job config
        based on the cardinality of the fields being used to split the data
        and influencers.
        """
        return self.generate_estimate(
            analysis_config,
            index_pattern,
            query,
            time_field_name,
            earliest_ms,
            latest_ms,
            allow_mml_greater_than_max,
        ).estimate
