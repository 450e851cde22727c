import logging
from typing import Optional

from ml_job_analyzer.utils.conversions import format_megabytes
from ml_job_analyzer.utils.conversions import parse_byte_size

from .base import BaseMemoryLimitStrategy

logger = logging.getLogger(__name__)


class MaxLimitClampStrategy(BaseMemoryLimitStrategy):
    """
    Uses the estimated model memory as the limit, capped at the cluster's
    max_model_memory_limit when one is set.
    """

    def resolve_limit(
        self,
        estimated_model_memory_limit: str,
        max_model_memory_limit: Optional[str],
        allow_mml_greater_than_max: bool = False,
    ) -> str:
        if allow_mml_greater_than_max or max_model_memory_limit is None:
            return estimated_model_memory_limit

        max_bytes = parse_byte_size(max_model_memory_limit)
        mml_bytes = parse_byte_size(estimated_model_memory_limit)
        if mml_bytes > max_bytes:
            model_memory_limit = format_megabytes(max_bytes)
            logger.info(
                f"Estimated model memory limit {estimated_model_memory_limit} exceeds "
                f"the maximum {max_model_memory_limit}, using {model_memory_limit}"
            )
            return model_memory_limit
        return estimated_model_memory_limit
