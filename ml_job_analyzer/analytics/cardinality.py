from typing import FrozenSet
from typing import List
from typing import Tuple

from ml_job_analyzer.models.analysis_config import AnalysisConfig

from .base import BaseCardinalityStrategy

# The keyword used for the output of categorization, so it has
# cardinality zero in the actual input data.
ML_CATEGORY_FIELD = "mlcategory"


class SplitFieldCardinalityStrategy(BaseCardinalityStrategy):
    """
    Selects the by, partition and over fields of all detectors for the overall
    cardinality check, and the remaining influencers for the max bucket check.
    """

    def __init__(self, excluded_keywords: FrozenSet[str] = frozenset({ML_CATEGORY_FIELD})):
        self.excluded_keywords = excluded_keywords

    def _is_candidate(self, field_name) -> bool:
        return (
            isinstance(field_name, str)
            and field_name != ""
            and field_name not in self.excluded_keywords
        )

    def select_fields(self, analysis_config: AnalysisConfig) -> Tuple[List[str], List[str]]:
        # Split fields are counted once each, in the order the detectors name them
        overall_cardinality_fields = list(
            dict.fromkeys(
                field_name
                for detector in analysis_config.detectors
                for field_name in detector.split_fields
                if self._is_candidate(field_name)
            )
        )
        max_bucket_cardinality_fields = [
            influencer
            for influencer in analysis_config.influencers or []
            if self._is_candidate(influencer)
            and influencer not in overall_cardinality_fields
        ]
        return overall_cardinality_fields, max_bucket_cardinality_fields
