"""ML Job Analyzer: model memory limit estimation for anomaly detection jobs
and service map layout for Cytoscape front ends."""

__version__ = "0.1.0"

from ml_job_analyzer.api import build_service_map  # noqa: E402
from ml_job_analyzer.api import estimate_model_memory_limit  # noqa: E402

__all__ = ["build_service_map", "estimate_model_memory_limit", "__version__"]
