import logging
from datetime import datetime
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import Union

from ml_job_analyzer.analytics.cardinality import SplitFieldCardinalityStrategy
from ml_job_analyzer.analytics.memory import MaxLimitClampStrategy
from ml_job_analyzer.collectors.elasticsearch import ElasticsearchClient
from ml_job_analyzer.config.settings import Settings
from ml_job_analyzer.estimator_service import MemoryEstimatorService
from ml_job_analyzer.models.analysis_config import AnalysisConfig
from ml_job_analyzer.models.estimate import EstimationRecord
from ml_job_analyzer.models.estimate import ModelMemoryEstimationResult
from ml_job_analyzer.service_map.cytoscape import ServiceMap
from ml_job_analyzer.storage.arrow_io import ParquetSink
from ml_job_analyzer.utils.aws import get_elasticsearch_url

logger = logging.getLogger(__name__)


def get_client(
    settings: Optional[Settings] = None,
    base_url: Optional[str] = None,
    domain_name: Optional[str] = None,
) -> ElasticsearchClient:
    """Build an Elasticsearch client from settings, an explicit URL or an AWS domain name."""
    settings = settings or Settings.load()
    if domain_name:
        final_base_url = get_elasticsearch_url(domain_name)
    elif base_url:
        final_base_url = base_url
    else:
        final_base_url = settings.elasticsearch_url

    return ElasticsearchClient(
        final_base_url,
        timeout=settings.timeout,
        username=settings.username,
        password=settings.password,
        api_key=settings.api_key,
        verify_certs=settings.verify_certs,
        sampler_shard_size=settings.sampler_shard_size,
    )


def estimate_model_memory_limit(
    analysis_config: Union[AnalysisConfig, Dict[str, Any]],
    index_pattern: str,
    time_field_name: str,
    earliest_ms: int,
    latest_ms: int,
    query: Optional[Dict[str, Any]] = None,
    allow_mml_greater_than_max: bool = False,
    base_url: Optional[str] = None,
    domain_name: Optional[str] = None,
    sink_path: Optional[str] = None,
    log_path: Optional[str] = None,
    job_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ModelMemoryEstimationResult:
    """
    A high-level function to estimate the model memory limit of an anomaly detection job.

    This function simplifies programmatic access by handling the initialization
    of all necessary components.

    :param analysis_config: The job's analysis_config, as a dict or AnalysisConfig.
    :param index_pattern: The index pattern the job's datafeed reads from.
    :param time_field_name: The time field of the source data.
    :param earliest_ms: Start of the time range used for cardinalities, in epoch ms.
    :param latest_ms: End of the time range used for cardinalities, in epoch ms.
    :param query: Optional datafeed query. Defaults to match_all.
    :param allow_mml_greater_than_max: Do not clamp the estimate to the cluster maximum.
    :param base_url: Elasticsearch URL. Defaults to the configured URL.
    :param domain_name: Optional AWS OpenSearch domain; its endpoint replaces base_url.
    :param sink_path: Optional path to save the estimation parquet file.
    :param log_path: Optional path to save processing logs.
    :param job_id: Optional job id stored with the saved estimation.
    :return: A ModelMemoryEstimationResult.
    """
    settings = settings or Settings.load()
    if isinstance(analysis_config, dict):
        analysis_config = AnalysisConfig.from_dict(analysis_config)
    if earliest_ms > latest_ms:
        raise ValueError("earliest_ms must not be after latest_ms")

    # 1. Initialize the data source
    source = get_client(settings, base_url=base_url, domain_name=domain_name)

    # 2. Initialize the estimator with the default strategies
    estimator = MemoryEstimatorService(
        source, SplitFieldCardinalityStrategy(), MaxLimitClampStrategy()
    )

    sink_path = sink_path or settings.sink_path
    log_path = log_path or settings.log_path
    sink = ParquetSink(sink_path, log_path) if sink_path else None

    # 3. Estimate
    try:
        results = estimator.generate_estimate(
            analysis_config,
            index_pattern,
            query,
            time_field_name,
            earliest_ms,
            latest_ms,
            allow_mml_greater_than_max,
        )
    except Exception as e:
        if sink:
            sink.log(_log_entry(job_id, index_pattern, "FAILED", str(e)))
        raise

    # 4. Optionally save the results
    if sink:
        estimate = results.estimate
        sink.save(
            EstimationRecord(
                job_id=job_id,
                index_pattern=index_pattern,
                time_field_name=time_field_name,
                earliest_ms=earliest_ms,
                latest_ms=latest_ms,
                bucket_span=analysis_config.bucket_span,
                model_memory_limit=estimate.model_memory_limit,
                estimated_model_memory_limit=estimate.estimated_model_memory_limit,
                max_model_memory_limit=estimate.max_model_memory_limit,
                overall_cardinality=results.cardinalities.overall_cardinality,
                max_bucket_cardinality=results.cardinalities.max_bucket_cardinality,
                estimation_dt=datetime.now().date(),
            )
        )
        sink.log(_log_entry(job_id, index_pattern, "SUCCEEDED"))
        logger.info("Saved estimation for %s to %s", job_id or index_pattern, sink_path)

    return results.estimate


def _log_entry(
    job_id: Optional[str],
    index_pattern: str,
    status: str,
    failure_reason: Optional[str] = None,
) -> Dict[str, Any]:
    now = datetime.now()
    return {
        "job_id": job_id,
        "index_pattern": index_pattern,
        "processed_timestamp": now,
        "processing_status": status,
        "failure_reason": failure_reason,
        "processed_date": now.date(),
    }


def build_service_map(
    elements: Iterable[Dict[str, Any]],
    width: float,
    height: float,
    service_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Lay out service map elements and return the Cytoscape JSON to render."""
    service_map = ServiceMap(elements, height=height, width=width, service_name=service_name)
    service_map.ready()
    result = service_map.to_cytoscape_json()
    service_map.destroy()
    return result
