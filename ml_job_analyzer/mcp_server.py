import json
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from mcp.server.fastmcp import FastMCP

from ml_job_analyzer.api import build_service_map
from ml_job_analyzer.api import estimate_model_memory_limit as _estimate_model_memory_limit
from ml_job_analyzer.api import get_client
from ml_job_analyzer.utils.conversions import convert_dt_to_ms
from ml_job_analyzer.utils.logging import configure_logging

# Initialize FastMCP server
mcp = FastMCP("ml-job-analyzer")


@mcp.tool()
def estimate_model_memory_limit(
    analysis_config: Dict[str, Any],
    index_pattern: str,
    time_field_name: str,
    earliest: str,
    latest: str,
    query: Optional[Dict[str, Any]] = None,
    allow_mml_greater_than_max: bool = False,
    base_url: Optional[str] = None,
) -> str:
    """
    Estimate the model memory limit of an anomaly detection job.

    Args:
        analysis_config: The job's analysis_config (bucket_span, detectors, influencers).
        index_pattern: Index pattern of the source data.
        time_field_name: Time field of the source data.
        earliest: Start of the time range, ISO 8601 or epoch milliseconds.
        latest: End of the time range, ISO 8601 or epoch milliseconds.
        query: Optional datafeed query. Defaults to match_all.
        allow_mml_greater_than_max: Do not cap the estimate at the cluster maximum.
        base_url: Elasticsearch URL. Defaults to the configured URL.
    """
    try:
        result = _estimate_model_memory_limit(
            analysis_config=analysis_config,
            index_pattern=index_pattern,
            time_field_name=time_field_name,
            earliest_ms=convert_dt_to_ms(earliest),
            latest_ms=convert_dt_to_ms(latest),
            query=query,
            allow_mml_greater_than_max=allow_mml_greater_than_max,
            base_url=base_url,
        )
        return json.dumps(result.to_dict(), indent=2)
    except Exception as e:
        return f"Error estimating model memory limit: {str(e)}"


@mcp.tool()
def get_ml_info(base_url: Optional[str] = None) -> str:
    """
    Get machine learning defaults and limits of the Elasticsearch cluster.

    Args:
        base_url: Elasticsearch URL. Defaults to the configured URL.
    """
    try:
        return json.dumps(get_client(base_url=base_url).get_ml_info(), indent=2)
    except Exception as e:
        return f"Error getting ML info: {str(e)}"


@mcp.tool()
def get_field_cardinality(
    index_pattern: str,
    field_names: List[str],
    time_field_name: str,
    earliest: str,
    latest: str,
    bucket_span: Optional[str] = None,
    query: Optional[Dict[str, Any]] = None,
    base_url: Optional[str] = None,
) -> str:
    """
    Get the number of distinct values of fields over a time range.

    Args:
        index_pattern: Index pattern of the source data.
        field_names: Fields to count distinct values of.
        time_field_name: Time field of the source data.
        earliest: Start of the time range, ISO 8601 or epoch milliseconds.
        latest: End of the time range, ISO 8601 or epoch milliseconds.
        bucket_span: If given, also return the maximum cardinality within one bucket of this span.
        query: Optional query. Defaults to match_all.
        base_url: Elasticsearch URL. Defaults to the configured URL.
    """
    try:
        client = get_client(base_url=base_url)
        earliest_ms, latest_ms = convert_dt_to_ms(earliest), convert_dt_to_ms(latest)
        response = {
            "overall_cardinality": client.get_cardinality_of_fields(
                index_pattern, field_names, query, time_field_name, earliest_ms, latest_ms
            )
        }
        if bucket_span:
            response["max_bucket_cardinality"] = client.get_max_bucket_cardinalities(
                index_pattern,
                field_names,
                query,
                time_field_name,
                earliest_ms,
                latest_ms,
                bucket_span,
            )
        return json.dumps(response, indent=2)
    except Exception as e:
        return f"Error getting field cardinality: {str(e)}"


@mcp.tool()
def layout_service_map(
    elements: List[Dict[str, Any]],
    width: float,
    height: float,
    service_name: Optional[str] = None,
) -> str:
    """
    Lay out service map elements left to right and return Cytoscape JSON.

    Args:
        elements: Cytoscape element definitions ({"data": {"id": ...}} for nodes,
            {"data": {"id": ..., "source": ..., "target": ...}} for edges).
        width: Container width in pixels.
        height: Container height in pixels.
        service_name: Optional service to highlight and center on.
    """
    try:
        result = build_service_map(elements, width=width, height=height, service_name=service_name)
        return json.dumps(result, indent=2)
    except Exception as e:
        return f"Error laying out service map: {str(e)}"


def main():
    configure_logging("WARNING")
    mcp.run()


if __name__ == "__main__":
    main()
