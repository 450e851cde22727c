"""Elasticsearch client for collecting field cardinalities and ML memory estimates."""
import logging
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

import requests
from ml_job_analyzer.config.settings import SAMPLER_TOP_TERMS_SHARD_SIZE
from ml_job_analyzer.utils.conversions import aggregation_names

from .datasource import IDataSource

logger = logging.getLogger(__name__)

DATE_HISTOGRAM_AGG_NAME = "bucket_span_buckets"
MAX_BUCKET_AGG_SUFFIX = "_bucket_max_value"


def _time_range_query(
    query: Optional[Dict[str, Any]],
    time_field_name: str,
    earliest_ms: int,
    latest_ms: int,
) -> List[Dict[str, Any]]:
    """Criteria restricting the user query to the requested time range."""
    return [
        {
            "range": {
                time_field_name: {
                    "gte": earliest_ms,
                    "lte": latest_ms,
                    "format": "epoch_millis",
                }
            }
        },
        query or {"match_all": {}},
    ]


class ElasticsearchClient(IDataSource):
    """Client for interacting with the Elasticsearch REST API. This is a pure data collector."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        username: Optional[str] = None,
        password: Optional[str] = None,
        api_key: Optional[str] = None,
        verify_certs: bool = False,
        sampler_shard_size: int = SAMPLER_TOP_TERMS_SHARD_SIZE,
    ):
        """base_url like http://<host>:9200."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.sampler_shard_size = sampler_shard_size
        self.session = requests.Session()
        self.session.verify = verify_certs
        self.session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self.session.headers["Authorization"] = f"ApiKey {api_key}"
        elif username:
            self.session.auth = (username, password or "")

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> dict:
        """Send a request to Elasticsearch and return the decoded JSON response"""
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(
                method, url, params=params, json=body, timeout=self.timeout
            )
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to {method} {url}: {e}")
            raise e

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> dict:
        return self._request("GET", path, params=params)

    def _post(
        self,
        path: str,
        body: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
    ) -> dict:
        return self._request("POST", path, params=params, body=body)

    def get_ml_info(self) -> Dict[str, Any]:
        """Get machine learning info, including limits.max_model_memory_limit"""
        return self._get("/_ml/info")

    def get_aggregatable_fields(self, index: str, field_names: List[str]) -> List[str]:
        """Keep the fields whose first mapped type is aggregatable, in input order"""
        if not field_names:
            return []
        field_caps = self._get(
            f"/{index}/_field_caps", params={"fields": ",".join(field_names)}
        ).get("fields", {})
        aggregatable = []
        for field_name in field_names:
            type_caps = list(field_caps.get(field_name, {}).values())
            if type_caps and type_caps[0].get("aggregatable") is True:
                aggregatable.append(field_name)
            else:
                logger.debug(f"Field {field_name} is not aggregatable in {index}")
        return aggregatable

    def get_cardinality_of_fields(
        self,
        index: str,
        field_names: List[str],
        query: Optional[Dict[str, Any]],
        time_field_name: str,
        earliest_ms: int,
        latest_ms: int,
    ) -> Dict[str, int]:
        """Get the overall cardinality of each aggregatable field"""
        aggregatable_fields = self.get_aggregatable_fields(index, field_names)
        if not aggregatable_fields:
            return {}

        agg_names = aggregation_names(aggregatable_fields)
        aggs = {
            agg_name: {"cardinality": {"field": field_name}}
            for field_name, agg_name in agg_names.items()
        }
        body = {
            "query": {
                "bool": {
                    "must": _time_range_query(
                        query, time_field_name, earliest_ms, latest_ms
                    )
                }
            },
            "size": 0,
            "_source": {"excludes": []},
            "aggs": aggs,
        }
        aggregations = self._post(f"/{index}/_search", body).get("aggregations")
        if not aggregations:
            return {}

        return {
            field_name: aggregations.get(agg_name, {}).get("value", 0)
            for field_name, agg_name in agg_names.items()
        }

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
        """Get the largest cardinality of each field within a single bucket of size interval"""
        if not field_names:
            return {}
        aggregatable_fields = self.get_aggregatable_fields(index, field_names)
        if not aggregatable_fields:
            return {}

        agg_names = aggregation_names(aggregatable_fields)
        field_cardinality_aggs = {
            agg_name: {"cardinality": {"field": field_name}}
            for field_name, agg_name in agg_names.items()
        }
        max_bucket_aggs = {
            f"{agg_name}{MAX_BUCKET_AGG_SUFFIX}": {
                "max_bucket": {"buckets_path": f"{DATE_HISTOGRAM_AGG_NAME}>{agg_name}"}
            }
            for agg_name in agg_names.values()
        }
        body = {
            "query": {
                "bool": {
                    "filter": _time_range_query(
                        query, time_field_name, earliest_ms, latest_ms
                    )
                }
            },
            "size": 0,
            "aggs": {
                "sampler": {
                    "sampler": {"shard_size": self.sampler_shard_size},
                    "aggs": {
                        DATE_HISTOGRAM_AGG_NAME: {
                            "date_histogram": {
                                "field": time_field_name,
                                "fixed_interval": interval,
                            },
                            "aggs": field_cardinality_aggs,
                        },
                        **max_bucket_aggs,
                    },
                }
            },
        }
        aggregations = self._post(f"/{index}/_search", body).get("aggregations") or {}
        sampler = aggregations.get("sampler", {})

        # max_bucket reports doubles, and null when the histogram has no buckets
        return {
            field_name: int(
                sampler.get(f"{agg_name}{MAX_BUCKET_AGG_SUFFIX}", {}).get("value") or 0
            )
            for field_name, agg_name in agg_names.items()
        }

    def estimate_model_memory(
        self,
        analysis_config: Dict[str, Any],
        overall_cardinality: Dict[str, int],
        max_bucket_cardinality: Dict[str, int],
    ) -> Dict[str, Any]:
        """Call the anomaly detectors model memory estimation endpoint"""
        body = {
            "analysis_config": analysis_config,
            "overall_cardinality": overall_cardinality,
            "max_bucket_cardinality": max_bucket_cardinality,
        }
        return self._post("/_ml/anomaly_detectors/_estimate_model_memory", body)
