"""Shared fixtures for the test suite."""

from typing import Any
from typing import Dict
from typing import List
from typing import Optional

import pytest

from ml_job_analyzer.collectors.datasource import IDataSource
from ml_job_analyzer.config.settings import Settings


class FakeDataSource(IDataSource):
    """In-memory data source recording the calls made to it."""

    def __init__(
        self,
        ml_info: Optional[Dict[str, Any]] = None,
        overall_cardinality: Optional[Dict[str, int]] = None,
        max_bucket_cardinality: Optional[Dict[str, int]] = None,
        model_memory_estimate: str = "12mb",
        ml_info_error: Optional[Exception] = None,
    ):
        self.ml_info = ml_info if ml_info is not None else {"limits": {}}
        self.overall_cardinality = overall_cardinality or {}
        self.max_bucket_cardinality = max_bucket_cardinality or {}
        self.model_memory_estimate = model_memory_estimate
        self.ml_info_error = ml_info_error
        self.calls: List[tuple] = []

    def get_ml_info(self) -> Dict[str, Any]:
        self.calls.append(("get_ml_info",))
        if self.ml_info_error:
            raise self.ml_info_error
        return self.ml_info

    def get_aggregatable_fields(self, index: str, field_names: List[str]) -> List[str]:
        self.calls.append(("get_aggregatable_fields", index, field_names))
        return list(field_names)

    def get_cardinality_of_fields(
        self, index, field_names, query, time_field_name, earliest_ms, latest_ms
    ) -> Dict[str, int]:
        self.calls.append(
            (
                "get_cardinality_of_fields",
                index,
                field_names,
                query,
                time_field_name,
                earliest_ms,
                latest_ms,
            )
        )
        return {f: self.overall_cardinality.get(f, 0) for f in field_names}

    def get_max_bucket_cardinalities(
        self, index, field_names, query, time_field_name, earliest_ms, latest_ms, interval
    ) -> Dict[str, int]:
        self.calls.append(
            (
                "get_max_bucket_cardinalities",
                index,
                field_names,
                query,
                time_field_name,
                earliest_ms,
                latest_ms,
                interval,
            )
        )
        return {f: self.max_bucket_cardinality.get(f, 0) for f in field_names}

    def estimate_model_memory(
        self, analysis_config, overall_cardinality, max_bucket_cardinality
    ) -> Dict[str, Any]:
        self.calls.append(
            (
                "estimate_model_memory",
                analysis_config,
                overall_cardinality,
                max_bucket_cardinality,
            )
        )
        return {"model_memory_estimate": self.model_memory_estimate}

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_source():
    return FakeDataSource(
        ml_info={"limits": {"max_model_memory_limit": "1gb"}},
        overall_cardinality={"airline": 19, "region": 4},
        max_bucket_cardinality={"host": 7},
        model_memory_estimate="21mb",
    )


@pytest.fixture
def analysis_config_dict():
    return {
        "bucket_span": "15m",
        "detectors": [
            {
                "function": "mean",
                "field_name": "responsetime",
                "by_field_name": "airline",
                "partition_field_name": "region",
            },
            {"function": "count", "by_field_name": "mlcategory"},
        ],
        "influencers": ["airline", "host", "mlcategory"],
        "categorization_field_name": "message",
    }


@pytest.fixture
def settings():
    return Settings(elasticsearch_url="http://es.example:9200")


@pytest.fixture
def service_map_elements():
    return [
        {"data": {"id": "frontend", "agent.name": "rum-js"}},
        {"data": {"id": "api", "agent.name": "python"}},
        {"data": {"id": "db"}},
        {"data": {"id": "frontend~api", "source": "frontend", "target": "api"}},
        {"data": {"id": "api~db", "source": "api", "target": "db"}},
    ]


@pytest.fixture
def make_source():
    return FakeDataSource
