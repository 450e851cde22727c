"""Tests for the model memory limit calculation pipeline."""

import pytest

from ml_job_analyzer.analytics.cardinality import SplitFieldCardinalityStrategy
from ml_job_analyzer.analytics.memory import MaxLimitClampStrategy
from ml_job_analyzer.estimator_service import MemoryEstimatorService
from ml_job_analyzer.estimator_service import ModelMemoryLimitError
from ml_job_analyzer.models.analysis_config import AnalysisConfig


def _service(source):
    return MemoryEstimatorService(
        source, SplitFieldCardinalityStrategy(), MaxLimitClampStrategy()
    )


def _calculate(source, config, **kwargs):
    return _service(source).calculate_model_memory_limit(
        AnalysisConfig.from_dict(config),
        "farequote",
        {"match_all": {}},
        "@timestamp",
        1000,
        2000,
        **kwargs,
    )


def test_estimate_below_max(fake_source, analysis_config_dict):
    result = _calculate(fake_source, analysis_config_dict)

    assert result.estimated_model_memory_limit == "21MB"
    assert result.model_memory_limit == "21MB"
    assert result.max_model_memory_limit == "1GB"
    assert result.to_dict() == {
        "model_memory_limit": "21MB",
        "estimated_model_memory_limit": "21MB",
        "max_model_memory_limit": "1GB",
    }


def test_cardinality_queries(fake_source, analysis_config_dict):
    _calculate(fake_source, analysis_config_dict)

    [overall_call] = fake_source.called("get_cardinality_of_fields")
    assert overall_call == (
        "get_cardinality_of_fields",
        "farequote",
        ["airline", "region"],
        {"match_all": {}},
        "@timestamp",
        1000,
        2000,
    )
    [max_bucket_call] = fake_source.called("get_max_bucket_cardinalities")
    assert max_bucket_call[2] == ["host"]
    assert max_bucket_call[-1] == "15m"

    [estimate_call] = fake_source.called("estimate_model_memory")
    _, analysis_config, overall, max_bucket = estimate_call
    assert analysis_config["bucket_span"] == "15m"
    assert analysis_config["categorization_field_name"] == "message"
    assert overall == {"airline": 19, "region": 4}
    assert max_bucket == {"host": 7}


def test_estimate_above_max_is_clamped(make_source, analysis_config_dict):
    source = make_source(
        ml_info={"limits": {"max_model_memory_limit": "512mb"}},
        model_memory_estimate="2gb",
    )

    result = _calculate(source, analysis_config_dict)

    assert result.estimated_model_memory_limit == "2GB"
    assert result.model_memory_limit == "512MB"
    assert result.max_model_memory_limit == "512MB"


def test_estimate_above_max_is_allowed(make_source, analysis_config_dict):
    source = make_source(
        ml_info={"limits": {"max_model_memory_limit": "512mb"}},
        model_memory_estimate="2gb",
    )

    result = _calculate(source, analysis_config_dict, allow_mml_greater_than_max=True)

    assert result.model_memory_limit == "2GB"


def test_no_max_model_memory_limit(make_source, analysis_config_dict):
    source = make_source(ml_info={"limits": {}}, model_memory_estimate="40gb")

    result = _calculate(source, analysis_config_dict)

    assert result.model_memory_limit == "40GB"
    assert result.max_model_memory_limit is None
    assert "max_model_memory_limit" not in result.to_dict()


def test_ml_info_failure(make_source, analysis_config_dict):
    cause = ConnectionError("cluster unavailable")
    source = make_source(ml_info_error=cause)

    with pytest.raises(ModelMemoryLimitError, match="Unable to retrieve max model memory limit") as exc:
        _calculate(source, analysis_config_dict)

    assert exc.value.__cause__ is cause
    assert source.called("estimate_model_memory") == []


def test_cardinality_queries_are_skipped_without_fields(make_source):
    source = make_source()
    config = {"bucket_span": "1h", "detectors": [{"function": "count"}], "influencers": []}

    result = _calculate(source, config)

    assert result.model_memory_limit == "12MB"
    assert source.called("get_cardinality_of_fields") == []
    assert source.called("get_max_bucket_cardinalities") == []
    [(_, _, overall, max_bucket)] = source.called("estimate_model_memory")
    assert overall == {}
    assert max_bucket == {}


def test_generate_estimate_returns_cardinalities(fake_source, analysis_config_dict):
    results = _service(fake_source).generate_estimate(
        AnalysisConfig.from_dict(analysis_config_dict),
        "farequote",
        None,
        "@timestamp",
        1000,
        2000,
    )

    assert results.cardinalities.overall_cardinality == {"airline": 19, "region": 4}
    assert results.cardinalities.max_bucket_cardinality == {"host": 7}
    assert results.estimate.model_memory_limit == "21MB"


def test_null_limits_mean_no_max(make_source, analysis_config_dict):
    source = make_source(ml_info={"limits": None}, model_memory_estimate="40gb")

    result = _calculate(source, analysis_config_dict)

    assert result.model_memory_limit == "40GB"
    assert result.max_model_memory_limit is None


def test_overall_fields_are_queried_in_detector_order(make_source):
    source = make_source()
    config = {
        "bucket_span": "1h",
        "detectors": [
            {"function": "count", "by_field_name": "zone"},
            {"function": "count", "by_field_name": "airline"},
        ],
        "influencers": ["zone", "user", "user"],
    }

    _calculate(source, config)

    [overall_call] = source.called("get_cardinality_of_fields")
    assert overall_call[2] == ["zone", "airline"]
    [max_bucket_call] = source.called("get_max_bucket_cardinalities")
    assert max_bucket_call[2] == ["user", "user"]
