from ml_job_analyzer import build_service_map
from ml_job_analyzer import estimate_model_memory_limit

# --- Example 1: Estimating the model memory limit of a job ---
try:
    print("--- Estimating model memory limit ---")
    result = estimate_model_memory_limit(
        analysis_config={
            "bucket_span": "15m",
            "detectors": [
                {"function": "mean", "field_name": "responsetime", "by_field_name": "airline"}
            ],
            "influencers": ["airline", "host"],
        },
        index_pattern="farequote-*",  # Replace with your index pattern
        time_field_name="@timestamp",
        earliest_ms=1454284800000,
        latest_ms=1454889600000,
        base_url="http://localhost:9200",
    )

    print("\n--- Estimation Complete ---")
    print(f"Model Memory Limit: {result.model_memory_limit}")
    print(f"Estimated Model Memory Limit: {result.estimated_model_memory_limit}")
    print(f"Max Model Memory Limit: {result.max_model_memory_limit}")

except Exception as e:
    print(f"An error occurred: {e}")

# --- Example 2: Laying out a service map ---
service_map = build_service_map(
    elements=[
        {"data": {"id": "frontend", "agent.name": "rum-js"}},
        {"data": {"id": "api", "agent.name": "python"}},
        {"data": {"id": "db"}},
        {"data": {"id": "frontend~api", "source": "frontend", "target": "api"}},
        {"data": {"id": "api~db", "source": "api", "target": "db"}},
    ],
    width=800,
    height=600,
    service_name="api",
)
for element in service_map["elements"]:
    print(element["data"]["id"], element.get("position"), element["classes"])
