"""Arrow/Parquet storage layer for model memory estimates.

This module handles data persistence and I/O operations, starting with Parquet.
"""
import logging
from typing import Any
from typing import Dict
from typing import Optional

import pyarrow as pa
import pyarrow.parquet as pq
import s3fs
from ml_job_analyzer.models.estimate import EstimationRecord

from .datasink import IDataSink

logger = logging.getLogger(__name__)


class ParquetSink(IDataSink):
    """
    A data sink that writes estimation records to a Parquet dataset.
    """

    def __init__(self, sink_location: str, log_location: Optional[str] = None):
        """
        Initializes the sink with a target location.
        :param sink_location: The root path for the Parquet dataset (e.g., 's3://my-bucket/my-path/').
        :param log_location: The root path for the Parquet logs.
        """
        self.sink_location = sink_location.rstrip("/")
        self.log_location = log_location.rstrip("/") if log_location else ""
        self.filesystem = (
            s3fs.S3FileSystem() if self.sink_location.startswith("s3://") else None
        )

    @staticmethod
    def _get_estimation_schema() -> pa.Schema:
        return pa.schema(
            [
                pa.field("job_id", pa.string(), nullable=True),
                pa.field("index_pattern", pa.string()),
                pa.field("time_field_name", pa.string()),
                pa.field("earliest_ms", pa.int64()),
                pa.field("latest_ms", pa.int64()),
                pa.field("bucket_span", pa.string()),
                pa.field("model_memory_limit", pa.string()),
                pa.field("estimated_model_memory_limit", pa.string()),
                pa.field("max_model_memory_limit", pa.string(), nullable=True),
                pa.field(
                    "overall_cardinality",
                    pa.map_(pa.string(), pa.int64()),
                    nullable=True,
                ),
                pa.field(
                    "max_bucket_cardinality",
                    pa.map_(pa.string(), pa.int64()),
                    nullable=True,
                ),
                pa.field("estimation_dt", pa.date32()),
            ]
        )

    def save(self, record: EstimationRecord) -> None:
        """
        Saves the estimation record to a partitioned Parquet dataset.
        The dataset is partitioned by 'estimation_dt'.
        """
        if not isinstance(record, EstimationRecord):
            raise TypeError("Data must be an EstimationRecord object")

        table_data = {key: [value] for key, value in record.to_dict().items()}
        # pyarrow builds map columns from lists of key/value pairs
        for column in ("overall_cardinality", "max_bucket_cardinality"):
            table_data[column] = [list(table_data[column][0].items())]
        table = pa.Table.from_pydict(table_data, schema=self._get_estimation_schema())

        logger.info(f"Writing estimation to {self.sink_location}")
        pq.write_to_dataset(
            table,
            root_path=self.sink_location,
            filesystem=self.filesystem,
            partition_cols=["estimation_dt"],
            existing_data_behavior="overwrite_or_ignore",
        )

    def log(self, log_entry: Dict[str, Any]) -> None:
        """Log the estimation processing status"""
        if not self.log_location:
            return

        log_schema = pa.schema(
            [
                pa.field("job_id", pa.string(), nullable=True),
                pa.field("index_pattern", pa.string()),
                pa.field("processed_timestamp", pa.timestamp("ms")),
                pa.field("processing_status", pa.string()),
                pa.field("failure_reason", pa.string(), nullable=True),
                pa.field("processed_date", pa.date32()),
            ]
        )

        log_table_data = {
            field.name: [log_entry.get(field.name)] for field in log_schema
        }

        table = pa.Table.from_pydict(log_table_data, schema=log_schema)
        logger.info(f"Writing processing logs to {self.log_location}")
        pq.write_to_dataset(
            table,
            root_path=self.log_location,
            filesystem=self.filesystem,
            partition_cols=["processed_date"],
            existing_data_behavior="overwrite_or_ignore",
        )
