"""Runtime configuration for the ML Job Analyzer.

Settings are resolved in this order (highest wins):
- ``ML_ANALYZER_*`` environment variables
- a YAML file (``config.yaml`` in the working directory by default)
- the dataclass defaults below
"""
import logging
import os
from dataclasses import dataclass
from dataclasses import fields
from pathlib import Path
from typing import Any
from typing import Dict
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
ENV_PREFIX = "ML_ANALYZER_"

# Shard size of the sampler aggregation wrapping max bucket cardinality queries
SAMPLER_TOP_TERMS_SHARD_SIZE = 50000


@dataclass
class Settings:
    elasticsearch_url: str = "http://localhost:9200"
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    verify_certs: bool = False
    timeout: int = 30
    sampler_shard_size: int = SAMPLER_TOP_TERMS_SHARD_SIZE
    sink_path: Optional[str] = None
    log_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """Load settings from YAML and apply environment overrides."""
        config_path = Path(path or DEFAULT_CONFIG_PATH)
        data: Dict[str, Any] = {}
        if config_path.is_file():
            with config_path.open(encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Invalid configuration in {config_path}: expected a mapping")
            data.update(loaded)
        elif path:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        data.update(_env_overrides())
        return cls.from_dict(data)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for f in fields(Settings):
        raw = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is None:
            continue
        if f.type in (bool, "bool"):
            overrides[f.name] = raw.strip().lower() in ("1", "true", "yes")
        elif f.type in (int, "int"):
            overrides[f.name] = int(raw)
        else:
            overrides[f.name] = raw
    return overrides
