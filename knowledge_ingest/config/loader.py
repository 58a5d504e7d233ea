"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - Static defaults checked into the repo
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# Settings-derived values on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from knowledge_ingest.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "storage": {
            "bucket": settings.s3_bucket_name,
            "region": settings.aws_region,
            "upload_prefix": settings.s3_upload_prefix,
            "presigned_url_expiry": settings.presigned_url_expiry,
        },
        "embedding": {
            "model": settings.openai_embedding_model or "text-embedding-3-small",
            "dimension": settings.embedding_dimension,
        },
        "vector_store": {
            "backend": settings.vector_store_backend,
            "metric": settings.vector_metric,
        },
        "ingestion": {
            "stage_to_disk": settings.ingest_stage_to_disk,
            "concurrency": settings.ingest_concurrency,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
