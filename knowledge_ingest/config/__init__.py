"""Configuration module - exports Settings and load_config."""

from knowledge_ingest.config.loader import load_config
from knowledge_ingest.config.settings import Settings, is_placeholder

__all__ = ["Settings", "is_placeholder", "load_config"]
