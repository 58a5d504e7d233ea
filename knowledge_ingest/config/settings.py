"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Settings are read from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g. PINECONE_API_KEY=pc-abc123
#   2. **.env file** - key=value lines in the project root .env file
#
# Field name `s3_bucket_name` maps to env var `S3_BUCKET_NAME`.
# Defaults are used when neither source sets a field.
#
# Values copied verbatim from a template (``YOUR_API_KEY``,
# ``your-bucket-name``) are treated as unset by the ``*_configured``
# helpers so a half-edited .env never reaches a real SDK.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_PREFIXES = ("your_", "your-", "changeme")


def is_placeholder(value: str) -> bool:
    """Return ``True`` for empty strings and template placeholder values."""
    stripped = value.strip()
    return not stripped or stripped.lower().startswith(_PLACEHOLDER_PREFIXES)


class Settings(BaseSettings):
    """knowledge-ingest application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Object storage (S3) ===
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    s3_bucket_name: str = ""
    s3_upload_prefix: str = "uploads"
    presigned_url_expiry: int = 300  # seconds

    # === Embeddings ===
    # Empty key = "not configured" → main.py falls back to Nomic via Ollama.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_embedding_model: str = ""  # Defaults to text-embedding-3-small
    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "nomic-embed-text"
    # 0 = trust the provider's declared dimension.
    embedding_dimension: int = 0

    # === Vector index ===
    vector_store_backend: str = "chromadb"  # "chromadb" | "pinecone"
    vector_metric: str = "cosine"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "knowledge_base"
    pinecone_api_key: str = ""
    pinecone_index_name: str = "knowledge-base"
    pinecone_cloud: str = "aws"
    pinecone_region: str = "us-east-1"
    pinecone_namespace: str = ""

    # === Ingestion ===
    # Stage downloaded bytes to a temp file and parse by path instead of in memory.
    ingest_stage_to_disk: bool = False
    ingest_concurrency: int = 4

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8001
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("vector_store_backend", "vector_metric")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    def s3_configured(self) -> bool:
        """Return ``True`` when a real bucket name is set."""
        return not is_placeholder(self.s3_bucket_name)

    def pinecone_configured(self) -> bool:
        """Return ``True`` when a real Pinecone API key is set."""
        return not is_placeholder(self.pinecone_api_key)

    def openai_configured(self) -> bool:
        """Return ``True`` when a real OpenAI API key is set."""
        return not is_placeholder(self.openai_api_key)
