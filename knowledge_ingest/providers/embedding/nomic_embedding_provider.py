"""Local embedding adapter for a knowledge base served by Ollama.

Used when no OpenAI key is configured.  Requests go to Ollama's
OpenAI-compatible ``/v1`` endpoint; the model defaults to
``nomic-embed-text`` and is set with ``OLLAMA_EMBEDDING_MODEL``.  The
index dimension is 768 unless ``EMBEDDING_DIMENSION`` says otherwise, so a
different local model only needs those two settings.

Readiness means more than a reachable server: ``is_available`` also checks
that the configured model has been pulled, because Ollama answers
``/v1/embeddings`` for a missing model with a 404 at ingest time.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from knowledge_ingest.config.settings import Settings
from knowledge_ingest.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_ingest.utils.errors import EmbeddingProviderError

logger = structlog.get_logger(logger_name=__name__)

_REQUEST_INPUT_LIMIT = 512
_NOMIC_DIMENSION = 768
_TAGS_TIMEOUT_S = 3.0


class NomicEmbeddingProvider(IEmbeddingProvider):
    """Embeds documents and queries with a model pulled into a local Ollama."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_embedding_model or "nomic-embed-text"
        self._dimension = settings.embedding_dimension or _NOMIC_DIMENSION
        # Ollama requires some bearer value but never checks it.
        self._client = openai.AsyncOpenAI(base_url=f"{self._base_url}/v1", api_key="ollama")

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        for offset in range(0, len(texts), _REQUEST_INPUT_LIMIT):
            chunk = texts[offset : offset + _REQUEST_INPUT_LIMIT]
            try:
                response = await self._client.embeddings.create(input=chunk, model=self._model)
            except openai.APIError as exc:
                raise EmbeddingProviderError(
                    message=f"Ollama could not embed with {self._model!r}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            vectors.extend(item.embedding for item in response.data)
            logger.info(
                "ollama_embedding_request",
                model=self._model,
                inputs=len(chunk),
                offset=offset,
            )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        """Embed a search query."""
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Return ``True`` when Ollama is up and lists the configured model."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=_TAGS_TIMEOUT_S)
            response.raise_for_status()
            pulled = {entry.get("name", "") for entry in response.json().get("models", [])}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("ollama_unreachable", base_url=self._base_url, error=str(exc))
            return False

        # Tags carry a ":latest" style suffix unless the setting names one.
        present = any(name == self._model or name.split(":", 1)[0] == self._model for name in pulled)
        if not present:
            logger.warning("ollama_model_not_pulled", model=self._model, pulled=sorted(pulled))
        return present
