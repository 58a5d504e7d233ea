"""Turns extracted documents into embedding records.

One document yields at most one record: the whole text is embedded in a
single provider call.  Documents with blank content are skipped.  Any
provider failure aborts the batch so a caller never receives a partial
list.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from knowledge_ingest.models.documents import EmbeddingRecord, ExtractedDocument
from knowledge_ingest.utils.errors import EmbeddingFailedError

if TYPE_CHECKING:
    from knowledge_ingest.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingBatchBuilder:
    """Builds :class:`EmbeddingRecord` objects from :class:`ExtractedDocument` objects.

    Parameters
    ----------
    embedding_provider:
        Produces one vector per text.
    dimension:
        Expected vector length.  ``None`` or ``0`` uses the provider's
        :meth:`~IEmbeddingProvider.get_dimension`.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        dimension: int | None = None,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._dimension = dimension or embedding_provider.get_dimension()

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed_batch(self, docs: Sequence[ExtractedDocument]) -> list[EmbeddingRecord]:
        """Embed each non-blank document, preserving ``id`` and ``metadata``.

        Returns
        -------
        list[EmbeddingRecord]
            One record per non-blank document, in input order.  Empty when
            every document was blank.

        Raises
        ------
        EmbeddingFailedError
            If a returned vector's length differs from :attr:`dimension`.
        knowledge_ingest.utils.errors.EmbeddingProviderError
            Propagated unchanged from the provider.
        """
        records: list[EmbeddingRecord] = []
        for doc in docs:
            if not doc.content.strip():
                logger.info("embedding_skipped_empty", document_id=doc.id)
                continue

            vector = await self._embedding_provider.embed_single(doc.content)
            if len(vector) != self._dimension:
                raise EmbeddingFailedError(
                    message=(
                        f"Embedding for {doc.id!r} has dimension {len(vector)}, "
                        f"expected {self._dimension}"
                    ),
                    provider_name=self._embedding_provider.get_provider_name(),
                )
            records.append(EmbeddingRecord(id=doc.id, vector=vector, metadata=doc.metadata))

        logger.info(
            "embedding_batch_built",
            provider=self._embedding_provider.get_provider_name(),
            documents=len(docs),
            records=len(records),
        )
        return records
