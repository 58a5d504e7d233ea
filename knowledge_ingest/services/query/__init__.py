"""Query-time retrieval against the knowledge base."""

from knowledge_ingest.services.query.query_service import KnowledgeQueryService

__all__ = ["KnowledgeQueryService"]
