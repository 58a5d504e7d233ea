"""Concrete adapters for the interfaces in ``knowledge_ingest.interfaces``.

Subpackages are imported directly by their consumers so that a backend's
SDK is only loaded when that backend is selected.
"""
