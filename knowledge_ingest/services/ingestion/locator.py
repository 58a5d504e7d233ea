"""Resolve storage locators (URLs / URIs / bare keys) into object keys.

Recognised forms, tried in this order:

==================  ===================================================  =============
form                example                                              key
==================  ===================================================  =============
``s3_uri``          ``s3://bucket/path/to/file.pdf``                     path/to/file.pdf
``virtual_hosted``  ``https://bucket.s3.us-east-1.amazonaws.com/a/b``    a/b
                    ``http://bucket.s3-website-us-east-1.amazonaws.com/a``
``path_style``      ``https://s3.us-east-1.amazonaws.com/bucket/a/b``    a/b
``custom``          ``https://cdn.example.com/a/b``                      a/b (whole path)
``key``             ``uploads/1700000000000-report.pdf``                 unchanged
==================  ===================================================  =============

Keys are URL-decoded; query strings and fragments are ignored.
"""

from __future__ import annotations

from urllib.parse import unquote, urlsplit

import structlog

from knowledge_ingest.models.documents import StorageLocator
from knowledge_ingest.utils.errors import InvalidLocatorError

logger = structlog.get_logger(logger_name=__name__)


def _is_s3_label(label: str) -> bool:
    return label == "s3" or label.startswith("s3-")


def parse_locator(locator: str) -> StorageLocator:
    """Parse *locator* into a :class:`StorageLocator`.

    Raises
    ------
    InvalidLocatorError
        If the locator is blank or no non-empty key can be derived.
    """
    raw = (locator or "").strip()
    if not raw:
        raise InvalidLocatorError("Locator is empty", provider_name="locator")

    parts = urlsplit(raw)
    scheme = parts.scheme.lower()

    if scheme == "s3":
        return _build(parts.netloc or None, parts.path, "s3_uri", raw)

    if scheme in ("http", "https") and parts.hostname:
        labels = parts.hostname.lower().split(".")
        # <bucket>.s3[.-region].<domain>: the s3 label sits after the bucket.
        for index, label in enumerate(labels[1:], start=1):
            if _is_s3_label(label):
                bucket = ".".join(labels[:index])
                return _build(bucket, parts.path, "virtual_hosted", raw)
        if _is_s3_label(labels[0]):
            bucket, _, key = parts.path.lstrip("/").partition("/")
            return _build(bucket or None, key, "path_style", raw)
        logger.warning("locator_custom_domain", host=parts.hostname)
        return _build(None, parts.path, "custom", raw)

    if scheme:
        raise InvalidLocatorError(
            f"Unsupported locator scheme {scheme!r}: {raw}", provider_name="locator"
        )

    return _build(None, raw.split("?", 1)[0], "key", raw)


def _build(bucket: str | None, path: str, style: str, raw: str) -> StorageLocator:
    key = unquote(path).lstrip("/")
    if not key:
        raise InvalidLocatorError(f"No object key in locator: {raw}", provider_name="locator")
    return StorageLocator(bucket=bucket, key=key, style=style)
