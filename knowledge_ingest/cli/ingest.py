# =============================================================================
# knowledge_ingest/cli/ingest.py - Operator CLI
# =============================================================================
#
# Runs the same pipeline as the HTTP API from a shell, for backfills and
# debugging.  Provider selection is shared with the web app through
# ``knowledge_ingest.main._build_all`` so both write to the same index with
# the same embedding model.
#
# Supported subcommands:
#
#   parse     - Extract a local file and print its text + metadata (no I/O)
#   process   - Ingest one or more uploaded objects by locator
#   directory - Bulk-ingest every file in a local directory
#   presign   - Print a pre-signed upload URL
#   search    - Similarity search over the index
#
# Usage examples:
#   python -m knowledge_ingest.cli parse ./report.pdf
#   python -m knowledge_ingest.cli process s3://kb-bucket/uploads/1700000000000-report.pdf
#   python -m knowledge_ingest.cli directory ./corpus/
#   python -m knowledge_ingest.cli presign report.pdf application/pdf
#   python -m knowledge_ingest.cli search "quarterly revenue" --top-k 3
# =============================================================================

"""Command-line interface for knowledge-ingest.

Usage::

    python -m knowledge_ingest.cli parse FILE
    python -m knowledge_ingest.cli process LOCATOR [LOCATOR ...]
    python -m knowledge_ingest.cli directory PATH
    python -m knowledge_ingest.cli presign FILE_NAME FILE_TYPE
    python -m knowledge_ingest.cli search QUERY [--top-k N] [--filter JSON]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from knowledge_ingest.config.settings import Settings
from knowledge_ingest.utils.errors import KnowledgeIngestError

_PREVIEW_CHARS = 500


def _build_components(app_settings: Settings) -> dict[str, Any]:
    """Assemble providers and services exactly as the web app does.

    Imports are deferred so ``parse`` never loads the SDKs.
    """
    from knowledge_ingest.main import _build_all

    return _build_all(app_settings)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _handle_parse(args: argparse.Namespace) -> int:
    """Extract a local file and print the result."""
    from knowledge_ingest.services.extraction.document_parser import DocumentParser

    parsed = DocumentParser().parse_file(args.file)
    text = parsed.text_content

    print(f"Parsed: {args.file}")
    print(f"  Characters: {len(text)}")
    print("  Metadata:")
    print(json.dumps(parsed.metadata, indent=2, ensure_ascii=False, default=str))
    print()
    if args.full or len(text) <= _PREVIEW_CHARS:
        print(text)
    else:
        print(text[:_PREVIEW_CHARS] + f"\n... ({len(text) - _PREVIEW_CHARS} more characters)")
    return 0


async def _handle_process(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest every locator; exit non-zero if any failed."""
    await components["vector_store"].ensure_index()
    results = await components["ingestion_service"].process_documents(args.locators)

    failures = 0
    for locator, result in zip(args.locators, results):
        if isinstance(result, BaseException):
            failures += 1
            print(f"FAILED  {locator}: {result}")
            continue
        print(
            f"OK      {locator} -> {result.document_id} "
            f"({result.text_length} chars, {result.ingestion_time:.2f}s)"
        )

    print(f"\nProcessed {len(results)} document(s), {failures} failed.")
    return 1 if failures else 0


async def _handle_directory(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest all files in a directory."""
    print(f"Ingesting directory: {args.path}")
    await components["vector_store"].ensure_index()
    result = await components["ingestion_service"].ingest_directory(args.path)

    print("\nDirectory ingestion complete:")
    print(f"  Records upserted: {result.records_upserted}")
    print(f"  Total characters: {result.text_length}")
    print(f"  Time:             {result.ingestion_time:.2f}s")
    return 0


async def _handle_presign(args: argparse.Namespace, components: dict[str, Any]) -> int:
    upload = await components["ingestion_service"].generate_presigned_url(
        args.file_name, args.file_type
    )
    print(f"Key:     {upload.key}")
    print(f"Expires: {upload.expires_in}s")
    print(upload.url)
    return 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print the closest records to the query text."""
    filters = json.loads(args.filter) if args.filter else None
    await components["vector_store"].ensure_index()
    matches = await components["query_service"].search(args.query, top_k=args.top_k, filters=filters)

    if not matches:
        print("No matches.")
        return 0

    for rank, match in enumerate(matches, start=1):
        name = match.metadata.get("original_filename") or match.metadata.get("source", "")
        print(f"{rank:>2}. {match.score:.4f}  {match.id}  {name}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m knowledge_ingest.cli",
        description="Extract, embed and index documents into the knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- parse --
    parse_parser = subparsers.add_parser("parse", help="Extract a local file and print the result")
    parse_parser.add_argument("file", help="Path to a .pdf, .csv, .json or .txt file")
    parse_parser.add_argument("--full", action="store_true", help="Print the full text")

    # -- process --
    process_parser = subparsers.add_parser("process", help="Ingest uploaded objects by locator")
    process_parser.add_argument(
        "locators",
        nargs="+",
        help="s3://bucket/key, https://bucket.s3.region.amazonaws.com/key, or a bare key",
    )

    # -- directory --
    dir_parser = subparsers.add_parser("directory", help="Ingest all files in a directory")
    dir_parser.add_argument("path", help="Directory path")

    # -- presign --
    presign_parser = subparsers.add_parser("presign", help="Create a pre-signed upload URL")
    presign_parser.add_argument("file_name", help="Name of the file to upload")
    presign_parser.add_argument("file_type", help="MIME type, e.g. application/pdf")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Similarity search over the index")
    search_parser.add_argument("query", help="Query text")
    search_parser.add_argument("--top-k", type=int, default=5, dest="top_k", help="Results (default: 5)")
    search_parser.add_argument("--filter", default=None, help="Metadata filter as a JSON object")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        # parse is local-only and needs no providers.
        if args.command == "parse":
            return _handle_parse(args)

        from knowledge_ingest.utils.logging import configure_logging

        app_settings = Settings()
        configure_logging(app_settings)
        components = _build_components(app_settings)
        handlers = {
            "process": _handle_process,
            "directory": _handle_directory,
            "presign": _handle_presign,
            "search": _handle_search,
        }
        return asyncio.run(handlers[args.command](args, components))
    except (KnowledgeIngestError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
