"""Command-line tools for knowledge-ingest.

- ``python -m knowledge_ingest.cli`` -- parse, process, directory, presign
  and search subcommands (see :mod:`knowledge_ingest.cli.ingest`).

Provider construction is deferred into the handlers so ``parse`` and
``--help`` start without loading boto3, openai, chromadb or pinecone.
"""
