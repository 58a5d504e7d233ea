"""Allow ``python -m knowledge_ingest.cli`` execution."""

import sys

from knowledge_ingest.cli.ingest import main

sys.exit(main())
