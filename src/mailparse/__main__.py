"""Allow running mailparse as ``python -m mailparse``."""

import sys

from mailparse.cli import main

sys.exit(main())
