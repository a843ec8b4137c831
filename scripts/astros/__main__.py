"""Allow ``python -m scripts.astros``."""

import sys

from scripts.astros.cli import main

sys.exit(main())
