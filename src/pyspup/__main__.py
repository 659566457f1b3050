"""Allow running as ``python -m pyspup``."""

import sys

from pyspup.cli import main

sys.exit(main())
