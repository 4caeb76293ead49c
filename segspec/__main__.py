# CUI // SP-CTI
"""Allow ``python -m segspec``."""

import sys

from segspec.cli.main import main

sys.exit(main())
