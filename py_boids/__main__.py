"""Allow ``python -m py_boids``."""

import sys

from .cli import main

sys.exit(main())
