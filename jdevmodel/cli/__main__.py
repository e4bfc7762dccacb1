"""
jdevmodel CLI entry point.

Usage:
    python -m jdevmodel.cli names <tree.json>
    python -m jdevmodel.cli deps <tree.json> [--node NAME]
    python -m jdevmodel.cli check <tree.json>
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())
