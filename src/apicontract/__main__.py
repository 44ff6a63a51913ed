"""Allow ``python -m apicontract``."""

import sys

from apicontract.cli import main

if __name__ == "__main__":
    sys.exit(main())
