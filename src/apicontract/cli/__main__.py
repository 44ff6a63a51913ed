"""Main entry point for the apicontract CLI when run as a module."""

import sys

from apicontract.cli import main

if __name__ == "__main__":
    sys.exit(main())
