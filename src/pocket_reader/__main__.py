"""Entry point for ``python -m pocket_reader``."""

import sys

from pocket_reader.cli import main

if __name__ == "__main__":
    sys.exit(main())
