from __future__ import annotations

import sys

from whatshub.cli import main


if __name__ == "__main__":
    sys.exit(main())
