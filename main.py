"""Run collabide from a source checkout without installing it."""

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"
if SRC_DIR.is_dir() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from collabide.main import main  # noqa: E402

if __name__ == "__main__":
    main(sys.argv[1:])
