#!/usr/bin/env python3
"""mrtune CLI entrypoint -- run without pip install.

Usage:
    python mrrun.py optimize --profile profile.yaml --conf job.yaml
    python mrrun.py --help
"""

import sys
from pathlib import Path

# Add src/ to import path so the mrtune package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from mrtune.cli import app

if __name__ == "__main__":
    app()
