#!/usr/bin/env python3
"""
PaneSync launcher script.

Run this from the project root to compare two documents side by side:

    python run_panesync.py left.txt right.txt
"""

import sys
from pathlib import Path

# Make the panesync package importable without installing it
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

if __name__ == '__main__':
    from panesync.run_gui import main
    sys.exit(main())
