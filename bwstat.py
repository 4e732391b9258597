#!/usr/bin/env python3
"""
bwstat - Node Bandwidth Statistics

Launcher for running from a source checkout:

    python bwstat.py --daemon
    python bwstat.py --stats-bw --poll -i 500ms
"""

import sys

from bwstat.main import main

if __name__ == '__main__':
    sys.exit(main())
