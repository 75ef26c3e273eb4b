"""
spanweave.__main__ - Entry point for running spanweave as a module.

Usage:
    python -m spanweave <trace_file> [log_file] [options]
"""

import sys

from spanweave.cli import main

if __name__ == "__main__":
    sys.exit(main())
