#!/usr/bin/env python3
"""
healthkit-to-sqlite - command-line entry point

Usage:
    python run.py export.zip healthkit.db
"""
import sys
from healthkit_sqlite.cli import main

if __name__ == '__main__':
    sys.exit(main())
