#!/usr/bin/env python3
"""
Entry point wrapper for the gdrive-sync CLI when running from a checkout.
"""
import sys
from pathlib import Path

src_path = Path(__file__).parent / 'src'
if src_path.exists():
    sys.path.insert(0, str(src_path))

from gdrive_sync.cli import cli

if __name__ == '__main__':
    cli()
