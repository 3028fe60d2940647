#!/usr/bin/env python3
"""
vmf2nd - Main Entry Point

Runs the converter from a source checkout without installing it.
Usage: python main.py INPUT.vmf [OUTPUT.cmf]
"""

import sys

from vmf2nd.cli import main

if __name__ == "__main__":
    sys.exit(main())
