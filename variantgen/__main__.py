"""
Main entry point for running the package as a module.

Usage:
    python -m variantgen sync
    python -m variantgen sync --remove src/assets/images/logo.png
    python -m variantgen watch --debounce 1
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
