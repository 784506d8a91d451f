"""
Entry point for running the API as a module.

Usage:
    python -m counter_api serve
"""

from counter_api.cli import main

if __name__ == "__main__":
    main()
