"""
Main entry point for the Onlypoly server.

Usage:
    python -m onlypoly.main

Or:
    onlypoly-server
"""

from onlypoly.network.server import main


if __name__ == "__main__":
    main()
