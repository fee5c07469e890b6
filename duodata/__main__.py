"""
Package entry point.

Allows running the application via:

    python -m duodata

This simply forwards execution to duodata.cli.main().
"""

from duodata.cli import main

if __name__ == "__main__":
    main()
