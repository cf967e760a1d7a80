"""
Package entry point.

Allows running the application via:

    python -m hxgny

This simply forwards execution to hxgny.cli.main().
"""

from hxgny.cli import main

if __name__ == "__main__":
    main()
