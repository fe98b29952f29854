"""Module entry point for ``python -m flowprof``."""

from flowprof.cli import main

if __name__ == "__main__":
    main()
