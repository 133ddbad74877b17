"""Allow running sttsync as ``python -m sttsync``."""

from sttsync.cli.cli import main

if __name__ == "__main__":
    main()
