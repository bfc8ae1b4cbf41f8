"""Allows ``python -m gtfs_maps``."""

from gtfs_maps.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
