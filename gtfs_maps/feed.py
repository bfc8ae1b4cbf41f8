"""Loads GTFS text files and holds them as a validated, read-only feed.

Inputs:
    - GTFS directory with `stops.txt`, `routes.txt`, `trips.txt` and
      `stop_times.txt` (required) plus `agency.txt` and `shapes.txt`
      (optional, but needed for route shape maps)

Outputs:
    - `GtfsFeed`: one pandas DataFrame per table, with required columns
      checked, optional columns added, ids as strings and coordinates as
      numbers
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, cast

import pandas as pd

from gtfs_maps.errors import InvalidFeedError

# =============================================================================
# COLUMN NAMES
# =============================================================================

AGENCY_ID = "agency_id"
AGENCY_NAME = "agency_name"

ROUTE_ID = "route_id"
ROUTE_SHORT_NAME = "route_short_name"
ROUTE_LONG_NAME = "route_long_name"
ROUTE_DESC = "route_desc"
ROUTE_TYPE = "route_type"
ROUTE_COLOR = "route_color"
ROUTE_TEXT_COLOR = "route_text_color"

TRIP_ID = "trip_id"
SHAPE_ID = "shape_id"

STOP_ID = "stop_id"
STOP_NAME = "stop_name"
STOP_LAT = "stop_lat"
STOP_LON = "stop_lon"

SHAPE_PT_LAT = "shape_pt_lat"
SHAPE_PT_LON = "shape_pt_lon"
SHAPE_PT_SEQUENCE = "shape_pt_sequence"

ROUTE_ATTRIBUTES: tuple[str, ...] = (
    ROUTE_SHORT_NAME,
    ROUTE_LONG_NAME,
    ROUTE_DESC,
    ROUTE_TYPE,
    ROUTE_COLOR,
    ROUTE_TEXT_COLOR,
)

# =============================================================================
# TABLE SCHEMA
# =============================================================================

REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "agency": (AGENCY_NAME,),
    "routes": (ROUTE_ID, ROUTE_TYPE),
    "trips": (TRIP_ID, ROUTE_ID),
    "stop_times": (TRIP_ID, STOP_ID),
    "stops": (STOP_ID, STOP_NAME, STOP_LAT, STOP_LON),
    "shapes": (SHAPE_ID, SHAPE_PT_LAT, SHAPE_PT_LON, SHAPE_PT_SEQUENCE),
}

# Conditionally required or optional in GTFS; added as blank when absent
OPTIONAL_COLUMNS: dict[str, tuple[str, ...]] = {
    "agency": (AGENCY_ID,),
    "routes": (
        AGENCY_ID,
        ROUTE_SHORT_NAME,
        ROUTE_LONG_NAME,
        ROUTE_DESC,
        ROUTE_COLOR,
        ROUTE_TEXT_COLOR,
    ),
    "trips": (SHAPE_ID,),
}

ID_COLUMNS: dict[str, tuple[str, ...]] = {
    "agency": (AGENCY_ID,),
    "routes": (ROUTE_ID, AGENCY_ID, ROUTE_TYPE),
    "trips": (TRIP_ID, ROUTE_ID, SHAPE_ID),
    "stop_times": (TRIP_ID, STOP_ID),
    "stops": (STOP_ID,),
    "shapes": (SHAPE_ID,),
}

NUMERIC_COLUMNS: dict[str, tuple[str, ...]] = {
    "stops": (STOP_LAT, STOP_LON),
    "shapes": (SHAPE_PT_LAT, SHAPE_PT_LON, SHAPE_PT_SEQUENCE),
}

REQUIRED_FILES: tuple[str, ...] = ("stops.txt", "routes.txt", "trips.txt", "stop_times.txt")
OPTIONAL_FILES: tuple[str, ...] = ("agency.txt", "shapes.txt")

# =============================================================================
# FUNCTIONS
# =============================================================================


def load_gtfs_data(
    gtfs_folder_path: str,
    files: Optional[Sequence[str]] = None,
    dtype: str | type[str] | Mapping[str, Any] = str,
) -> dict[str, pd.DataFrame]:
    """Load one or more GTFS text files into memory.

    Args:
        gtfs_folder_path: Absolute or relative path to the folder
            containing the GTFS feed.
        files: Explicit sequence of file names to load. If ``None``,
            the six tables used for mapping are attempted.
        dtype: Value forwarded to :pyfunc:`pandas.read_csv(dtype=…)` to
            control column dtypes. Supply a mapping for per-column dtypes.

    Returns:
        Mapping of file stem → :class:`pandas.DataFrame`; for example,
        ``data["trips"]`` holds the parsed *trips.txt* table.

    Raises:
        OSError: Folder missing or one of *files* not present.
        ValueError: Empty file or CSV parser failure.
        RuntimeError: Generic OS error while reading a file.

    Notes:
        All columns default to ``str`` so ids keep their leading zeros.
    """
    if not os.path.exists(gtfs_folder_path):
        raise OSError(f"The directory '{gtfs_folder_path}' does not exist.")

    if files is None:
        files = REQUIRED_FILES + OPTIONAL_FILES

    missing = [
        file_name
        for file_name in files
        if not os.path.exists(os.path.join(gtfs_folder_path, file_name))
    ]
    if missing:
        raise OSError(f"Missing GTFS files in '{gtfs_folder_path}': {', '.join(missing)}")

    data: dict[str, pd.DataFrame] = {}
    for file_name in files:
        key = file_name.replace(".txt", "")
        file_path = os.path.join(gtfs_folder_path, file_name)
        try:
            df = pd.read_csv(file_path, dtype=cast("Any", dtype), low_memory=False)
            data[key] = df
            logging.info("Loaded %s (%d records).", file_name, len(df))

        except pd.errors.EmptyDataError as exc:
            raise ValueError(f"File '{file_name}' in '{gtfs_folder_path}' is empty.") from exc

        except pd.errors.ParserError as exc:
            raise ValueError(
                f"Parser error in '{file_name}' in '{gtfs_folder_path}': {exc}"
            ) from exc

        except OSError as exc:
            raise RuntimeError(
                f"OS error reading file '{file_name}' in '{gtfs_folder_path}': {exc}"
            ) from exc

    return data


def _as_ids(series: pd.Series) -> pd.Series:
    """Cast a column to nullable strings; empty cells become missing."""
    return series.astype("string").replace("", pd.NA)


def _normalize_table(name: str, df: pd.DataFrame) -> pd.DataFrame:
    """Check, complete and type one GTFS table. Returns a new DataFrame."""
    missing = sorted(set(REQUIRED_COLUMNS[name]).difference(df.columns))
    if missing:
        raise InvalidFeedError(f"Missing required columns in {name}: {', '.join(missing)}")

    df = df.copy()
    for col in OPTIONAL_COLUMNS.get(name, ()):
        if col not in df.columns:
            df[col] = pd.NA

    for col in ID_COLUMNS.get(name, ()):
        df[col] = _as_ids(df[col])

    for col in NUMERIC_COLUMNS.get(name, ()):
        if pd.api.types.is_numeric_dtype(df[col]):
            continue
        original_count = len(df)
        df[col] = pd.to_numeric(df[col], errors="coerce")
        df = df.dropna(subset=[col])
        if len(df) < original_count:
            logging.warning(
                "Dropped %d rows from %s due to invalid values in '%s'.",
                original_count - len(df),
                name,
                col,
            )

    return df.reset_index(drop=True)


@dataclass(frozen=True, eq=False)
class GtfsFeed:
    """In-memory GTFS tables used by the map selectors.

    Every table is optional at construction; operations call
    :meth:`require` for the tables they read. Present tables are
    validated and normalized once, here, so selectors can rely on the
    column constants of this module.
    """

    agency: Optional[pd.DataFrame] = None
    routes: Optional[pd.DataFrame] = None
    trips: Optional[pd.DataFrame] = None
    stop_times: Optional[pd.DataFrame] = None
    stops: Optional[pd.DataFrame] = None
    shapes: Optional[pd.DataFrame] = None

    def __post_init__(self) -> None:
        for table in fields(self):
            df = getattr(self, table.name)
            if df is None:
                continue
            if not isinstance(df, pd.DataFrame):
                raise InvalidFeedError(
                    f"Table '{table.name}' must be a pandas DataFrame, got {type(df).__name__}."
                )
            object.__setattr__(self, table.name, _normalize_table(table.name, df))

        self._fill_single_agency()

    def _fill_single_agency(self) -> None:
        """GTFS lets single-agency feeds omit agency_id; give routes that agency."""
        if self.agency is None or len(self.agency) != 1:
            return

        agency = self.agency.copy()
        if agency[AGENCY_ID].isna().iloc[0]:
            agency[AGENCY_ID] = agency[AGENCY_NAME].astype("string")
            object.__setattr__(self, "agency", agency)

        if self.routes is not None and self.routes[AGENCY_ID].isna().any():
            routes = self.routes.copy()
            routes[AGENCY_ID] = routes[AGENCY_ID].fillna(agency[AGENCY_ID].iloc[0])
            object.__setattr__(self, "routes", routes)

    @property
    def table_names(self) -> list[str]:
        """Names of the tables present in this feed."""
        return [table.name for table in fields(self) if getattr(self, table.name) is not None]

    def require(self, *tables: str) -> None:
        """Raise InvalidFeedError unless every named table is present."""
        missing = [name for name in tables if getattr(self, name, None) is None]
        if missing:
            raise InvalidFeedError(f"GTFS feed is missing required tables: {', '.join(missing)}")

    @classmethod
    def from_tables(cls, tables: Mapping[str, pd.DataFrame]) -> GtfsFeed:
        """Build a feed from a ``load_gtfs_data``-style mapping; extra keys are ignored."""
        known = {table.name for table in fields(cls)}
        return cls(**{name: df for name, df in tables.items() if name in known})

    @classmethod
    def from_folder(cls, gtfs_dir: str | Path) -> GtfsFeed:
        """Load the tables of a GTFS folder.

        Raises:
            OSError: Folder or one of the required files missing.
            ValueError: Empty or malformed file.
        """
        gtfs_dir = Path(gtfs_dir)
        files = list(REQUIRED_FILES)
        for file_name in OPTIONAL_FILES:
            if (gtfs_dir / file_name).exists():
                files.append(file_name)
            else:
                logging.info("Optional file '%s' not found. Skipping.", file_name)

        return cls.from_tables(load_gtfs_data(str(gtfs_dir), files=files))
