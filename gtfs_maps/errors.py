"""Exceptions raised by the GTFS map selectors."""

from __future__ import annotations

from collections.abc import Iterable


class GtfsMapError(Exception):
    """Base class for every error raised by gtfs_maps."""


class InvalidFeedError(GtfsMapError, ValueError):
    """A feed lacks a table or column required by the requested operation."""


class NotFoundError(GtfsMapError, LookupError):
    """A lookup by id matched nothing.

    Attributes:
        kind: What was looked up ("stop", "trips", "shapes", "routes").
        requested_id: The id the caller asked for.
    """

    def __init__(self, message: str, kind: str, requested_id: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.requested_id = requested_id


class JoinError(GtfsMapError):
    """A row that survived filtering has no partner in a related table.

    Attributes:
        relation: The broken relation, e.g. ``"trips.route_id -> routes"``.
        missing_ids: Ids on the left side with no match on the right.
    """

    def __init__(self, relation: str, missing_ids: Iterable[str]) -> None:
        self.relation = relation
        self.missing_ids = sorted(set(missing_ids))
        super().__init__(
            f"Join {relation} failed; no match for: {', '.join(self.missing_ids)}"
        )
