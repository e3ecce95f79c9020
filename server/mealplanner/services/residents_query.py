from __future__ import annotations

from sqlalchemy import String, cast, func
from sqlalchemy.orm import Query, Session

from mealplanner.models.resident import Resident

LIKE_ESCAPE = "\\"


def like_pattern(value: str) -> str:
    """Substring pattern for ``value`` with LIKE wildcards taken literally."""
    escaped = (
        value.strip()
        .lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def contains(column, value: str):
    return func.lower(column).like(like_pattern(value), escape=LIKE_ESCAPE)


def build_residents_query(
    db: Session,
    *,
    name: str | None = None,
    room_number: str | None = None,
    dietary_restrictions: str | None = None,
    station: str | None = None,
    table_number: str | None = None,
    active: bool | None = None,
    base_query: Query | None = None,
) -> Query:
    """All filters combine with AND; text filters are case-insensitive substrings."""

    query: Query = base_query if base_query is not None else db.query(Resident)

    if name:
        query = query.filter(contains(Resident.name, name))
    if room_number:
        query = query.filter(contains(Resident.room_number, room_number))
    if dietary_restrictions:
        query = query.filter(contains(cast(Resident.dietary_restrictions, String), dietary_restrictions))
    if station:
        query = query.filter(contains(Resident.station, station))
    if table_number:
        query = query.filter(contains(Resident.table_number, table_number))
    if active is not None:
        query = query.filter(Resident.active.is_(active))
    return query
