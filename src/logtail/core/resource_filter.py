"""Helpers for matching log entry ids against a --resource filter."""

from __future__ import annotations

from typing import Optional

ID_SEPARATOR = "::"


def split_resource_id(resource_id: str) -> list[str]:
    """Split an id such as "urn:app:dev::proj::aws:s3:Bucket::logs" on "::"."""

    return resource_id.split(ID_SEPARATOR)


def matches_resource(resource_id: str, resource_filter: Optional[str]) -> bool:
    """Return True if the id is selected by the filter.

    A filter may be a bare name, "type::name", or the full id. An empty
    filter selects everything.
    """

    if not resource_filter:
        return True
    if resource_id == resource_filter:
        return True

    wanted = split_resource_id(resource_filter)
    parts = split_resource_id(resource_id)
    if len(wanted) > len(parts):
        return False
    return parts[-len(wanted):] == wanted
