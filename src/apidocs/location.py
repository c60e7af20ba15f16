"""Addressing rules for documentation locations.

A documentation fragment attaches to exactly one place in the API surface.
That place is described by a location *type* plus up to three coordinates:
``name``, ``path`` and ``method``. Which coordinates a type needs is fixed
by :data:`LOCATION_FIELDS`; every other coordinate must be absent.

:func:`validate_location` enforces that table and normalises the HTTP
method to upper case. It is pure and never talks to the platform, so a
malformed key is rejected before anything is sent. Whether the addressed
resource, method or parameter actually exists is left to the platform.
"""

from __future__ import annotations

import enum
from typing import Optional

from apidocs.exceptions import MalformedLocationKey


class LocationType(str, enum.Enum):
    """Location types recognised by the hosting platform."""

    API = "API"
    AUTHORIZER = "AUTHORIZER"
    RESOURCE = "RESOURCE"
    METHOD = "METHOD"
    PATH_PARAMETER = "PATH_PARAMETER"
    QUERY_PARAMETER = "QUERY_PARAMETER"
    REQUEST_HEADER = "REQUEST_HEADER"
    RESPONSE_HEADER = "RESPONSE_HEADER"
    MODEL = "MODEL"


_NAME = "name"
_PATH = "path"
_METHOD = "method"

LOCATION_FIELDS: dict[LocationType, frozenset[str]] = {
    LocationType.API: frozenset(),
    LocationType.AUTHORIZER: frozenset({_NAME}),
    LocationType.MODEL: frozenset({_NAME}),
    LocationType.RESOURCE: frozenset({_PATH}),
    LocationType.METHOD: frozenset({_PATH, _METHOD}),
    LocationType.PATH_PARAMETER: frozenset({_NAME, _PATH, _METHOD}),
    LocationType.QUERY_PARAMETER: frozenset({_NAME, _PATH, _METHOD}),
    LocationType.REQUEST_HEADER: frozenset({_NAME, _PATH, _METHOD}),
    LocationType.RESPONSE_HEADER: frozenset({_NAME, _PATH, _METHOD}),
}
"""Coordinates each location type requires. Anything not listed must be absent."""

HTTP_METHODS = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ANY"}
)


def parse_location_type(value: str | LocationType) -> LocationType:
    """Coerce *value* to a :class:`LocationType`.

    Raises:
        MalformedLocationKey: If *value* is not a known location type.
    """
    if isinstance(value, LocationType):
        return value
    try:
        return LocationType(str(value).upper())
    except ValueError:
        known = ", ".join(t.value for t in LocationType)
        raise MalformedLocationKey(
            f"Unknown location type '{value}' (expected one of: {known})"
        ) from None


def validate_location(
    location_type: str | LocationType,
    name: Optional[str] = None,
    path: Optional[str] = None,
    method: Optional[str] = None,
) -> tuple[LocationType, Optional[str], Optional[str], Optional[str]]:
    """Check that exactly the coordinates required by *location_type* are present.

    Args:
        location_type: The location type, as an enum member or its name.
        name: Entity name (authorizer, model, parameter or header name).
        path: Resource path, starting with ``/``.
        method: HTTP verb; normalised to upper case.

    Returns:
        The normalised ``(type, name, path, method)`` tuple.

    Raises:
        MalformedLocationKey: If a required coordinate is missing or empty,
            a forbidden coordinate is supplied, the path does not start with
            ``/``, or the method is not an HTTP verb.
    """
    loc_type = parse_location_type(location_type)
    required = LOCATION_FIELDS[loc_type]
    supplied = {_NAME: name, _PATH: path, _METHOD: method}

    missing = sorted(f for f in required if not supplied[f])
    if missing:
        raise MalformedLocationKey(
            f"{loc_type.value} location requires {', '.join(missing)}"
        )

    forbidden = sorted(
        f for f, v in supplied.items() if f not in required and v is not None
    )
    if forbidden:
        raise MalformedLocationKey(
            f"{loc_type.value} location does not accept {', '.join(forbidden)}"
        )

    if path is not None and not path.startswith("/"):
        raise MalformedLocationKey(f"Location path must start with '/': {path!r}")

    if method is not None:
        method = method.upper()
        if method not in HTTP_METHODS:
            raise MalformedLocationKey(f"Unknown HTTP method: {method!r}")

    return loc_type, name, path, method
