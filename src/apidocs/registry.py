"""Documentation fragment store backed by the hosting platform.

:class:`DocumentationRegistry` registers documentation fragments against
:class:`~apidocs.models.LocationKey` coordinates and enumerates what the
platform currently holds. It keeps no local state: every call goes to the
platform, and :meth:`DocumentationRegistry.list` reflects the platform at
the moment it is iterated.

Two registration modes exist:

* :attr:`RegistrationMode.APPEND` (default) -- always create a new part.
  Registering the same location twice may leave duplicate or conflicting
  parts on the platform; avoiding that is the caller's job.
* :attr:`RegistrationMode.UPSERT` -- look for an existing part with an
  equal location key first and replace its properties; create one only if
  none exists. Two concurrent upserts of the same key can still both
  create.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import Any, Iterator, Mapping, Optional, Union

from apidocs.exceptions import MalformedFragment, MalformedLocationKey, PlatformRejected
from apidocs.location import LocationType, parse_location_type
from apidocs.models import DocumentationFragment, FragmentHandle, LocationKey
from apidocs.platform.client import PlatformClient

logger = logging.getLogger(__name__)

LocationLike = Union[LocationKey, Mapping[str, Any]]


class RegistrationMode(str, enum.Enum):
    """How :meth:`DocumentationRegistry.register` treats an already documented location."""

    APPEND = "append"
    UPSERT = "upsert"


def coerce_location(location: LocationLike) -> LocationKey:
    """Return *location* as a validated :class:`LocationKey`.

    Raises:
        MalformedLocationKey: If a mapping does not describe a valid key.
    """
    if isinstance(location, LocationKey):
        return location
    return LocationKey.model_validate(dict(location))


def serialize_properties(properties: Any) -> str:
    """Serialise fragment properties to the JSON string the platform stores.

    Raises:
        MalformedFragment: If *properties* is not a JSON-serialisable object.
    """
    if not isinstance(properties, Mapping):
        raise MalformedFragment(
            f"Fragment properties must be an object, got {type(properties).__name__}"
        )
    try:
        return json.dumps(dict(properties), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise MalformedFragment(f"Fragment properties are not JSON-serialisable: {exc}") from exc


class DocumentationRegistry:
    """Registers and lists documentation fragments of one REST API.

    Args:
        client: An open :class:`~apidocs.platform.PlatformClient`.
        api_id: The REST API the fragments belong to.
        mode: Default registration mode for :meth:`register`.
    """

    def __init__(
        self,
        client: PlatformClient,
        api_id: str,
        mode: RegistrationMode = RegistrationMode.APPEND,
    ) -> None:
        self._client = client
        self._api_id = api_id
        self._mode = mode

    @property
    def api_id(self) -> str:
        return self._api_id

    def register(
        self,
        location: LocationLike,
        properties: Mapping[str, Any],
        mode: Optional[RegistrationMode] = None,
    ) -> FragmentHandle:
        """Attach *properties* to *location* on the platform.

        The location and properties are validated locally first; a
        malformed key or unserialisable payload never reaches the platform.

        Args:
            location: A :class:`LocationKey` or a mapping with ``type``,
                ``name``, ``path`` and ``method``.
            properties: Free-form documentation object.
            mode: Overrides the registry's default :class:`RegistrationMode`.

        Returns:
            A :class:`FragmentHandle` with the platform part id.

        Raises:
            MalformedLocationKey: The location does not fit its type.
            MalformedFragment: The properties are not a JSON object.
            PlatformRejected: The platform refused the part.
            TransientPlatformError: The platform could not be reached.
        """
        key = coerce_location(location)
        payload = serialize_properties(properties)
        mode = mode or self._mode

        if mode == RegistrationMode.UPSERT:
            existing = self.find(key)
            if existing is not None and existing.id:
                self._client.update_documentation_part(self._api_id, existing.id, payload)
                logger.info("Updated documentation part %s at %s", existing.id, key)
                return FragmentHandle(id=existing.id, location=key, created=False)

        created = self._client.create_documentation_part(
            self._api_id, key.to_platform(), payload
        )
        part_id = str(created.get("id", ""))
        logger.info("Created documentation part %s at %s", part_id or "?", key)
        return FragmentHandle(id=part_id, location=key, created=True)

    def list(
        self, location_type: Optional[Union[str, LocationType]] = None
    ) -> Iterator[DocumentationFragment]:
        """Yield the fragments the platform holds right now.

        Each call starts a fresh enumeration. Parts whose location cannot be
        represented as a :class:`LocationKey` are rejected with
        :class:`~apidocs.exceptions.PlatformRejected`.

        Args:
            location_type: Only list fragments of this location type.
        """
        type_filter = parse_location_type(location_type).value if location_type else None
        for part in self._client.get_documentation_parts(self._api_id, type_filter):
            yield fragment_from_platform(part)

    def find(self, location: LocationLike) -> Optional[DocumentationFragment]:
        """Return the first platform fragment whose location equals *location*."""
        key = coerce_location(location)
        for fragment in self.list(key.type):
            if fragment.location == key:
                return fragment
        return None


def fragment_from_platform(part: Mapping[str, Any]) -> DocumentationFragment:
    """Convert a platform documentation part into a :class:`DocumentationFragment`."""
    raw = part.get("properties") or "{}"
    try:
        properties = json.loads(raw) if isinstance(raw, str) else dict(raw)
    except json.JSONDecodeError as exc:
        raise PlatformRejected(
            f"Documentation part {part.get('id')} has unreadable properties"
        ) from exc
    try:
        location = LocationKey.from_platform(part.get("location") or {})
    except MalformedLocationKey as exc:
        raise PlatformRejected(
            f"Documentation part {part.get('id')} has an unsupported location: {exc}"
        ) from exc
    return DocumentationFragment(
        id=part.get("id"),
        location=location,
        properties=properties if isinstance(properties, dict) else {"value": properties},
    )
