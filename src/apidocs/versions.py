"""Documentation version snapshots.

A snapshot is an append-only marker over the documentation parts of an API
at one instant. :meth:`VersionSnapshotManager.create_snapshot` always
produces a new one with a strictly increasing id; it never touches a
stage, so the new snapshot starts as
:attr:`~apidocs.models.VersionStatus.PROPOSED`.

Making a snapshot the one a stage serves is a separate, explicit step:
:meth:`VersionSnapshotManager.promote`. Until then, consumers of the export
endpoint keep seeing the previously active documentation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from apidocs.models import BuildContext, VersionSnapshot, VersionStatus
from apidocs.platform.client import PlatformClient

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Documentation generated at {timestamp}"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def version_id_for(moment: datetime) -> str:
    """Milliseconds since the epoch, as a decimal string."""
    return str((moment - _EPOCH) // timedelta(milliseconds=1))


class VersionSnapshotManager:
    """Creates, lists and promotes documentation versions of one REST API.

    Args:
        client: An open :class:`~apidocs.platform.PlatformClient`.
        api_id: The REST API the versions belong to.
        clock: Source of "now"; defaults to the UTC wall clock.
    """

    def __init__(
        self,
        client: PlatformClient,
        api_id: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._client = client
        self._api_id = api_id
        self._clock = clock or _utcnow
        self._last_issued: Optional[datetime] = None

    def create_snapshot(
        self,
        description: Optional[str] = None,
        context: Optional[BuildContext] = None,
    ) -> VersionSnapshot:
        """Record a new documentation version on the platform.

        Every call yields a distinct ``version_id`` and ``created_at``, even
        when two calls land in the same millisecond or share a
        :class:`~apidocs.models.BuildContext`.

        Args:
            description: Free text; ``{timestamp}`` is replaced by the ISO-8601
                creation time. Defaults to :data:`DEFAULT_DESCRIPTION`.
            context: Registration pass whose timestamp the snapshot adopts.

        Raises:
            PlatformRejected: The platform refused the version.
            TransientPlatformError: The platform could not be reached.
        """
        created_at = self._next_instant(context.timestamp if context else self._clock())
        template = DEFAULT_DESCRIPTION if description is None else description
        snapshot = VersionSnapshot(
            version_id=version_id_for(created_at),
            description=template.replace("{timestamp}", created_at.isoformat()),
            created_at=created_at,
        )
        self._client.create_documentation_version(
            self._api_id, snapshot.version_id, snapshot.description
        )
        logger.info("Created documentation version %s", snapshot.version_id)
        return snapshot

    def active_version(self, stage: str) -> Optional[str]:
        """Return the documentation version *stage* currently serves, if any."""
        return self._client.get_stage(self._api_id, stage).get("documentationVersion") or None

    def list_snapshots(self, stage: Optional[str] = None) -> list[VersionSnapshot]:
        """List every recorded version, oldest first.

        When *stage* is given, the version it serves is reported as
        :attr:`~apidocs.models.VersionStatus.ACTIVE`.
        """
        active = self.active_version(stage) if stage else None
        snapshots = [
            snapshot_from_platform(item, active)
            for item in self._client.get_documentation_versions(self._api_id)
        ]
        return sorted(snapshots, key=lambda s: (s.created_at, s.version_id))

    def promote(self, version_id: str, stage: str) -> VersionSnapshot:
        """Make *stage* serve documentation *version_id*.

        Raises:
            PlatformRejected: The version or stage does not exist.
            TransientPlatformError: The platform could not be reached.
        """
        self._client.update_stage_documentation_version(self._api_id, stage, version_id)
        logger.info("Stage %s now serves documentation version %s", stage, version_id)
        for snapshot in self.list_snapshots(stage):
            if snapshot.version_id == version_id:
                return snapshot.model_copy(update={"status": VersionStatus.ACTIVE})
        return VersionSnapshot(
            version_id=version_id,
            created_at=self._clock(),
            status=VersionStatus.ACTIVE,
        )

    def _next_instant(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        moment = moment.replace(microsecond=moment.microsecond // 1000 * 1000)
        if self._last_issued is not None and moment <= self._last_issued:
            moment = self._last_issued + timedelta(milliseconds=1)
        self._last_issued = moment
        return moment


def snapshot_from_platform(
    item: Mapping[str, Any], active_version: Optional[str] = None
) -> VersionSnapshot:
    """Convert a platform documentation version into a :class:`VersionSnapshot`."""
    version_id = str(item.get("version", ""))
    return VersionSnapshot(
        version_id=version_id,
        description=item.get("description") or "",
        created_at=_parse_created(item.get("createdDate"), version_id),
        status=VersionStatus.ACTIVE if version_id == active_version else VersionStatus.PROPOSED,
    )


def _parse_created(value: Any, version_id: str) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if version_id.isdigit():
        return datetime.fromtimestamp(int(version_id) / 1000, tz=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)
