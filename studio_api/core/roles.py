"""
Role Registry

Cached view of the roles table, keyed by lowercase role name.

The registry is an ordinary object owned by the application (app.state)
so tests can build isolated instances with their own loader and clock.

Concurrency: a refresh builds a complete snapshot and publishes it with a
single attribute assignment. Published mappings are read-only proxies and
are never mutated, so readers see either the old or the new snapshot.

Availability: if the store fails, the last snapshot is served even past
its TTL. With no snapshot at all an empty mapping is returned and every
permission check that needs the registry fails closed.
"""
import logging
import time
from collections import defaultdict
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError

from studio_api.models.role import Role, GLOBAL_TENANT_ID

logger = logging.getLogger(__name__)

_EMPTY: Mapping = MappingProxyType({})


class RoleRecord(BaseModel):
    """Immutable copy of a role row, detached from any session."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    tenant_id: str
    name: str
    description: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.tenant_id == GLOBAL_TENANT_ID


class _Snapshot:
    __slots__ = ("by_tenant", "loaded_at")

    def __init__(self, by_tenant: Mapping[str, Mapping[str, RoleRecord]], loaded_at: float):
        self.by_tenant = by_tenant
        self.loaded_at = loaded_at

    def view(self, tenant_id: Optional[str]) -> Mapping[str, RoleRecord]:
        global_roles = self.by_tenant.get(GLOBAL_TENANT_ID, _EMPTY)
        if tenant_id is None or tenant_id == GLOBAL_TENANT_ID:
            return global_roles
        own = self.by_tenant.get(tenant_id)
        if not own:
            return global_roles
        merged = dict(own)
        # Global names win; the service layer refuses tenant roles that shadow them
        merged.update(global_roles)
        return MappingProxyType(merged)


RoleLoader = Callable[[], Iterable[RoleRecord]]


def session_role_loader(session_factory) -> RoleLoader:
    """Loader that reads every role through a fresh session."""

    def load() -> Iterable[RoleRecord]:
        db = session_factory()
        try:
            return [RoleRecord.model_validate(role) for role in db.query(Role).all()]
        finally:
            db.close()

    return load


class RoleRegistry:
    """TTL-cached role lookups with stale-read fallback."""

    def __init__(
        self,
        loader: RoleLoader,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[_Snapshot] = None

    def _is_fresh(self, snapshot: Optional[_Snapshot]) -> bool:
        return (
            snapshot is not None
            and bool(snapshot.by_tenant)
            and self._clock() - snapshot.loaded_at < self._ttl
        )

    def _refresh(self) -> Optional[_Snapshot]:
        try:
            records = list(self._loader())
        except SQLAlchemyError as e:
            logger.error(f"Role store unavailable, serving cached roles: {e}")
            return self._snapshot

        grouped = defaultdict(dict)
        for record in records:
            grouped[record.tenant_id][record.name.lower()] = record

        snapshot = _Snapshot(
            MappingProxyType({tid: MappingProxyType(roles) for tid, roles in grouped.items()}),
            self._clock(),
        )
        self._snapshot = snapshot
        logger.debug(f"Role cache refreshed: {len(records)} roles")
        return snapshot

    def load_roles(self, tenant_id: Optional[str] = None) -> Mapping[str, RoleRecord]:
        """
        Lowercase role name -> record, as visible to tenant_id.

        Without a tenant only global roles are returned.
        """
        snapshot = self._snapshot
        if not self._is_fresh(snapshot):
            snapshot = self._refresh()
        if snapshot is None:
            return _EMPTY
        return snapshot.view(tenant_id)

    def clear_cache(self) -> None:
        """Drop the cached roles. Call after any role create/rename/delete."""
        self._snapshot = None
        logger.debug("Role cache cleared")
