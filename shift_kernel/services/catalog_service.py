"""
CatalogService -- profile, workplaces and roles.

Responsibility:
    CRUD for the three sources of form defaults, and the synchronous
    ProfileProvider / WorkplaceProvider / RoleProvider lookups that the
    punch-in and add-shift forms resolve defaults from.

Architecture position:
    Kernel > Services.  Persists through a KeyValueBackend:

        profile_v1     {"version": 1, "item": <profile>}
        workplaces_v1  {"version": 1, "items": [...]}   newest first
        roles_v1       {"version": 1, "items": [...]}   newest first

Invariants enforced:
    - Names are stripped and never empty.
    - Renaming a workplace or role never rewrites shifts or the active
      punch; those keep their name snapshots.
    - Delete requires explicit confirmation.

Failure modes:
    - ShiftValidationError("name") for a blank name.
    - WorkplaceNotFoundError / RoleNotFoundError for unknown ids.
    - ConfirmationRequiredError from delete_* without confirmed=True.
    - PersistenceError from the backend or a corrupt blob.
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, TypeVar
from uuid import UUID, uuid4

from shift_kernel.domain.clock import Clock, SystemClock
from shift_kernel.domain.defaults import ResolvedDefaults, resolve_defaults
from shift_kernel.domain.inputs import clamp_break_minutes, non_negative
from shift_kernel.domain.records import Profile, Role, Workplace
from shift_kernel.exceptions import (
    ConfirmationRequiredError,
    NotFoundError,
    PersistenceError,
    RoleNotFoundError,
    ShiftValidationError,
    WorkplaceNotFoundError,
)
from shift_kernel.logging_config import get_logger
from shift_kernel.stores.codec import decode_record, encode_record
from shift_kernel.stores.json_store import SCHEMA_VERSION, JsonCollection
from shift_kernel.stores.kv import KeyValueBackend

logger = get_logger("services.catalog")

PROFILE_KEY = "profile_v1"
WORKPLACES_KEY = "workplaces_v1"
ROLES_KEY = "roles_v1"


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()
"""Marker for "leave unchanged"; pass None to clear a default."""

E = TypeVar("E", Workplace, Role)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ShiftValidationError("name", "must not be empty")
    return cleaned


def _default_changes(
    default_hourly_wage: Any,
    default_break_minutes: Any,
    default_unpaid_break: Any,
) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    if default_hourly_wage is not UNSET:
        changes["default_hourly_wage"] = (
            None if default_hourly_wage is None else non_negative(default_hourly_wage)
        )
    if default_break_minutes is not UNSET:
        changes["default_break_minutes"] = (
            None if default_break_minutes is None else clamp_break_minutes(default_break_minutes)
        )
    if default_unpaid_break is not UNSET:
        changes["default_unpaid_break"] = default_unpaid_break
    return changes


class CatalogService:
    """
    Profile, workplace and role management.

    Contract:
        All reads go to the backend, so two CatalogService instances over
        one backend always agree.

    Guarantees:
        - Workplaces and roles are listed newest first.
        - ``update_*`` touches only the fields passed; ``None`` clears a
          default, ``UNSET`` (the default) leaves it alone.
    """

    def __init__(self, backend: KeyValueBackend, clock: Clock | None = None):
        self._backend = backend
        self._clock = clock or SystemClock()
        self._workplaces = JsonCollection(backend, WORKPLACES_KEY, Workplace)
        self._roles = JsonCollection(backend, ROLES_KEY, Role)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self) -> Profile | None:
        raw = self._backend.get(PROFILE_KEY)
        if raw is None:
            return None
        try:
            return decode_record(Profile, json.loads(raw)["item"])
        except (json.JSONDecodeError, KeyError, TypeError, ArithmeticError, ValueError) as exc:
            logger.error("blob_decode_failed", extra={"key": PROFILE_KEY})
            raise PersistenceError("decode", PROFILE_KEY, str(exc)) from exc

    def save_profile(
        self,
        user_name: str | None = None,
        default_hourly_wage: Any = UNSET,
        default_break_minutes: Any = UNSET,
        default_unpaid_break: Any = UNSET,
    ) -> Profile:
        """Create or update the profile (the lowest-priority defaults layer)."""
        now = self._clock.now()
        profile = self.get_profile() or Profile(created_at=now)
        changes = _default_changes(
            default_hourly_wage, default_break_minutes, default_unpaid_break
        )
        if user_name is not None:
            changes["user_name"] = user_name.strip()
        profile = replace(profile, updated_at=now, **changes)

        document = {"version": SCHEMA_VERSION, "item": encode_record(profile)}
        self._backend.set(PROFILE_KEY, json.dumps(document, sort_keys=True))
        logger.info("profile_saved", extra={"fields": sorted(changes)})
        return profile

    # ------------------------------------------------------------------
    # Workplaces
    # ------------------------------------------------------------------

    def list_workplaces(self) -> list[Workplace]:
        return self._workplaces.load()

    def get_workplace(self, workplace_id: UUID) -> Workplace | None:
        return next((w for w in self._workplaces.load() if w.id == workplace_id), None)

    def add_workplace(
        self,
        name: str,
        default_hourly_wage: Any = None,
        default_break_minutes: Any = None,
        default_unpaid_break: bool | None = None,
    ) -> Workplace:
        now = self._clock.now()
        workplace = Workplace(
            id=uuid4(),
            name=_clean_name(name),
            created_at=now,
            updated_at=now,
            **_default_changes(default_hourly_wage, default_break_minutes, default_unpaid_break),
        )
        self._workplaces.mutate(lambda items: [workplace, *items])
        logger.info("workplace_added", extra={"workplace_id": str(workplace.id)})
        return workplace

    def update_workplace(
        self,
        workplace_id: UUID,
        name: str | None = None,
        default_hourly_wage: Any = UNSET,
        default_break_minutes: Any = UNSET,
        default_unpaid_break: Any = UNSET,
    ) -> Workplace:
        """
        Rename a workplace or change its defaults.

        Raises:
            WorkplaceNotFoundError: unknown id.
        """
        updated = self._update(
            self._workplaces,
            workplace_id,
            WorkplaceNotFoundError(str(workplace_id)),
            name,
            _default_changes(default_hourly_wage, default_break_minutes, default_unpaid_break),
        )
        logger.info("workplace_updated", extra={"workplace_id": str(workplace_id)})
        return updated

    def delete_workplace(self, workplace_id: UUID, confirmed: bool = False) -> None:
        if not confirmed:
            raise ConfirmationRequiredError("delete_workplace")
        self._delete(self._workplaces, workplace_id, WorkplaceNotFoundError(str(workplace_id)))
        logger.info("workplace_deleted", extra={"workplace_id": str(workplace_id)})

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def list_roles(self) -> list[Role]:
        return self._roles.load()

    def get_role(self, role_id: UUID) -> Role | None:
        return next((r for r in self._roles.load() if r.id == role_id), None)

    def add_role(
        self,
        name: str,
        default_hourly_wage: Any = None,
        default_break_minutes: Any = None,
        default_unpaid_break: bool | None = None,
    ) -> Role:
        now = self._clock.now()
        role = Role(
            id=uuid4(),
            name=_clean_name(name),
            created_at=now,
            updated_at=now,
            **_default_changes(default_hourly_wage, default_break_minutes, default_unpaid_break),
        )
        self._roles.mutate(lambda items: [role, *items])
        logger.info("role_added", extra={"role_id": str(role.id)})
        return role

    def update_role(
        self,
        role_id: UUID,
        name: str | None = None,
        default_hourly_wage: Any = UNSET,
        default_break_minutes: Any = UNSET,
        default_unpaid_break: Any = UNSET,
    ) -> Role:
        updated = self._update(
            self._roles,
            role_id,
            RoleNotFoundError(str(role_id)),
            name,
            _default_changes(default_hourly_wage, default_break_minutes, default_unpaid_break),
        )
        logger.info("role_updated", extra={"role_id": str(role_id)})
        return updated

    def delete_role(self, role_id: UUID, confirmed: bool = False) -> None:
        if not confirmed:
            raise ConfirmationRequiredError("delete_role")
        self._delete(self._roles, role_id, RoleNotFoundError(str(role_id)))
        logger.info("role_deleted", extra={"role_id": str(role_id)})

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def resolve_for(
        self,
        workplace_id: UUID | None = None,
        role_id: UUID | None = None,
    ) -> ResolvedDefaults:
        """
        Resolve form defaults for a workplace/role selection by id.

        Raises:
            WorkplaceNotFoundError / RoleNotFoundError: a given id is unknown.
        """
        workplace = role = None
        if workplace_id is not None:
            workplace = self.get_workplace(workplace_id)
            if workplace is None:
                raise WorkplaceNotFoundError(str(workplace_id))
        if role_id is not None:
            role = self.get_role(role_id)
            if role is None:
                raise RoleNotFoundError(str(role_id))
        return resolve_defaults(self.get_profile(), workplace, role)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update(
        self,
        collection: JsonCollection[E],
        entity_id: UUID,
        missing: NotFoundError,
        name: str | None,
        changes: dict[str, Any],
    ) -> E:
        if name is not None:
            changes["name"] = _clean_name(name)
        changes["updated_at"] = self._clock.now()
        result: list[E] = []

        def change(items: list[E]) -> list[E]:
            out = []
            for item in items:
                if item.id == entity_id:
                    item = replace(item, **changes)
                    result.append(item)
                out.append(item)
            if not result:
                raise missing
            return out

        collection.mutate(change)
        return result[0]

    def _delete(
        self,
        collection: JsonCollection[E],
        entity_id: UUID,
        missing: NotFoundError,
    ) -> None:
        def change(items: list[E]) -> list[E]:
            kept = [item for item in items if item.id != entity_id]
            if len(kept) == len(items):
                raise missing
            return kept

        collection.mutate(change)
