"""
Data scope filter.

Computes which rows a permitted principal may see. The descriptor is
advisory: every data-access call site must merge it into its own query
(see `apply_scope`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from herd_access.auth.models import ADMIN_ROLE, Principal
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)


class _MatchNothing:
    _instance: _MatchNothing | None = None

    def __new__(cls) -> _MatchNothing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MATCH_NOTHING"


MATCH_NOTHING = _MatchNothing()


@dataclass(frozen=True)
class Unrestricted:
    @property
    def restricted(self) -> bool:
        return False


@dataclass(frozen=True)
class RestrictedTo:
    base_id: Union[int, _MatchNothing]

    @property
    def restricted(self) -> bool:
        return True

    @property
    def matches_nothing(self) -> bool:
        return self.base_id is MATCH_NOTHING


ScopeDescriptor = Union[Unrestricted, RestrictedTo]

UNRESTRICTED = Unrestricted()
NO_ACCESS = RestrictedTo(MATCH_NOTHING)


def compute_scope(principal: Principal) -> ScopeDescriptor:
    """
    Row visibility for an already-authorized principal.

    Admins and principals without a base (HQ roles) see everything; everyone
    else sees their own base. Permissions, wildcard included, play no part.
    Never raises: unreadable principal data yields NO_ACCESS.
    """
    try:
        if principal.role_name == ADMIN_ROLE:
            return UNRESTRICTED
        base_id = principal.base_id
    except Exception:
        log.exception("scope.malformed_principal user_id=%s", getattr(principal, "user_id", None))
        return NO_ACCESS

    if base_id is None:
        return UNRESTRICTED
    if isinstance(base_id, bool) or not isinstance(base_id, int) or base_id <= 0:
        log.error(
            "scope.invalid_base_id user_id=%s base_id_type=%s",
            getattr(principal, "user_id", None),
            type(base_id).__name__,
        )
        return NO_ACCESS
    return RestrictedTo(base_id)


def apply_scope(query: Mapping[str, Any] | None, scope: ScopeDescriptor, *, field: str = "base_id") -> dict[str, Any]:
    """Return a copy of a Mongo-style filter with the scope predicate merged in."""
    q: dict[str, Any] = dict(query or {})
    if not isinstance(scope, RestrictedTo):
        return q
    if scope.matches_nothing:
        q[field] = {"$in": []}
        return q
    if field in q and q[field] != scope.base_id:
        existing = q[field]
        # The caller filters this field differently; keep both so only the intersection matches.
        q["$and"] = [*q.get("$and", []), {field: existing}, {field: scope.base_id}]
        del q[field]
        return q
    q[field] = scope.base_id
    return q


def can_access_base(scope: ScopeDescriptor | None, base_id: int) -> bool:
    if scope is None:
        return False
    if isinstance(scope, Unrestricted):
        return True
    return not scope.matches_nothing and scope.base_id == base_id


class ScopePolicy:
    """
    Per-resource scoping configuration.

    Resources listed as global (e.g. news, suppliers) are not filtered by
    base. Every other resource is filtered under its configured field,
    falling back to `default_field`, so a resource nobody thought about is
    scoped rather than leaked.
    """

    def __init__(
        self,
        *,
        default_field: str = "base_id",
        fields: Mapping[str, str] | None = None,
        global_resources: Iterable[str] = (),
    ):
        self._default_field = default_field
        self._fields = dict(fields or {})
        self._global = frozenset(global_resources)
        overlap = self._global & self._fields.keys()
        if overlap:
            raise ValueError(f"resources both global and scoped: {sorted(overlap)}")

    def is_scoped(self, resource: str) -> bool:
        return resource not in self._global

    def field_for(self, resource: str) -> str | None:
        if not self.is_scoped(resource):
            return None
        return self._fields.get(resource, self._default_field)

    def apply(self, resource: str, query: Mapping[str, Any] | None, scope: ScopeDescriptor) -> dict[str, Any]:
        field = self.field_for(resource)
        if field is None:
            return dict(query or {})
        return apply_scope(query, scope, field=field)
