from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from herd_access.auth.permissions import Permission


class DenialReason(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    EVALUATION_ERROR = "EVALUATION_ERROR"


@dataclass(frozen=True)
class Allowed:
    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    """
    A refused request.

    `required` and `granted` are for the audit log only and must never be
    echoed back to the caller.
    """

    reason: DenialReason
    required: frozenset[Permission] = field(default_factory=frozenset)
    granted: frozenset[Permission] = field(default_factory=frozenset)

    @property
    def allowed(self) -> bool:
        return False


Decision = Union[Allowed, Denied]

ALLOWED = Allowed()
UNAUTHENTICATED = Denied(DenialReason.UNAUTHENTICATED)
EVALUATION_ERROR = Denied(DenialReason.EVALUATION_ERROR)
