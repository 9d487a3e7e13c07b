"""
The acting principal passed explicitly into every visibility decision.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from app.rbac.roles import Role


class MalformedViewerError(ValueError):
    """Raised when a viewer breaks the guest/authenticated invariant."""


@dataclass(frozen=True)
class Viewer:
    """
    A point-in-time snapshot of who is asking.

    Unauthenticated viewers are always guests without an id; authenticated
    viewers always carry an id and a non-guest role.
    """
    is_authenticated: bool = False
    id: Optional[Any] = None
    role: Role = Role.GUEST

    def __post_init__(self):
        role = Role.from_string(self.role)
        object.__setattr__(self, 'role', role)

        if not self.is_authenticated:
            if self.id is not None or role is not Role.GUEST:
                raise MalformedViewerError(
                    "Unauthenticated viewer must be a guest without an id"
                )
        else:
            if self.id is None:
                raise MalformedViewerError("Authenticated viewer requires an id")
            if role is Role.GUEST:
                raise MalformedViewerError("Authenticated viewer cannot have the guest role")

    @property
    def roles(self) -> frozenset:
        return frozenset({self.role})

    @classmethod
    def guest(cls) -> 'Viewer':
        return cls()

    @classmethod
    def authenticated(cls, user_id: Any, role: Role | str) -> 'Viewer':
        return cls(is_authenticated=True, id=user_id, role=Role.from_string(role))


ANONYMOUS = Viewer.guest()


def has_role(viewer: Viewer, allowed_roles: Iterable[Role | str]) -> bool:
    """
    Check the viewer's effective role against an explicit set of roles.

    There is no implicit hierarchy: admin does not satisfy a {teacher} check.
    Unknown names in allowed_roles raise ValueError.
    """
    allowed = {Role.parse(r) for r in allowed_roles}
    return viewer.role in allowed
