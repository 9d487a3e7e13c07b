"""
Visibility resolver: the single place that decides who may see, edit or
moderate a piece of content.

Every function here is pure over (entity, viewer). Routes, dashboards and
template helpers all call into this module instead of re-deriving
author/admin/flag checks locally.
"""
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from app.rbac.roles import Role
from app.rbac.viewer import Viewer, has_role

if TYPE_CHECKING:
    from app.services.content.models import ContentEntity


class ViewGate(str, Enum):
    """User-facing outcome of a view check"""
    ALLOWED = "allowed"
    LOGIN_REQUIRED = "login_required"
    NOT_FOUND = "not_found"

    def __str__(self):
        return self.value


_DENIAL_MESSAGES = {
    ViewGate.LOGIN_REQUIRED: "Login required to view this content.",
    ViewGate.NOT_FOUND: "Not found.",
}


@dataclass(frozen=True)
class AccessDecision:
    can_view: bool
    can_edit: bool
    can_moderate: bool

    def to_dict(self) -> dict:
        return {
            'can_view': self.can_view,
            'can_edit': self.can_edit,
            'can_moderate': self.can_moderate,
        }


def is_author(entity: 'ContentEntity', viewer: Viewer) -> bool:
    """Authorship grants never apply to unattributed content or guests"""
    if entity.author_id is None or viewer.id is None:
        return False
    return str(entity.author_id) == str(viewer.id)


def _can_view_self(entity: 'ContentEntity', viewer: Viewer) -> bool:
    if has_role(viewer, {Role.ADMIN}):
        return True
    if is_author(entity, viewer):
        return True
    return entity.gate_open and (entity.guest_viewable or viewer.is_authenticated)


def can_view(entity: 'ContentEntity', viewer: Viewer) -> bool:
    """
    Check if the viewer may see the entity.

    Children are never more visible than their parent: the parent chain is
    checked first, then the entity's own flags.
    """
    if entity.parent is not None and not can_view(entity.parent, viewer):
        return False
    return _can_view_self(entity, viewer)


def can_edit(entity: 'ContentEntity', viewer: Viewer) -> bool:
    """Admins edit anything; teachers edit what they authored"""
    if has_role(viewer, {Role.ADMIN}):
        return True
    return has_role(viewer, {Role.TEACHER}) and is_author(entity, viewer)


def can_moderate(entity: 'ContentEntity', viewer: Viewer) -> bool:
    """Only admins flip approval, publication or guest visibility"""
    return has_role(viewer, {Role.ADMIN})


def resolve(entity: 'ContentEntity', viewer: Viewer) -> AccessDecision:
    return AccessDecision(
        can_view=can_view(entity, viewer),
        can_edit=can_edit(entity, viewer),
        can_moderate=can_moderate(entity, viewer),
    )


def gate_outcome(entity: 'ContentEntity', viewer: Viewer) -> ViewGate:
    """
    Map a view decision to what the caller may tell the viewer.

    Content whose gate is closed is reported as not found so that pending
    items are not revealed to strangers. Published content that is restricted
    to members only asks guests to log in.
    """
    if entity.parent is not None:
        parent_gate = gate_outcome(entity.parent, viewer)
        if parent_gate is not ViewGate.ALLOWED:
            return parent_gate

    if _can_view_self(entity, viewer):
        return ViewGate.ALLOWED
    if entity.gate_open and not viewer.is_authenticated:
        return ViewGate.LOGIN_REQUIRED
    return ViewGate.NOT_FOUND


def describe_denial(gate: ViewGate) -> str | None:
    return _DENIAL_MESSAGES.get(gate)
