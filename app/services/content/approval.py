"""
Approval state machine for moderated content.

States are PENDING (gate flag false) and APPROVED (gate flag true). The gate
flag is is_published for courses and documentation and is_approved for
everything else. Every transition is admin-only, never mutates its input, and
returns a TransitionResult instead of raising for expected rejections.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from app.rbac.viewer import Viewer
from app.rbac.visibility import can_edit, can_moderate
from app.services.content.errors import (
    Forbidden,
    InvalidStateTransition,
    MalformedEntityError,
    NotFound,
)
from app.services.content.models import ApprovalState, ContentEntity


class Action(str, Enum):
    APPROVE = "approve"
    UNAPPROVE = "unapprove"
    SET_GUEST_VIEWABLE = "set_guest_viewable"
    TOGGLE_APPROVAL = "toggle_approval"

    def __str__(self):
        return self.value


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    FORBIDDEN = "forbidden"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    NOT_FOUND = "not_found"

    def __str__(self):
        return self.value


_OUTCOME_ERRORS = {
    TransitionOutcome.FORBIDDEN: Forbidden,
    TransitionOutcome.INVALID_STATE_TRANSITION: InvalidStateTransition,
    TransitionOutcome.NOT_FOUND: NotFound,
}


@dataclass(frozen=True)
class TransitionResult:
    outcome: TransitionOutcome
    entity: Optional[ContentEntity] = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.outcome is TransitionOutcome.APPLIED

    def raise_for_outcome(self) -> ContentEntity:
        """Return the new entity, or raise the error matching the rejection"""
        if self.ok:
            return self.entity
        raise _OUTCOME_ERRORS[self.outcome](self.message or None)

    @classmethod
    def applied(cls, entity: ContentEntity) -> 'TransitionResult':
        return cls(TransitionOutcome.APPLIED, entity)

    @classmethod
    def forbidden(cls, entity: Optional[ContentEntity], message: str) -> 'TransitionResult':
        return cls(TransitionOutcome.FORBIDDEN, entity, message)

    @classmethod
    def invalid(cls, entity: Optional[ContentEntity], message: str) -> 'TransitionResult':
        return cls(TransitionOutcome.INVALID_STATE_TRANSITION, entity, message)

    @classmethod
    def not_found(cls, message: str = "Not found.") -> 'TransitionResult':
        return cls(TransitionOutcome.NOT_FOUND, None, message)


# Legal actions per state and the state they lead to.
_TRANSITIONS: dict[ApprovalState, dict[Action, ApprovalState]] = {
    ApprovalState.PENDING: {
        Action.APPROVE: ApprovalState.APPROVED,
        Action.SET_GUEST_VIEWABLE: ApprovalState.PENDING,
    },
    ApprovalState.APPROVED: {
        Action.UNAPPROVE: ApprovalState.PENDING,
        Action.SET_GUEST_VIEWABLE: ApprovalState.APPROVED,
    },
}

MODERATION_FIELDS = frozenset({'is_approved', 'is_published', 'is_guest_viewable'})
IMMUTABLE_FIELDS = frozenset({'id', 'kind', 'author_id', 'parent'})


def allowed_actions(entity: ContentEntity) -> list[str]:
    """Actions that are legal from the entity's current state"""
    if entity.state is None:
        return []
    return [action.value for action in _TRANSITIONS[entity.state]]


def _check(entity: ContentEntity, viewer: Viewer, action: Action) -> Optional[TransitionResult]:
    if not can_moderate(entity, viewer):
        return TransitionResult.forbidden(
            entity, f"Only administrators can {action.value.replace('_', ' ')} content."
        )
    if entity.state is None:
        return TransitionResult.invalid(
            entity, f"{entity.kind.value} has no approval state of its own."
        )
    if action not in _TRANSITIONS[entity.state]:
        return TransitionResult.invalid(
            entity, f"Cannot {action.value} a {entity.kind.value} that is {entity.state.value}."
        )
    return None


def approve(entity: ContentEntity, viewer: Viewer) -> TransitionResult:
    """PENDING -> APPROVED; guest visibility is left untouched"""
    rejection = _check(entity, viewer, Action.APPROVE)
    if rejection:
        return rejection
    return TransitionResult.applied(entity.with_flags(**{entity.kind.gate_field: True}))


def unapprove(entity: ContentEntity, viewer: Viewer) -> TransitionResult:
    """APPROVED -> PENDING; also hides the entity from guests"""
    rejection = _check(entity, viewer, Action.UNAPPROVE)
    if rejection:
        return rejection
    return TransitionResult.applied(
        entity.with_flags(**{entity.kind.gate_field: False, 'is_guest_viewable': False})
    )


def set_guest_viewable(entity: ContentEntity, viewer: Viewer, value: bool) -> TransitionResult:
    rejection = _check(entity, viewer, Action.SET_GUEST_VIEWABLE)
    if rejection:
        return rejection
    if not isinstance(value, bool):
        return TransitionResult.invalid(entity, "Guest visibility must be true or false.")
    if value and not entity.gate_open:
        return TransitionResult.invalid(
            entity, f"A {entity.kind.value} must be approved before guests can see it."
        )
    if value == entity.is_guest_viewable:
        return TransitionResult.applied(entity)
    return TransitionResult.applied(entity.with_flags(is_guest_viewable=value))


def toggle_approval(entity: ContentEntity, viewer: Viewer) -> TransitionResult:
    if entity.state is ApprovalState.APPROVED:
        return unapprove(entity, viewer)
    return approve(entity, viewer)


def apply_action(entity: ContentEntity, viewer: Viewer, action: Action | str,
                 value: Any = None) -> TransitionResult:
    """Dispatch a named moderation action"""
    try:
        action = Action(action)
    except ValueError:
        return TransitionResult.invalid(entity, f"Unknown action: {action}")

    if action is Action.APPROVE:
        return approve(entity, viewer)
    if action is Action.UNAPPROVE:
        return unapprove(entity, viewer)
    if action is Action.TOGGLE_APPROVAL:
        return toggle_approval(entity, viewer)
    return set_guest_viewable(entity, viewer, value)


def _matches_stored(supplied: Any, current: Any) -> bool:
    """Compare a resubmitted identity value, accepting ids sent as digit strings"""
    if isinstance(supplied, bool):
        return False
    if isinstance(current, int) and isinstance(supplied, str):
        return supplied.strip().isdigit() and int(supplied) == current
    return supplied == current


def plan_update(entity: ContentEntity, viewer: Viewer, changes: Mapping[str, Any]) -> TransitionResult:
    """
    Validate an edit payload and compute the resulting entity.

    Moderation flags in the payload require moderation rights and go through
    the same rules as the explicit transitions: unpublishing cascades to guest
    visibility, and asking for guest visibility on unpublished content is
    rejected rather than coerced.
    """
    for field in IMMUTABLE_FIELDS & set(changes):
        current = entity.parent_id if field == 'parent' else getattr(entity, field)
        if not _matches_stored(changes[field], current):
            return TransitionResult.invalid(entity, f"{field} cannot be changed.")
    for field in MODERATION_FIELDS & set(changes):
        if not isinstance(changes[field], bool):
            return TransitionResult.invalid(entity, f"{field} must be true or false.")

    if not can_edit(entity, viewer):
        return TransitionResult.forbidden(entity, "You do not have permission to edit this content.")

    requested = {
        field: changes[field]
        for field in MODERATION_FIELDS & set(changes)
        if changes[field] != getattr(entity, field)
    }
    if requested and not can_moderate(entity, viewer):
        return TransitionResult.forbidden(entity, "Only administrators can change approval or visibility.")
    if requested and not entity.kind.is_moderated:
        return TransitionResult.invalid(entity, f"{entity.kind.value} has no approval flags of its own.")
    unsupported = sorted(set(requested) - entity.kind.flag_fields)
    if unsupported:
        return TransitionResult.invalid(
            entity, f"{entity.kind.value} does not support: {', '.join(unsupported)}"
        )

    flags = {}
    gate_field = entity.kind.gate_field
    if gate_field in requested:
        flags[gate_field] = requested[gate_field]
        if not requested[gate_field]:
            if changes.get('is_guest_viewable') is True:
                return TransitionResult.invalid(
                    entity, "Unpublished content cannot be visible to guests."
                )
            flags['is_guest_viewable'] = False
    for field in ('is_approved', 'is_published', 'is_guest_viewable'):
        if field in requested and field not in flags:
            flags[field] = requested[field]

    gate_after = flags.get(gate_field, entity.gate_open) if gate_field else True
    if flags.get('is_guest_viewable', entity.is_guest_viewable) and not gate_after:
        return TransitionResult.invalid(
            entity, f"A {entity.kind.value} must be approved before guests can see it."
        )

    updates = dict(flags)
    attributes = dict(entity.attributes)
    for field, value in changes.items():
        if field in MODERATION_FIELDS or field in IMMUTABLE_FIELDS:
            continue
        if field == 'title':
            updates['title'] = value
        else:
            attributes[field] = value
    updates['attributes'] = attributes

    try:
        return TransitionResult.applied(entity.with_flags(**updates))
    except MalformedEntityError as e:
        return TransitionResult.invalid(entity, str(e))
