"""
Content moderation package: entity model, approval state machine and
collection filters shared by courses, documentation, forums and conferences
"""
from .errors import (
    ContentError,
    Forbidden,
    InvalidStateTransition,
    NotFound,
    LoginRequired,
    MalformedEntityError
)
from .models import ApprovalState, ContentEntity, EntityKind
from .approval import (
    Action,
    TransitionOutcome,
    TransitionResult,
    allowed_actions,
    approve,
    unapprove,
    set_guest_viewable,
    toggle_approval,
    apply_action,
    plan_update
)
from .collection import (
    ManagementListing,
    public_listing,
    management_listing,
    comments_on_posts_by,
    dashboard,
    sort_by_title
)

__all__ = [
    'ContentError',
    'Forbidden',
    'InvalidStateTransition',
    'NotFound',
    'LoginRequired',
    'MalformedEntityError',
    'ApprovalState',
    'ContentEntity',
    'EntityKind',
    'Action',
    'TransitionOutcome',
    'TransitionResult',
    'allowed_actions',
    'approve',
    'unapprove',
    'set_guest_viewable',
    'toggle_approval',
    'apply_action',
    'plan_update',
    'ManagementListing',
    'public_listing',
    'management_listing',
    'comments_on_posts_by',
    'dashboard',
    'sort_by_title',
]
