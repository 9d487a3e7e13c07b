"""
Pydantic models for the moderation and visibility state of content
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.services.content.errors import MalformedEntityError


class EntityKind(str, Enum):
    """Kinds of content that share the approval workflow"""
    COURSE = "course"
    LESSON = "lesson"
    DOCUMENTATION = "documentation"
    FORUM_POST = "forum_post"
    COMMENT = "comment"
    CONFERENCE = "conference"

    def __str__(self):
        return self.value

    @property
    def gate_field(self) -> Optional[str]:
        """Flag that gates general visibility, None for kinds without one"""
        if self in (EntityKind.COURSE, EntityKind.DOCUMENTATION):
            return 'is_published'
        if self is EntityKind.LESSON:
            return None
        return 'is_approved'

    @property
    def is_moderated(self) -> bool:
        return self.gate_field is not None

    @property
    def flag_fields(self) -> frozenset:
        """Moderation flags this kind actually carries"""
        if self is EntityKind.COURSE:
            # Courses keep a separate "approved by admin" flag next to publication
            return frozenset({'is_published', 'is_approved', 'is_guest_viewable'})
        if self.gate_field is None:
            return frozenset()
        return frozenset({self.gate_field, 'is_guest_viewable'})

    @property
    def parent_kind(self) -> Optional['EntityKind']:
        return _PARENT_KINDS.get(self)

    @property
    def child_kind(self) -> Optional['EntityKind']:
        for child, parent in _PARENT_KINDS.items():
            if parent is self:
                return child
        return None


_PARENT_KINDS = {
    EntityKind.LESSON: EntityKind.COURSE,
    EntityKind.COMMENT: EntityKind.FORUM_POST,
}


class ApprovalState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"

    def __str__(self):
        return self.value


class ContentEntity(BaseModel):
    """
    Snapshot of a content item as seen by the visibility resolver.

    Instances are immutable; transitions produce new instances. Children
    (lessons, comments) always carry their parent so that parent gating can
    be evaluated without another lookup.
    """
    model_config = ConfigDict(frozen=True)

    id: Any = Field(..., description="Opaque identifier")
    kind: EntityKind = Field(..., description="Content kind")
    title: str = Field('', description="Display title, used for sorting only")
    author_id: Optional[Any] = Field(None, description="Creator, absent for legacy content")
    is_approved: bool = Field(False, description="Admin approval flag")
    is_published: bool = Field(False, description="Publication flag (courses, documentation)")
    is_guest_viewable: bool = Field(False, description="Visible to unauthenticated viewers")
    parent: Optional['ContentEntity'] = Field(None, description="Parent entity for lessons and comments")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Display-only fields")

    @model_validator(mode='after')
    def _check_invariants(self) -> 'ContentEntity':
        if self.id is None:
            raise ValueError("id is required")

        expected_parent = self.kind.parent_kind
        if expected_parent is None and self.parent is not None:
            raise ValueError(f"{self.kind.value} cannot have a parent")
        if expected_parent is not None:
            if self.parent is None:
                raise ValueError(f"{self.kind.value} requires its parent {expected_parent.value}")
            if self.parent.kind is not expected_parent:
                raise ValueError(
                    f"{self.kind.value} parent must be a {expected_parent.value}, got {self.parent.kind.value}"
                )

        if self.kind.is_moderated:
            if self.is_guest_viewable and not self.gate_open:
                raise ValueError(
                    f"{self.kind.value} {self.id} is guest viewable but {self.kind.gate_field} is false"
                )
        elif self.is_guest_viewable:
            # Lessons inherit guest visibility from their course
            raise ValueError("lessons do not carry their own guest visibility")
        return self

    @classmethod
    def from_record(cls, **data) -> 'ContentEntity':
        """Build an entity from collaborator data, raising MalformedEntityError on bad input"""
        try:
            return cls(**data)
        except ValidationError as e:
            raise MalformedEntityError(str(e)) from e

    @property
    def gate_open(self) -> bool:
        """Whether the entity's own approval/publication gate is open"""
        field = self.kind.gate_field
        if field is None:
            return True
        return bool(getattr(self, field))

    @property
    def state(self) -> Optional[ApprovalState]:
        if not self.kind.is_moderated:
            return None
        return ApprovalState.APPROVED if self.gate_open else ApprovalState.PENDING

    @property
    def guest_viewable(self) -> bool:
        """Own guest flag, or the parent's for kinds that inherit it"""
        if not self.kind.is_moderated:
            return self.parent is not None and self.parent.guest_viewable
        return self.is_guest_viewable

    @property
    def parent_id(self) -> Optional[Any]:
        return self.parent.id if self.parent is not None else None

    def with_flags(self, **changes) -> 'ContentEntity':
        """Return a validated copy with the given fields replaced"""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self).from_record(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON responses"""
        result = dict(self.attributes)
        result.update({
            'id': self.id,
            'kind': self.kind.value,
            'title': self.title,
            'author_id': self.author_id,
            'is_approved': self.is_approved,
            'is_published': self.is_published,
            'is_guest_viewable': self.is_guest_viewable,
            'state': self.state.value if self.state else None,
            'parent_id': self.parent_id,
        })
        return result


ContentEntity.model_rebuild()
