"""
Collection filter: applies the visibility resolver across lists of content
for public listings, management pages and dashboards.

All functions are pure projections. They never mutate the source entities
and never talk to persistence.
"""
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from app.rbac.viewer import Viewer
from app.rbac.visibility import can_moderate, can_view, is_author
from app.services.content.models import ApprovalState, ContentEntity, EntityKind


@dataclass(frozen=True)
class ManagementListing:
    """Entities a viewer manages, split by approval state in source order"""
    pending: List[ContentEntity] = field(default_factory=list)
    approved: List[ContentEntity] = field(default_factory=list)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def approved_count(self) -> int:
        return len(self.approved)

    @property
    def total(self) -> int:
        return self.pending_count + self.approved_count

    def to_dict(self, limit: Optional[int] = None) -> dict:
        pending = self.pending if limit is None else self.pending[:limit]
        approved = self.approved if limit is None else self.approved[:limit]
        return {
            'pending': [e.to_dict() for e in pending],
            'approved': [e.to_dict() for e in approved],
            'pending_count': self.pending_count,
            'approved_count': self.approved_count,
            'total': self.total,
        }


def public_listing(entities: Iterable[ContentEntity], viewer: Viewer) -> List[ContentEntity]:
    """Entities the viewer may see, in source order"""
    return [entity for entity in entities if can_view(entity, viewer)]


def _manages(entity: ContentEntity, viewer: Viewer) -> bool:
    return can_moderate(entity, viewer) or is_author(entity, viewer)


def management_listing(entities: Iterable[ContentEntity], viewer: Viewer) -> ManagementListing:
    """
    Entities the viewer may moderate or authored, partitioned into pending and
    approved buckets. Lessons follow their course's state.
    """
    pending, approved = [], []
    for entity in entities:
        if not _manages(entity, viewer):
            continue
        state = entity.state if entity.state is not None else entity.parent.state
        if state is ApprovalState.APPROVED:
            approved.append(entity)
        else:
            pending.append(entity)
    return ManagementListing(pending=pending, approved=approved)


def comments_on_posts_by(comments: Iterable[ContentEntity], viewer: Viewer) -> List[ContentEntity]:
    """Comments whose parent forum post the viewer authored"""
    return [
        comment for comment in comments
        if comment.parent is not None and is_author(comment.parent, viewer)
    ]


def dashboard(collections: Mapping[EntityKind, Iterable[ContentEntity]],
              viewer: Viewer) -> Dict[EntityKind, ManagementListing]:
    """Per-kind management listings for the admin and teacher dashboards"""
    return {
        EntityKind(kind): management_listing(entities, viewer)
        for kind, entities in collections.items()
    }


def title_collation_key(title: str) -> tuple:
    """
    Accent- and case-insensitive ordering key, so "Álgebra" sorts next to
    "algebra" instead of after "Zoología". Ties fall back to the folded and
    then the raw title so the order is total.
    """
    decomposed = unicodedata.normalize('NFKD', title)
    base = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), title.casefold(), title


def sort_by_title(entities: Iterable[ContentEntity]) -> List[ContentEntity]:
    """
    Alphabetical ordering for display. Never applied implicitly by the
    listings above; callers opt in.
    """
    return sorted(entities, key=lambda entity: title_collation_key(entity.title))
