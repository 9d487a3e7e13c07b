from flask import Blueprint, request, jsonify
import logging

from app.models import ContentModel, EnrollmentModel, UserModel
from app.models.database_models import User as DBUser
from app.rbac import Role, admin_only, student_only, teacher_only, get_current_viewer
from app.services.content import (
    EntityKind, dashboard, public_listing, comments_on_posts_by
)
from app.utils.db import get_db

logger = logging.getLogger(__name__)
bp = Blueprint('dashboard', __name__)

MODERATED_KINDS = (
    EntityKind.COURSE,
    EntityKind.DOCUMENTATION,
    EntityKind.FORUM_POST,
    EntityKind.COMMENT,
    EntityKind.CONFERENCE,
)

TEACHER_KINDS = (
    EntityKind.COURSE,
    EntityKind.DOCUMENTATION,
    EntityKind.FORUM_POST,
    EntityKind.CONFERENCE,
)


def _limit():
    limit = request.args.get('limit', type=int)
    return limit if limit and limit > 0 else None


def _listings_payload(listings, limit):
    return {kind.value: listing.to_dict(limit) for kind, listing in listings.items()}


@bp.route('/admin', methods=['GET'])
@admin_only
def admin_dashboard():
    """Everything in the portal, split into pending and approved"""
    viewer = get_current_viewer()
    listings = dashboard({kind: ContentModel.fetch_collection(kind) for kind in MODERATED_KINDS}, viewer)

    db = get_db()
    user_counts = {
        role: db.query(DBUser).filter(DBUser.role == role).count()
        for role in Role.account_roles()
    }
    return jsonify({
        'success': True,
        'content': _listings_payload(listings, _limit()),
        'pending_total': sum(listing.pending_count for listing in listings.values()),
        'users': user_counts
    })


@bp.route('/teacher', methods=['GET'])
@teacher_only
def teacher_dashboard():
    """The teacher's own content plus the comments left on their forum posts"""
    viewer = get_current_viewer()
    listings = dashboard(
        {kind: ContentModel.fetch_collection(kind, {'author_id': viewer.id}) for kind in TEACHER_KINDS},
        viewer
    )
    comments = comments_on_posts_by(
        public_listing(ContentModel.fetch_collection(EntityKind.COMMENT), viewer),
        viewer
    )
    limit = _limit()
    return jsonify({
        'success': True,
        'content': _listings_payload(listings, limit),
        'comments_on_my_posts': [c.to_dict() for c in (comments if limit is None else comments[:limit])],
        'comments_on_my_posts_count': len(comments)
    })


@bp.route('/student', methods=['GET'])
@student_only
def student_dashboard():
    """Enrolled and available courses, visible conferences and the student's own forum posts"""
    viewer = get_current_viewer()
    courses = public_listing(ContentModel.fetch_collection(EntityKind.COURSE), viewer)
    enrolled_ids = set(EnrollmentModel(viewer.id).enrolled_course_ids())
    enrolled = [c for c in courses if c.id in enrolled_ids]
    available = [c for c in courses if c.id not in enrolled_ids]
    conferences = public_listing(ContentModel.fetch_collection(EntityKind.CONFERENCE), viewer)
    my_posts = dashboard(
        {EntityKind.FORUM_POST: ContentModel.fetch_collection(EntityKind.FORUM_POST, {'author_id': viewer.id})},
        viewer
    )[EntityKind.FORUM_POST]
    limit = _limit()

    def _cut(items):
        return items if limit is None else items[:limit]

    return jsonify({
        'success': True,
        'user': UserModel.get_user_by_id(viewer.id),
        'enrolled_courses': [c.to_dict() for c in _cut(enrolled)],
        'available_courses': [c.to_dict() for c in _cut(available)],
        'conferences': [c.to_dict() for c in _cut(conferences)],
        'my_forum_posts': my_posts.to_dict(limit)
    })
