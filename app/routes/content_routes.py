"""
Content routes shared by every moderated collection.

Each URL slug maps to an EntityKind; loading goes through ContentModel and
every access decision goes through the visibility resolver, so courses,
documentation, forums and conferences behave the same way.
"""
from flask import Blueprint, request, jsonify
import logging

from app.models import ContentModel, EnrollmentModel
from app.rbac import (
    Role, login_required, role_required, get_current_viewer,
    gate_outcome, describe_denial, resolve, ViewGate, can_create
)
from app.services.content import (
    Action, ContentEntity, EntityKind, Forbidden, InvalidStateTransition,
    LoginRequired, NotFound, allowed_actions, management_listing,
    public_listing, sort_by_title
)

logger = logging.getLogger(__name__)
bp = Blueprint('content', __name__)

COLLECTIONS = {
    'courses': EntityKind.COURSE,
    'lessons': EntityKind.LESSON,
    'documentation': EntityKind.DOCUMENTATION,
    'forum-posts': EntityKind.FORUM_POST,
    'comments': EntityKind.COMMENT,
    'conferences': EntityKind.CONFERENCE,
}


def _kind_for(collection: str) -> EntityKind:
    kind = COLLECTIONS.get(collection)
    if kind is None:
        raise NotFound(f"Unknown collection: {collection}")
    return kind


def _sorted(entities):
    if request.args.get('sort') == 'title':
        return sort_by_title(entities)
    return entities


def _load_visible(kind: EntityKind, entity_id: int, viewer) -> ContentEntity:
    """Load an entity or raise the error the viewer is allowed to see"""
    entity = ContentModel.fetch_entity(kind, entity_id)
    if entity is None:
        raise NotFound()

    gate = gate_outcome(entity, viewer)
    if gate is ViewGate.LOGIN_REQUIRED:
        logger.info(f"Guest asked to log in for {kind.value} {entity_id}")
        raise LoginRequired(describe_denial(gate))
    if gate is ViewGate.NOT_FOUND:
        logger.info(f"User {viewer.id} ({viewer.role}) denied view of {kind.value} {entity_id}")
        raise NotFound(describe_denial(gate))
    return entity


def _entity_payload(entity: ContentEntity, viewer) -> dict:
    payload = entity.to_dict()
    payload['permissions'] = resolve(entity, viewer).to_dict()
    if payload['permissions']['can_moderate']:
        payload['allowed_actions'] = allowed_actions(entity)
    return payload


@bp.route('/<collection>', methods=['GET'])
def list_collection(collection):
    """Everything in the collection the current viewer may see"""
    kind = _kind_for(collection)
    viewer = get_current_viewer()

    filter_hint = {}
    if request.args.get('mine') == '1':
        if not viewer.is_authenticated:
            raise LoginRequired()
        filter_hint['author_id'] = viewer.id

    items = _sorted(public_listing(ContentModel.fetch_collection(kind, filter_hint), viewer))
    return jsonify({
        'success': True,
        'items': [entity.to_dict() for entity in items],
        'count': len(items)
    })


@bp.route('/<collection>', methods=['POST'])
@login_required
def create_item(collection):
    kind = _kind_for(collection)
    viewer = get_current_viewer()
    if not can_create(viewer.role, kind):
        logger.info(f"User {viewer.id} with role {viewer.role} attempted to create a {kind.value}")
        raise Forbidden(f"You do not have permission to create a {kind.value.replace('_', ' ')}.")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidStateTransition("Request body must be a JSON object.")

    entity = ContentModel.create_content(kind, viewer, data)
    return jsonify({'success': True, 'item': _entity_payload(entity, viewer)}), 201


@bp.route('/<collection>/manage', methods=['GET'])
@role_required(Role.TEACHER, Role.ADMIN)
def manage_collection(collection):
    """Pending and approved buckets of what the viewer authored or moderates"""
    kind = _kind_for(collection)
    viewer = get_current_viewer()
    listing = management_listing(_sorted(ContentModel.fetch_collection(kind)), viewer)
    return jsonify({'success': True, **listing.to_dict()})


@bp.route('/<collection>/<int:entity_id>', methods=['GET'])
def get_item(collection, entity_id):
    kind = _kind_for(collection)
    viewer = get_current_viewer()
    entity = _load_visible(kind, entity_id, viewer)
    return jsonify({'success': True, 'item': _entity_payload(entity, viewer)})


@bp.route('/<collection>/<int:entity_id>', methods=['PUT'])
@login_required
def update_item(collection, entity_id):
    kind = _kind_for(collection)
    viewer = get_current_viewer()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidStateTransition("Request body must be a JSON object.")

    entity = ContentModel.apply_update(kind, entity_id, viewer, data).raise_for_outcome()
    return jsonify({'success': True, 'item': _entity_payload(entity, viewer)})


@bp.route('/<collection>/<int:entity_id>', methods=['DELETE'])
@login_required
def delete_item(collection, entity_id):
    kind = _kind_for(collection)
    viewer = get_current_viewer()
    ContentModel.delete_content(kind, entity_id, viewer).raise_for_outcome()
    return jsonify({'success': True})


@bp.route('/<collection>/<int:entity_id>/children', methods=['GET'])
def list_children(collection, entity_id):
    """Lessons of a course or comments of a forum post"""
    kind = _kind_for(collection)
    if kind.child_kind is None:
        raise NotFound(f"{collection} have no children")
    viewer = get_current_viewer()
    parent = _load_visible(kind, entity_id, viewer)

    children = public_listing(ContentModel.fetch_children(parent), viewer)
    return jsonify({
        'success': True,
        'parent': parent.to_dict(),
        'items': [child.to_dict() for child in children],
        'count': len(children)
    })


def _moderate(collection, entity_id, action, value=None):
    kind = _kind_for(collection)
    viewer = get_current_viewer()
    result = ContentModel.apply_approval(kind, entity_id, viewer, action, value)
    entity = result.raise_for_outcome()
    return jsonify({'success': True, 'item': _entity_payload(entity, viewer)})


@bp.route('/<collection>/<int:entity_id>/approve', methods=['POST'])
@login_required
def approve_item(collection, entity_id):
    return _moderate(collection, entity_id, Action.APPROVE)


@bp.route('/<collection>/<int:entity_id>/unapprove', methods=['POST'])
@login_required
def unapprove_item(collection, entity_id):
    return _moderate(collection, entity_id, Action.UNAPPROVE)


@bp.route('/<collection>/<int:entity_id>/toggle-approval', methods=['POST'])
@login_required
def toggle_item_approval(collection, entity_id):
    return _moderate(collection, entity_id, Action.TOGGLE_APPROVAL)


@bp.route('/<collection>/<int:entity_id>/guest-viewable', methods=['POST'])
@login_required
def set_item_guest_viewable(collection, entity_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'value' not in data:
        raise InvalidStateTransition("Missing 'value'.")
    return _moderate(collection, entity_id, Action.SET_GUEST_VIEWABLE, data['value'])


@bp.route('/courses/<int:course_id>/enrollment', methods=['GET'])
@login_required
def enrollment_status(course_id):
    viewer = get_current_viewer()
    course = _load_visible(EntityKind.COURSE, course_id, viewer)
    enrollment = EnrollmentModel(viewer.id).get_enrollment(course.id)
    return jsonify({'success': True, 'is_enrolled': enrollment is not None, 'enrollment': enrollment})


@bp.route('/courses/<int:course_id>/enrollment', methods=['POST'])
@login_required
def enroll(course_id):
    viewer = get_current_viewer()
    course = _load_visible(EntityKind.COURSE, course_id, viewer)
    enrollment = EnrollmentModel(viewer.id).enroll(course, viewer)
    return jsonify({'success': True, 'is_enrolled': True, 'enrollment': enrollment}), 201


@bp.route('/courses/<int:course_id>/enrollment', methods=['DELETE'])
@login_required
def unenroll(course_id):
    """Leave a course; allowed even after the course stops being visible"""
    viewer = get_current_viewer()
    if not EnrollmentModel(viewer.id).unenroll(course_id):
        raise NotFound("Not enrolled in this course.")
    return jsonify({'success': True, 'is_enrolled': False})
