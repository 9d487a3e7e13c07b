import pytest

from app.services.content import (
    Action, EntityKind, Forbidden, InvalidStateTransition, TransitionOutcome,
    allowed_actions, apply_action, approve, plan_update, set_guest_viewable,
    toggle_approval, unapprove
)

from conftest import ADMIN, GUEST, STUDENT, TEACHER_A, TEACHER_B, make_entity


def test_admin_unapprove_hides_course_from_guests():
    course = make_entity(is_published=True, is_guest_viewable=True)
    result = unapprove(course, ADMIN)

    assert result.outcome is TransitionOutcome.APPLIED
    assert result.entity.is_published is False
    assert result.entity.is_guest_viewable is False
    # The input snapshot is untouched
    assert course.is_published and course.is_guest_viewable


def test_teacher_cannot_approve_forum_post():
    post = make_entity(EntityKind.FORUM_POST, author_id=TEACHER_A.id)
    result = approve(post, TEACHER_A)

    assert result.outcome is TransitionOutcome.FORBIDDEN
    with pytest.raises(Forbidden):
        result.raise_for_outcome()


@pytest.mark.parametrize("viewer", [GUEST, STUDENT, TEACHER_A, TEACHER_B])
def test_non_admins_cannot_moderate(viewer):
    course = make_entity(is_published=True)
    for action in Action:
        result = apply_action(course, viewer, action, True)
        assert result.outcome is TransitionOutcome.FORBIDDEN


def test_approve_leaves_guest_visibility_alone():
    course = make_entity()
    result = approve(course, ADMIN)
    assert result.ok
    assert result.entity.is_published
    assert not result.entity.is_guest_viewable
    assert result.raise_for_outcome() is result.entity


def test_forum_post_gate_is_is_approved():
    post = make_entity(EntityKind.FORUM_POST)
    approved = approve(post, ADMIN).entity
    assert approved.is_approved
    assert not approved.is_published


def test_illegal_transitions_are_rejected():
    pending = make_entity()
    published = make_entity(is_published=True)

    assert approve(published, ADMIN).outcome is TransitionOutcome.INVALID_STATE_TRANSITION
    result = unapprove(pending, ADMIN)
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION
    assert result.entity is pending
    with pytest.raises(InvalidStateTransition):
        result.raise_for_outcome()


def test_guest_visibility_requires_approval():
    pending = make_entity()
    assert set_guest_viewable(pending, ADMIN, True).outcome is TransitionOutcome.INVALID_STATE_TRANSITION
    # Clearing an already-clear flag is harmless
    assert set_guest_viewable(pending, ADMIN, False).ok

    published = make_entity(is_published=True)
    result = set_guest_viewable(published, ADMIN, True)
    assert result.ok
    assert result.entity.is_guest_viewable


def test_guest_visibility_same_value_is_a_no_op():
    course = make_entity(is_published=True, is_guest_viewable=True)
    result = set_guest_viewable(course, ADMIN, True)
    assert result.ok
    assert result.entity == course


def test_guest_visibility_value_must_be_boolean():
    course = make_entity(is_published=True)
    result = set_guest_viewable(course, ADMIN, "yes")
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION


def test_lessons_have_no_approval_state():
    lesson = make_entity(EntityKind.LESSON)
    assert lesson.state is None
    assert allowed_actions(lesson) == []
    assert approve(lesson, ADMIN).outcome is TransitionOutcome.INVALID_STATE_TRANSITION


def test_toggle_round_trip_clears_guest_visibility():
    course = make_entity(is_published=True, is_guest_viewable=True)
    off = toggle_approval(course, ADMIN).entity
    assert not off.is_published and not off.is_guest_viewable
    on = toggle_approval(off, ADMIN).entity
    assert on.is_published and not on.is_guest_viewable


def test_allowed_actions_per_state():
    assert allowed_actions(make_entity()) == ['approve', 'set_guest_viewable']
    assert allowed_actions(make_entity(is_published=True)) == ['unapprove', 'set_guest_viewable']


def test_unknown_action():
    result = apply_action(make_entity(), ADMIN, 'publish_everything')
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION


def test_guest_flag_never_outlives_the_gate():
    kinds = [k for k in EntityKind if k.is_moderated]
    for kind in kinds:
        for gate in (False, True):
            flags = {kind.gate_field: gate, 'is_guest_viewable': gate}
            entity = make_entity(kind, **flags)
            for action in Action:
                for value in (True, False):
                    result = apply_action(entity, ADMIN, action, value)
                    after = result.entity
                    if after is not None and after.is_guest_viewable:
                        assert after.gate_open


# plan_update

def test_author_edits_title():
    course = make_entity(title='Old')
    result = plan_update(course, TEACHER_A, {'title': 'New', 'description': 'Updated'})
    assert result.ok
    assert result.entity.title == 'New'
    assert result.entity.attributes['description'] == 'Updated'
    assert result.entity.is_published is False


def test_non_author_cannot_edit():
    course = make_entity()
    assert plan_update(course, TEACHER_B, {'title': 'Mine now'}).outcome is TransitionOutcome.FORBIDDEN
    assert plan_update(course, STUDENT, {'title': 'x'}).outcome is TransitionOutcome.FORBIDDEN


def test_author_cannot_publish_own_course():
    course = make_entity()
    result = plan_update(course, TEACHER_A, {'title': 'Algebra I', 'is_published': True})
    assert result.outcome is TransitionOutcome.FORBIDDEN


def test_unchanged_flags_in_payload_are_not_moderation():
    course = make_entity()
    result = plan_update(course, TEACHER_A, {'is_published': False, 'is_guest_viewable': False})
    assert result.ok


def test_admin_unpublish_via_update_cascades():
    course = make_entity(is_published=True, is_guest_viewable=True)
    result = plan_update(course, ADMIN, {'is_published': False})
    assert result.ok
    assert not result.entity.is_guest_viewable


def test_unpublish_with_guest_visibility_is_rejected():
    course = make_entity(is_published=True, is_guest_viewable=True)
    result = plan_update(course, ADMIN, {'is_published': False, 'is_guest_viewable': True})
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION


def test_publish_and_show_guests_in_one_update():
    course = make_entity()
    result = plan_update(course, ADMIN, {'is_published': True, 'is_guest_viewable': True})
    assert result.ok
    assert result.entity.is_published and result.entity.is_guest_viewable


def test_guest_visibility_on_pending_via_update_is_rejected():
    result = plan_update(make_entity(), ADMIN, {'is_guest_viewable': True})
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION


@pytest.mark.parametrize("changes", [
    {'author_id': 99},
    {'id': 5},
    {'kind': 'documentation'},
])
def test_identity_fields_are_immutable(changes):
    result = plan_update(make_entity(), ADMIN, changes)
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION


def test_resubmitted_identity_fields_are_accepted():
    result = plan_update(make_entity(), TEACHER_A, {'id': '100', 'author_id': 2, 'kind': 'course', 'title': 'B'})
    assert result.ok
    assert result.entity.title == 'B'
    assert plan_update(make_entity(), TEACHER_A, {'id': True}).outcome \
        is TransitionOutcome.INVALID_STATE_TRANSITION


@pytest.mark.parametrize("value", [0, 1, 'false', None])
def test_integer_flags_are_rejected_not_dropped(value):
    course = make_entity(is_published=True)
    result = plan_update(course, ADMIN, {'is_guest_viewable': value})
    assert result.outcome is TransitionOutcome.INVALID_STATE_TRANSITION
    assert plan_update(course, TEACHER_A, {'is_published': value}).outcome \
        is TransitionOutcome.INVALID_STATE_TRANSITION


def test_flags_must_be_booleans_and_supported():
    assert plan_update(make_entity(), ADMIN, {'is_published': 'yes'}).outcome \
        is TransitionOutcome.INVALID_STATE_TRANSITION
    post = make_entity(EntityKind.FORUM_POST)
    assert plan_update(post, ADMIN, {'is_published': True}).outcome \
        is TransitionOutcome.INVALID_STATE_TRANSITION
    lesson = make_entity(EntityKind.LESSON)
    assert plan_update(lesson, ADMIN, {'is_published': True}).outcome \
        is TransitionOutcome.INVALID_STATE_TRANSITION


def test_course_admin_approval_flag_is_independent():
    course = make_entity(is_published=True)
    result = plan_update(course, ADMIN, {'is_approved': True})
    assert result.ok
    assert result.entity.is_approved and result.entity.is_published
