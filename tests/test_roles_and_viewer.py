import pytest
from flask import session

from app.rbac import (
    Role, Viewer, MalformedViewerError, has_role, ANONYMOUS, get_current_viewer, role_required
)


@pytest.mark.parametrize("raw, expected", [
    ("admin", Role.ADMIN),
    (" Teacher ", Role.TEACHER),
    ("STUDENT", Role.STUDENT),
    ("superuser", Role.GUEST),
    ("", Role.GUEST),
    (None, Role.GUEST),
    (Role.ADMIN, Role.ADMIN),
])
def test_role_from_string(raw, expected):
    assert Role.from_string(raw) is expected


def test_account_roles_exclude_guest():
    assert Role.account_roles() == ['student', 'teacher', 'admin']
    assert Role.get_all() == ['guest', 'student', 'teacher', 'admin']
    assert Role.is_valid('guest')
    assert not Role.is_valid('owner')


def test_guest_viewer_has_no_id():
    viewer = Viewer.guest()
    assert not viewer.is_authenticated
    assert viewer.id is None
    assert viewer.role is Role.GUEST
    assert viewer.roles == frozenset({Role.GUEST})
    assert viewer == ANONYMOUS


def test_authenticated_viewer_normalizes_role():
    viewer = Viewer.authenticated(7, 'Teacher')
    assert viewer.is_authenticated
    assert viewer.role is Role.TEACHER


@pytest.mark.parametrize("kwargs", [
    dict(is_authenticated=False, id=5),
    dict(is_authenticated=False, role=Role.STUDENT),
    dict(is_authenticated=True, id=None, role=Role.STUDENT),
    dict(is_authenticated=True, id=5, role=Role.GUEST),
    dict(is_authenticated=True, id=5, role='not-a-role'),
])
def test_malformed_viewers_are_rejected(kwargs):
    with pytest.raises(MalformedViewerError):
        Viewer(**kwargs)


def test_viewer_is_immutable():
    viewer = Viewer.authenticated(1, Role.ADMIN)
    with pytest.raises(Exception):
        viewer.role = Role.GUEST


def test_roles_are_not_hierarchical():
    admin = Viewer.authenticated(1, Role.ADMIN)
    assert has_role(admin, {Role.ADMIN})
    assert not has_role(admin, {Role.TEACHER})
    assert has_role(admin, ['teacher', 'admin'])


@pytest.mark.parametrize("allowed", [{'superuser'}, ['admin', 'amdin'], [None]])
def test_unknown_allowed_roles_raise(allowed):
    with pytest.raises(ValueError):
        has_role(Viewer.guest(), allowed)


def test_role_required_rejects_typos_at_decoration():
    with pytest.raises(ValueError):
        role_required('techer')


def test_unknown_session_role_is_a_guest(app):
    with app.test_request_context():
        session['user_id'] = 42
        session['role'] = 'wizard'
        viewer = get_current_viewer()
        assert not viewer.is_authenticated
        assert viewer.role is Role.GUEST
