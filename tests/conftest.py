from __future__ import annotations

from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from app import create_app
from app.config import TestConfig
from app.models import UserModel
from app.rbac import Viewer
from app.services.content import ContentEntity, EntityKind
from app.utils.db import get_db

PASSWORD = "correct-horse"


@pytest.fixture()
def app() -> Generator[Flask, None, None]:
    """A fresh app backed by its own in-memory database."""
    app = create_app(TestConfig)
    yield app
    app.extensions['db_engine'].dispose()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def users(app: Flask) -> dict:
    """Seeded accounts keyed by a short name, values are user ids."""
    with app.app_context():
        return {
            'admin': UserModel.create_user('Ada', 'Admin', 'admin@example.com', PASSWORD, 'admin'),
            'teacher_a': UserModel.create_user('Tara', 'Teach', 'teacher.a@example.com', PASSWORD, 'teacher'),
            'teacher_b': UserModel.create_user('Theo', 'Teach', 'teacher.b@example.com', PASSWORD, 'teacher'),
            'student': UserModel.create_user('Sam', 'Study', 'student@example.com', PASSWORD, 'student'),
            'student_b': UserModel.create_user('Sue', 'Study', 'student.b@example.com', PASSWORD, 'student'),
        }


EMAILS = {
    'admin': 'admin@example.com',
    'teacher_a': 'teacher.a@example.com',
    'teacher_b': 'teacher.b@example.com',
    'student': 'student@example.com',
    'student_b': 'student.b@example.com',
}


@pytest.fixture()
def login(client: FlaskClient, users: dict):
    """Log the shared test client in as one of the seeded users."""
    def _login(name: str, test_client: FlaskClient | None = None):
        response = (test_client or client).post(
            '/auth/login', json={'email': EMAILS[name], 'password': PASSWORD}
        )
        assert response.status_code == 200, response.get_json()
        return response
    return _login


@pytest.fixture()
def logout(client: FlaskClient):
    def _logout():
        client.post('/auth/logout')
    return _logout


@pytest.fixture()
def add_row(app: Flask):
    """Insert a database row directly, bypassing the approval workflow."""
    def _add(model, **fields):
        with app.app_context():
            db = get_db()
            row = model(**fields)
            db.add(row)
            db.commit()
            return row.id
    return _add


# Plain entities and viewers for the pure resolver/state machine tests

GUEST = Viewer.guest()
ADMIN = Viewer.authenticated(1, 'admin')
TEACHER_A = Viewer.authenticated(2, 'teacher')
TEACHER_B = Viewer.authenticated(3, 'teacher')
STUDENT = Viewer.authenticated(4, 'student')


def make_entity(kind: EntityKind | str = EntityKind.COURSE, **fields) -> ContentEntity:
    kind = EntityKind(kind)
    data = {'id': fields.pop('id', 100), 'kind': kind, 'title': 'Algebra I', 'author_id': TEACHER_A.id}
    if kind.parent_kind is not None and 'parent' not in fields:
        data['parent'] = make_entity(kind.parent_kind, id=10, is_approved=True, is_published=True)
    data.update(fields)
    return ContentEntity.from_record(**data)
