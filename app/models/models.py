from typing import Optional, List, Dict, Any, Iterable
from dataclasses import dataclass
from datetime import datetime
import logging

from sqlalchemy import DateTime, func
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from app.utils.db import get_db
from app.models.database_models import (
    User as DBUser, Course as DBCourse, Lesson as DBLesson,
    Documentation as DBDocumentation, ForumPost as DBForumPost,
    Comment as DBComment, Conference as DBConference, Enrollment as DBEnrollment
)
from app.rbac.roles import Role
from app.rbac.viewer import Viewer
from app.rbac.permissions import can_create
from app.rbac.visibility import can_view, can_edit, is_author
from app.services.content import (
    ContentEntity, EntityKind, TransitionResult, Forbidden, NotFound,
    InvalidStateTransition, apply_action, plan_update
)
from app.services.content.approval import MODERATION_FIELDS, IMMUTABLE_FIELDS

logger = logging.getLogger(__name__)


def _serialize(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class UserModel:
    """User model for handling user-related database operations"""

    def __init__(self, user_id: Optional[int] = None):
        self.user_id = user_id

    @staticmethod
    def _model_to_dict(model_instance):
        """Convert SQLAlchemy model instance to dictionary, without the password hash"""
        if model_instance is None:
            return None
        result = {}
        for key in model_instance.__table__.columns.keys():
            if key == 'password':
                continue
            result[key] = _serialize(getattr(model_instance, key))
        return result

    @staticmethod
    def create_user(name: str, last_name: str, email: str, password: str,
                    role: str = 'student') -> int:
        """Create a new user in the database"""
        if role not in Role.account_roles():
            raise ValueError(f"Invalid role: {role}")
        db = get_db()
        try:
            user = DBUser(
                name=name,
                last_name=last_name,
                email=email.strip().lower(),
                password=generate_password_hash(password),
                role=role
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            return user.id
        except IntegrityError as e:
            logger.error(f"User creation failed - integrity error: {str(e)}")
            db.rollback()
            raise ValueError("Email already exists")
        except Exception as e:
            logger.error(f"User creation failed: {str(e)}")
            db.rollback()
            raise

    @staticmethod
    def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
        """Retrieve user details by email"""
        try:
            db = get_db()
            user = db.query(DBUser).filter(DBUser.email == email.strip().lower()).first()
            return UserModel._model_to_dict(user)
        except Exception as e:
            logger.error(f"Error retrieving user by email: {str(e)}")
            raise

    @staticmethod
    def get_user_by_id(user_id: int) -> Optional[Dict[str, Any]]:
        """Retrieve user details by ID"""
        try:
            db = get_db()
            user = db.get(DBUser, user_id)
            return UserModel._model_to_dict(user)
        except Exception as e:
            logger.error(f"Error retrieving user by ID: {str(e)}")
            raise

    @staticmethod
    def authenticate(email: str, password: str) -> Optional[Dict[str, Any]]:
        """Return the user if the credentials match and the account is not blocked"""
        db = get_db()
        user = db.query(DBUser).filter(DBUser.email == email.strip().lower()).first()
        if user is None or user.is_blocked:
            return None
        if not check_password_hash(user.password, password):
            return None
        return UserModel._model_to_dict(user)

    def get_role(self) -> str:
        """Get the user's role"""
        user = self.get_user_by_id(self.user_id)
        return user['role'] if user else Role.GUEST.value

    def update_role(self, role: str) -> bool:
        """Change the user's role"""
        if role not in Role.account_roles():
            raise ValueError(f"Invalid role: {role}")
        db = get_db()
        try:
            user = db.get(DBUser, self.user_id)
            if not user:
                return False
            user.role = role
            db.commit()
            return True
        except Exception as e:
            logger.error(f"Error updating role for user {self.user_id}: {str(e)}")
            db.rollback()
            raise

    def set_blocked(self, is_blocked: bool) -> bool:
        """Block or unblock the user; blocked users cannot log in and lose live sessions"""
        db = get_db()
        try:
            user = db.get(DBUser, self.user_id)
            if not user:
                return False
            user.is_blocked = bool(is_blocked)
            db.commit()
            return True
        except Exception as e:
            logger.error(f"Error updating blocked flag for user {self.user_id}: {str(e)}")
            db.rollback()
            raise


@dataclass(frozen=True)
class _KindMapping:
    model: Any
    author_column: str
    title_column: str
    parent_column: Optional[str]
    editable: tuple
    order_by: tuple


_KINDS: Dict[EntityKind, _KindMapping] = {
    EntityKind.COURSE: _KindMapping(
        DBCourse, 'author_id', 'title', None,
        ('title', 'description'), ('id',)),
    EntityKind.LESSON: _KindMapping(
        DBLesson, 'uploaded_by', 'title', 'course_id',
        ('title', 'description', 'order', 'file_name', 'content_type'), ('order', 'id')),
    EntityKind.DOCUMENTATION: _KindMapping(
        DBDocumentation, 'uploaded_by', 'title', None,
        ('title', 'description', 'file_type', 'file_name', 'content_type'), ('id',)),
    EntityKind.FORUM_POST: _KindMapping(
        DBForumPost, 'author_id', 'title', None,
        ('title', 'content', 'subject'), ('id',)),
    EntityKind.COMMENT: _KindMapping(
        DBComment, 'author_id', 'text', 'forum_post_id',
        ('text',), ('created_at', 'id')),
    EntityKind.CONFERENCE: _KindMapping(
        DBConference, 'created_by', 'title', None,
        ('title', 'topic', 'audience', 'type', 'organizer', 'speakers', 'start_date',
         'duration', 'cost', 'is_free', 'url', 'phone_number'), ('id',)),
}

_FLAG_COLUMNS = ('is_approved', 'is_published', 'is_guest_viewable')


def _coerce_columns(model, values: Dict[str, Any]) -> Dict[str, Any]:
    """Parse ISO strings for DateTime columns; JSON payloads carry dates as text"""
    result = dict(values)
    for key, value in values.items():
        column = model.__table__.columns.get(key)
        if column is not None and isinstance(column.type, DateTime) and isinstance(value, str):
            try:
                result[key] = datetime.fromisoformat(value)
            except ValueError:
                raise InvalidStateTransition(f"{key} must be an ISO 8601 date.")
    return result


class ContentModel:
    """
    Data-access and persistence collaborator for all moderated content.

    Reads return ContentEntity snapshots. Writes re-run the visibility resolver
    and approval state machine on freshly loaded state before touching the
    database, so callers cannot bypass the rules by skipping their own checks.
    Concurrent writes are last-write-wins.
    """

    @staticmethod
    def _to_entity(kind: EntityKind, row, parent: Optional[ContentEntity] = None) -> ContentEntity:
        mapping = _KINDS[kind]
        attributes = {}
        for key in row.__table__.columns.keys():
            if key in _FLAG_COLUMNS or key == 'id':
                continue
            attributes[key] = _serialize(getattr(row, key))

        title = getattr(row, mapping.title_column) or ''
        if kind is EntityKind.COMMENT and len(title) > 80:
            title = title[:77] + '...'

        return ContentEntity.from_record(
            id=row.id,
            kind=kind,
            title=title,
            author_id=getattr(row, mapping.author_column),
            is_approved=bool(getattr(row, 'is_approved', False)),
            is_published=bool(getattr(row, 'is_published', False)),
            is_guest_viewable=bool(getattr(row, 'is_guest_viewable', False)),
            parent=parent,
            attributes=attributes,
        )

    @staticmethod
    def _load_parents(kind: EntityKind, rows: Iterable) -> Dict[Any, ContentEntity]:
        mapping = _KINDS[kind]
        parent_ids = {getattr(row, mapping.parent_column) for row in rows}
        if not parent_ids:
            return {}
        parent_kind = kind.parent_kind
        parent_model = _KINDS[parent_kind].model
        db = get_db()
        parents = db.query(parent_model).filter(parent_model.id.in_(parent_ids)).all()
        return {p.id: ContentModel._to_entity(parent_kind, p) for p in parents}

    @staticmethod
    def fetch_entity(kind: EntityKind | str, entity_id) -> Optional[ContentEntity]:
        """Load one entity (with its parent), or None if it does not exist"""
        kind = EntityKind(kind)
        mapping = _KINDS[kind]
        try:
            db = get_db()
            row = db.get(mapping.model, entity_id)
            if row is None:
                return None

            parent = None
            if mapping.parent_column:
                parent = ContentModel.fetch_entity(kind.parent_kind, getattr(row, mapping.parent_column))
                if parent is None:
                    return None
            return ContentModel._to_entity(kind, row, parent)
        except Exception as e:
            logger.error(f"Error fetching {kind.value} {entity_id}: {str(e)}")
            raise

    @staticmethod
    def fetch_children(parent: ContentEntity) -> List[ContentEntity]:
        """Lessons of a course (by order) or comments of a forum post (by creation)"""
        child_kind = parent.kind.child_kind
        if child_kind is None:
            return []
        mapping = _KINDS[child_kind]
        db = get_db()
        query = db.query(mapping.model).filter(
            getattr(mapping.model, mapping.parent_column) == parent.id
        )
        rows = query.order_by(*[getattr(mapping.model, c) for c in mapping.order_by]).all()
        return [ContentModel._to_entity(child_kind, row, parent) for row in rows]

    @staticmethod
    def fetch_collection(kind: EntityKind | str, filter_hint: Optional[Dict[str, Any]] = None) -> List[ContentEntity]:
        """
        Load a collection of entities.

        filter_hint supports author_id, parent_id and gate_open. It only
        narrows the query; visibility is still decided by the resolver.
        """
        kind = EntityKind(kind)
        mapping = _KINDS[kind]
        filter_hint = filter_hint or {}
        model = mapping.model
        try:
            db = get_db()
            query = db.query(model)
            if filter_hint.get('author_id') is not None:
                query = query.filter(getattr(model, mapping.author_column) == filter_hint['author_id'])
            if filter_hint.get('parent_id') is not None and mapping.parent_column:
                query = query.filter(getattr(model, mapping.parent_column) == filter_hint['parent_id'])
            if filter_hint.get('gate_open') is not None and kind.gate_field:
                query = query.filter(getattr(model, kind.gate_field) == bool(filter_hint['gate_open']))
            rows = query.order_by(*[getattr(model, c) for c in mapping.order_by]).all()

            if not mapping.parent_column:
                return [ContentModel._to_entity(kind, row) for row in rows]

            parents = ContentModel._load_parents(kind, rows)
            return [
                ContentModel._to_entity(kind, row, parents[getattr(row, mapping.parent_column)])
                for row in rows
                if getattr(row, mapping.parent_column) in parents
            ]
        except Exception as e:
            logger.error(f"Error fetching {kind.value} collection: {str(e)}")
            raise

    @staticmethod
    def _load_for_write(kind: EntityKind, entity_id, viewer: Viewer) -> Optional[ContentEntity]:
        entity = ContentModel.fetch_entity(kind, entity_id)
        if entity is None or not can_view(entity, viewer):
            return None
        return entity

    @staticmethod
    def _write(kind: EntityKind, entity: ContentEntity, fields: Dict[str, Any]) -> None:
        mapping = _KINDS[kind]
        db = get_db()
        try:
            row = db.get(mapping.model, entity.id)
            for key, value in fields.items():
                setattr(row, key, value)
            db.commit()
        except IntegrityError as e:
            logger.error(f"Error saving {kind.value} {entity.id}: {str(e)}")
            db.rollback()
            raise InvalidStateTransition(f"Could not save {kind.value}: duplicate or invalid values.")
        except Exception as e:
            logger.error(f"Error saving {kind.value} {entity.id}: {str(e)}")
            db.rollback()
            raise

    @staticmethod
    def apply_approval(kind: EntityKind | str, entity_id, viewer: Viewer, action: str,
                       value: Any = None) -> TransitionResult:
        """Run a moderation action against current state and persist it"""
        kind = EntityKind(kind)
        entity = ContentModel._load_for_write(kind, entity_id, viewer)
        if entity is None:
            return TransitionResult.not_found()

        result = apply_action(entity, viewer, action, value)
        if not result.ok:
            logger.info(f"User {viewer.id} ({viewer.role}) {action} on {kind.value} {entity_id} rejected: {result.outcome}")
            return result

        flags = {f: getattr(result.entity, f) for f in kind.flag_fields}
        ContentModel._write(kind, result.entity, flags)
        logger.info(f"User {viewer.id} applied {action} to {kind.value} {entity_id}")
        return result

    @staticmethod
    def apply_update(kind: EntityKind | str, entity_id, viewer: Viewer,
                     changes: Dict[str, Any]) -> TransitionResult:
        """Validate an edit payload through the state machine and persist it"""
        kind = EntityKind(kind)
        mapping = _KINDS[kind]
        entity = ContentModel._load_for_write(kind, entity_id, viewer)
        if entity is None:
            return TransitionResult.not_found()

        allowed = set(mapping.editable) | MODERATION_FIELDS | IMMUTABLE_FIELDS
        ignored = sorted(set(changes) - allowed)
        if ignored:
            logger.debug(f"Ignoring unknown fields for {kind.value}: {ignored}")
        changes = {k: v for k, v in changes.items() if k in allowed}

        result = plan_update(entity, viewer, changes)
        if not result.ok:
            logger.info(f"User {viewer.id} ({viewer.role}) update of {kind.value} {entity_id} rejected: {result.outcome}")
            return result

        updated = result.entity
        fields = {f: getattr(updated, f) for f in kind.flag_fields}
        for key in mapping.editable:
            if key in changes:
                fields[key] = changes[key]
        fields = _coerce_columns(mapping.model, fields)
        ContentModel._write(kind, updated, fields)
        logger.info(f"User {viewer.id} updated {kind.value} {entity_id}")
        return TransitionResult.applied(ContentModel.fetch_entity(kind, entity_id))

    @staticmethod
    def create_content(kind: EntityKind | str, author: Viewer, fields: Dict[str, Any]) -> ContentEntity:
        """
        Create content authored by the given viewer. New content always
        starts pending and hidden from guests, whatever flags were submitted.
        """
        kind = EntityKind(kind)
        mapping = _KINDS[kind]
        if not author.is_authenticated or not can_create(author.role, kind):
            raise Forbidden(f"You do not have permission to create a {kind.value}.")

        values = {k: v for k, v in fields.items() if k in mapping.editable}
        if not values.get(mapping.title_column):
            raise InvalidStateTransition(f"{mapping.title_column} is required.")

        db = get_db()
        if mapping.parent_column:
            parent_id = fields.get(mapping.parent_column)
            parent = ContentModel.fetch_entity(kind.parent_kind, parent_id) if parent_id is not None else None
            if parent is None or not can_view(parent, author):
                raise NotFound(f"{kind.parent_kind.value.replace('_', ' ').capitalize()} not found.")
            if kind is EntityKind.LESSON:
                if not can_edit(parent, author):
                    raise Forbidden("Only the course author or an administrator can add lessons.")
                if values.get('order') is None:
                    last = db.query(func.max(DBLesson.order)).filter(DBLesson.course_id == parent.id).scalar()
                    values['order'] = (last or 0) + 1
            values[mapping.parent_column] = parent.id

        values[mapping.author_column] = author.id
        for flag in _FLAG_COLUMNS:
            if hasattr(mapping.model, flag):
                values[flag] = False
        values = _coerce_columns(mapping.model, values)

        try:
            row = mapping.model(**values)
            db.add(row)
            db.commit()
            db.refresh(row)
        except IntegrityError as e:
            logger.error(f"Error creating {kind.value}: {str(e)}")
            db.rollback()
            raise InvalidStateTransition(f"Could not save {kind.value}: duplicate or invalid values.")
        except Exception as e:
            logger.error(f"Error creating {kind.value}: {str(e)}")
            db.rollback()
            raise

        logger.info(f"User {author.id} created {kind.value} {row.id} (pending)")
        return ContentModel.fetch_entity(kind, row.id)

    @staticmethod
    def delete_content(kind: EntityKind | str, entity_id, viewer: Viewer) -> TransitionResult:
        """Delete content the viewer may edit (or, for forum content, authored)"""
        kind = EntityKind(kind)
        mapping = _KINDS[kind]
        entity = ContentModel._load_for_write(kind, entity_id, viewer)
        if entity is None:
            return TransitionResult.not_found()

        forum_author = kind in (EntityKind.FORUM_POST, EntityKind.COMMENT) and is_author(entity, viewer)
        if not (can_edit(entity, viewer) or forum_author):
            logger.info(f"User {viewer.id} ({viewer.role}) attempted to delete {kind.value} {entity_id}")
            return TransitionResult.forbidden(entity, "You do not have permission to delete this content.")

        db = get_db()
        try:
            db.delete(db.get(mapping.model, entity.id))
            db.commit()
        except Exception as e:
            logger.error(f"Error deleting {kind.value} {entity_id}: {str(e)}")
            db.rollback()
            raise
        logger.info(f"User {viewer.id} deleted {kind.value} {entity_id}")
        return TransitionResult.applied(entity)


class EnrollmentModel:
    """
    Course enrollments for one user.

    Enrolling re-checks the course against the visibility resolver, so a
    hidden course cannot be joined by guessing its id.
    """

    def __init__(self, user_id: int):
        self.user_id = user_id

    @staticmethod
    def _to_dict(row) -> Dict[str, Any]:
        return {key: _serialize(getattr(row, key)) for key in row.__table__.columns.keys()}

    def _row(self, course_id):
        db = get_db()
        return db.query(DBEnrollment).filter(
            DBEnrollment.user_id == self.user_id,
            DBEnrollment.course_id == course_id
        ).first()

    def get_enrollment(self, course_id) -> Optional[Dict[str, Any]]:
        """The user's enrollment in a course, or None"""
        row = self._row(course_id)
        return self._to_dict(row) if row else None

    def enroll(self, course: ContentEntity, viewer: Viewer) -> Dict[str, Any]:
        """Enroll the user in a course the viewer can currently see"""
        if EntityKind(course.kind) is not EntityKind.COURSE:
            raise NotFound("Course not found.")
        if not viewer.is_authenticated or viewer.id != self.user_id:
            raise Forbidden("You can only enroll yourself.")
        if not can_view(course, viewer):
            raise NotFound("Course not found.")
        if self._row(course.id) is not None:
            raise InvalidStateTransition("Already enrolled in this course.")

        db = get_db()
        try:
            row = DBEnrollment(user_id=self.user_id, course_id=course.id)
            db.add(row)
            db.commit()
            db.refresh(row)
        except IntegrityError as e:
            logger.error(f"Error enrolling user {self.user_id} in course {course.id}: {str(e)}")
            db.rollback()
            raise InvalidStateTransition("Already enrolled in this course.")
        except Exception as e:
            logger.error(f"Error enrolling user {self.user_id} in course {course.id}: {str(e)}")
            db.rollback()
            raise

        logger.info(f"User {self.user_id} enrolled in course {course.id}")
        return self._to_dict(row)

    def unenroll(self, course_id) -> bool:
        """Remove the user's enrollment; False if there was none"""
        db = get_db()
        row = self._row(course_id)
        if row is None:
            return False
        try:
            db.delete(row)
            db.commit()
        except Exception as e:
            logger.error(f"Error removing enrollment of user {self.user_id} in course {course_id}: {str(e)}")
            db.rollback()
            raise
        logger.info(f"User {self.user_id} left course {course_id}")
        return True

    def enrolled_course_ids(self) -> List[int]:
        db = get_db()
        rows = db.query(DBEnrollment.course_id).filter(
            DBEnrollment.user_id == self.user_id
        ).order_by(DBEnrollment.enrolled_at, DBEnrollment.id).all()
        return [course_id for (course_id,) in rows]
