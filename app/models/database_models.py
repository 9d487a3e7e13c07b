"""SQLAlchemy database models for the application"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Float, JSON, ForeignKey,
    CheckConstraint, UniqueConstraint, Index, func
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()


class User(Base):
    """User model"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default='student',
                  server_default='student')
    is_blocked = Column(Boolean, default=False, server_default='0')
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('student', 'teacher', 'admin')", name='check_user_role'),
    )


class Course(Base):
    """Course model; lessons are its children"""
    __tablename__ = 'courses'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    # Nullable only for legacy, unattributed rows
    author_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    is_published = Column(Boolean, default=False, server_default='0', nullable=False)
    is_guest_viewable = Column(Boolean, default=False, server_default='0', nullable=False)
    is_approved = Column(Boolean, default=False, server_default='0', nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow,
                        server_default=func.now())

    author = relationship("User")
    lessons = relationship("Lesson", back_populates="course", cascade="all, delete-orphan",
                           order_by="Lesson.order")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_courses_author_id', 'author_id'),
        Index('idx_courses_is_published', 'is_published'),
    )


class Lesson(Base):
    """Lesson model, always gated by its course"""
    __tablename__ = 'lessons'

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False)
    uploaded_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    file_name = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    course = relationship("Course", back_populates="lessons")

    __table_args__ = (
        UniqueConstraint('course_id', 'order', name='idx_lesson_course_order_unique'),
    )


class Documentation(Base):
    """Documentation library entry"""
    __tablename__ = 'documentation'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=False, default='')
    file_type = Column(String(50), nullable=True)
    file_name = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    uploaded_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    is_published = Column(Boolean, default=False, server_default='0', nullable=False)
    is_guest_viewable = Column(Boolean, default=False, server_default='0', nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow,
                        server_default=func.now())

    __table_args__ = (
        CheckConstraint("file_type IS NULL OR file_type IN ('image', 'pdf', 'video')",
                        name='check_documentation_file_type'),
        Index('idx_documentation_uploaded_by', 'uploaded_by'),
    )


class ForumPost(Base):
    """Forum post model; comments are its children"""
    __tablename__ = 'forum_posts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    subject = Column(String(255), nullable=True)
    author_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    is_approved = Column(Boolean, default=False, server_default='0', nullable=False)
    is_guest_viewable = Column(Boolean, default=False, server_default='0', nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow,
                        server_default=func.now())

    comments = relationship("Comment", back_populates="forum_post", cascade="all, delete-orphan",
                            order_by="Comment.created_at")

    __table_args__ = (
        Index('idx_forum_posts_author_id', 'author_id'),
    )


class Comment(Base):
    """Comment on a forum post"""
    __tablename__ = 'comments'

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    forum_post_id = Column(Integer, ForeignKey('forum_posts.id', ondelete='CASCADE'), nullable=False)
    is_approved = Column(Boolean, default=False, server_default='0', nullable=False)
    is_guest_viewable = Column(Boolean, default=False, server_default='0', nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    forum_post = relationship("ForumPost", back_populates="comments")

    __table_args__ = (
        Index('idx_comments_forum_post_id', 'forum_post_id'),
    )


class Conference(Base):
    """Conference listing; organizer is display text, created_by is the author"""
    __tablename__ = 'conferences'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    topic = Column(String(255), nullable=True)
    audience = Column(String(255), nullable=True)
    type = Column(String(50), nullable=False, default='virtual')
    organizer = Column(String(255), nullable=True)
    speakers = Column(JSON, nullable=True)
    start_date = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)
    cost = Column(Float, default=0)
    is_free = Column(Boolean, default=True, server_default='1')
    url = Column(String(500), nullable=True)
    phone_number = Column(String(50), nullable=True)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    is_approved = Column(Boolean, default=False, server_default='0', nullable=False)
    is_guest_viewable = Column(Boolean, default=False, server_default='0', nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("type IN ('in_person', 'virtual')", name='check_conference_type'),
        Index('idx_conferences_created_by', 'created_by'),
    )


class Enrollment(Base):
    """A user's enrollment in a course"""
    __tablename__ = 'enrollments'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    course_id = Column(Integer, ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)
    status = Column(String(20), nullable=False, default='in_progress', server_default='in_progress')
    enrolled_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    completed_at = Column(DateTime, nullable=True)

    course = relationship("Course", back_populates="enrollments")

    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='idx_enrollment_user_course_unique'),
        CheckConstraint("status IN ('in_progress', 'completed', 'dropped')", name='check_enrollment_status'),
        Index('idx_enrollments_user_id', 'user_id'),
    )
