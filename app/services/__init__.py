# app/services/__init__.py
from .content import ContentEntity, EntityKind
__all__ = ['ContentEntity', 'EntityKind']
