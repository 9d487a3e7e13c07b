from .models import UserModel, ContentModel, EnrollmentModel

__all__ = ['UserModel', 'ContentModel', 'EnrollmentModel']
