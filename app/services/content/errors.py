"""
Error taxonomy for content access and moderation.

The resolver and the approval state machine return decision values for
expected denials; these exceptions are raised at the HTTP seam (or for
genuinely malformed input) and carry the status code the routes answer with.
"""


class ContentError(Exception):
    """Base class for content access errors"""
    status_code = 500
    default_message = "Content error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'error': self.message}


class Forbidden(ContentError):
    """Viewer lacks the role or authorship for the requested action"""
    status_code = 403
    default_message = "You do not have permission to perform this action."


class InvalidStateTransition(ContentError):
    """Requested flag combination is not reachable from the current state"""
    status_code = 400
    default_message = "Invalid state transition."


class NotFound(ContentError):
    """Entity is missing, or exists but must not be revealed to this viewer"""
    status_code = 404
    default_message = "Not found."


class LoginRequired(ContentError):
    """Published content that is restricted to logged-in users"""
    status_code = 401
    default_message = "Login required to view this content."


class MalformedEntityError(ValueError):
    """Entity is missing required fields or violates the flag invariants"""
