"""
Error types raised by the FunEdu services

Every failure surfaced to the bot surface is a LearningPlatformError; the
message is safe to show to the user.
"""


class LearningPlatformError(Exception):
    """Base class for all domain failures"""

    default_message = "Operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(LearningPlatformError, LookupError):
    default_message = "Not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class CourseNotFoundError(NotFoundError):
    default_message = "Course not found"


class LessonNotFoundError(NotFoundError):
    default_message = "Lesson not found"


class GameNotFoundError(NotFoundError):
    default_message = "Game not found"


class GameInactiveError(LearningPlatformError):
    default_message = "Game is not active"


class ConflictError(LearningPlatformError):
    default_message = "Conflicting request"


class AlreadyEnrolledError(ConflictError):
    default_message = "Already enrolled in this course"


class AuthorizationError(LearningPlatformError, PermissionError):
    default_message = "Not allowed"


class NotEnrolledError(AuthorizationError):
    default_message = "User is not enrolled in this course"


class ValidationError(LearningPlatformError, ValueError):
    default_message = "Invalid input"


class InvalidScoreError(ValidationError):
    default_message = "Score must be a non-negative integer"
