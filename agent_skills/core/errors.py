"""
Error taxonomy shared by every skill.

Every failure a skill can report maps onto one of these classes. The CLI
layer turns them into a message on stderr and exit code 1.
"""

from typing import Optional


class SkillError(Exception):
    """Base class for failures a skill reports to the user."""


class UsageError(SkillError):
    """Raised when required input is missing or invalid."""


class MissingCredentialError(UsageError):
    """Raised when a required environment variable is not set."""

    def __init__(self, variable: str, hint: Optional[str] = None):
        message = f"{variable} environment variable is required."
        if hint:
            message = f"{message}\n{hint}"
        super().__init__(message)
        self.variable = variable


class ApiError(SkillError):
    """Raised when an external API answers with an error.

    Carries the HTTP status code (when there was one) and the raw body so
    callers can show the provider's own explanation.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ImageProcessingUnavailable(SkillError):
    """Raised when an image must be re-encoded but Pillow is not installed."""


class CommandError(SkillError):
    """Raised when a local tool (adb, gradle, rsync) exits non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode
