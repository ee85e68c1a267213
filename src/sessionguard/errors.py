from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class SessionAnomalyError(AuthenticationError):
    """Raised when a session was revoked because its request looked hijacked.

    The message is generic; anomaly tags and score are carried as attributes
    for the structured response body while the full detail stays in the audit trail.
    """

    code = "SESSION_ANOMALY_DETECTED"

    def __init__(self, anomaly_types: list[str], risk_score: int) -> None:
        super().__init__("Session security violation detected. Please login again.")
        self.anomaly_types = anomaly_types
        self.risk_score = risk_score


class SecondFactorRequiredError(UserError):
    """Raised when a session must confirm a second factor before continuing."""

    code = "SESSION_ANOMALY_2FA_REQUIRED"

    def __init__(self, anomaly_types: list[str], risk_score: int) -> None:
        super().__init__("Session anomaly detected. 2FA verification required to continue.")
        self.anomaly_types = anomaly_types
        self.risk_score = risk_score


class PersistenceError(Exception):
    """Raised by stores when a write or read against the database fails.

    Never shown to users: the anomaly logger, enforcer and statistics reporter
    catch it at their own boundary and log it for operators.
    """
