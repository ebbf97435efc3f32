"""reviewfunnel exceptions."""


class ReviewFunnelError(Exception):
    """Base exception for reviewfunnel errors."""


class ConfigurationError(ReviewFunnelError):
    """Required configuration (store credentials, session secret) is missing."""


class ValidationError(ReviewFunnelError):
    """Request is missing required fields or carries invalid values."""


class NotFoundError(ReviewFunnelError):
    """Mutation target does not exist."""


class AuthError(ReviewFunnelError):
    """Missing, invalid or expired session."""


class StorageError(ReviewFunnelError):
    """The store rejected a statement."""


class TransportError(ReviewFunnelError):
    """The remote store could not be reached."""
