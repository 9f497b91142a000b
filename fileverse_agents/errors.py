"""
Custom exceptions for the Fileverse Agents SDK.

Every error raised by the SDK derives from FileverseError. Callers branch on
the exception class; message text is for diagnostics only.
"""

from typing import Any, Dict


class FileverseError(Exception):
    """Base exception for all Fileverse-specific errors.

    Optional keyword context (operation, file_id, domain, ...) is kept on
    ``.context`` and appended to the message. Never pass secrets here.
    """

    def __init__(self, message: str = "", **context: Any):
        self.message = message
        self.context: Dict[str, Any] = {
            key: value for key, value in context.items() if value is not None
        }
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(FileverseError):
    """Raised when constructor parameters or provider configuration are missing or invalid."""

    pass


class ProviderRequiredError(FileverseError):
    """Raised when an access condition is used but no access provider is configured."""

    pass


class ValidationError(FileverseError):
    """Raised for invalid file ids, content or operation options."""

    pass


class EncryptionError(FileverseError):
    """Raised when the access-control backend fails to encrypt content."""

    pass


class DecryptionError(FileverseError):
    """Raised for malformed ciphertext or backend failures during decryption."""

    pass


class AccessDeniedError(DecryptionError):
    """Raised when the requester does not satisfy the access condition."""

    pass


class RegistrationError(FileverseError):
    """Raised when an expected on-chain event, portal or file is missing."""

    pass


class NotSetupError(FileverseError):
    """Raised when a file operation is attempted before the portal is provisioned."""

    pass


class ChainError(FileverseError):
    """Raised when an RPC call or transaction submission fails."""

    pass


# Storage-specific errors
class StorageError(FileverseError):
    """Base exception for content-addressed storage failures."""

    pass


class UnpinError(StorageError):
    """Raised when unpinning a blob fails. Never surfaced by file operations."""

    pass


class StorageTimeoutError(StorageError):
    """Raised when a bounded-time storage download exceeds its timeout."""

    pass
