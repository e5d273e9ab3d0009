"""Custom exception classes for the Fragments service."""


class FragmentsException(Exception):
    """
    Base exception class for all fragment-related errors.
    """
    pass


class ValidationError(FragmentsException):
    """
    Raised when input is malformed or missing before any I/O happens.
    """
    pass


class FragmentValidationError(ValidationError):
    """
    Raised when a fragment is constructed with a missing owner, a missing or
    unsupported type, or an invalid size.
    """
    pass


class UnsupportedMediaTypeError(ValidationError):
    """
    Raised when a client uploads a Content-Type outside the supported set.
    """
    pass


class PayloadTooLargeError(ValidationError):
    """
    Raised when an uploaded body exceeds the configured size limit.
    """
    pass


class FragmentNotFoundError(FragmentsException):
    """
    Raised when (owner_id, id) has no metadata.
    """
    pass


class UnsupportedConversionError(FragmentsException):
    """
    Raised when no renderer exists for a (mime type, extension) pair.
    """
    pass


class BackendError(FragmentsException):
    """
    Raised when the metadata store or blob store fails or is misconfigured.
    """
    pass


class InvalidCredentialsError(FragmentsException):
    """
    Raised when a request cannot be resolved to an owner identity.
    """
    pass
