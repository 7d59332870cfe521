"""
Store publishing error classes.

Provides a clear taxonomy of errors that can occur while publishing an image
into the podman store. Collaborators map their native failures (HTTP status
codes, subprocess exit codes, OS errors) onto these classes so the
orchestrator can apply one failure policy regardless of the implementation.
"""
from __future__ import annotations


class StoreError(Exception):
    """Base class for all store publishing errors."""
    pass


class ManifestUnavailable(StoreError):
    """
    The image manifest could not be fetched or parsed.
    
    Raised when:
    - HTTP 404 for the manifest reference
    - Registry returns a body that is not a valid image manifest
    """
    pass


class CredentialUnavailable(StoreError):
    """
    No registry credential could be found for the image.
    
    Soft failure: callers degrade to anonymous access.
    """
    pass


class AuthTokenFailure(StoreError):
    """
    Auth token negotiation against the registry failed.
    
    Raised when:
    - The WWW-Authenticate challenge is missing or malformed
    - The token endpoint rejects the credential or returns no token
    """
    pass


class TransportFailure(StoreError):
    """
    Network or HTTP error while downloading content.
    
    Raised when:
    - Connection, timeout or protocol errors
    - Non-success HTTP status for a blob request
    """
    pass


class ScratchFileIOFailure(StoreError):
    """Local scratch file could not be created or written."""
    pass


class RemoteIngestionFailure(StoreError):
    """
    The remote filesystem rejected an ingestion request.
    
    Raised for symlink creation, file ingestion and catalog creation failures.
    """
    
    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class InvalidDigest(StoreError, ValueError):
    """A content digest is not of the form <algorithm>:<hex>."""
    pass


__all__ = [
    "StoreError",
    "ManifestUnavailable",
    "CredentialUnavailable",
    "AuthTokenFailure",
    "TransportFailure",
    "ScratchFileIOFailure",
    "RemoteIngestionFailure",
    "InvalidDigest",
]
