"""
Collaborator interfaces for the store publisher.

These protocols define the boundary between the layout logic and the
registry / repository implementations, enabling clean dependency injection
and testing with fakes.
"""
from __future__ import annotations

from pathlib import Path
from typing import Protocol, Tuple, runtime_checkable

from ..models import Image, Manifest

__all__ = ["ManifestSource", "PublishTarget", "CredentialSource", "TokenNegotiator", "BlobFetcher"]


@runtime_checkable
class ManifestSource(Protocol):
    """Fetches the image manifest."""
    
    def get_manifest(self, image: Image) -> Manifest:
        """
        Raises:
            ManifestUnavailable: If the manifest cannot be fetched or parsed
        """
        ...


@runtime_checkable
class PublishTarget(Protocol):
    """
    Write primitives of the remote repository.
    
    All paths are relative to the repository root. Every method raises
    RemoteIngestionFailure when the repository rejects the request.
    """
    
    def create_symlink(self, repository: str, link_path: str, target: str) -> None:
        """
        Create a symlink at ``link_path`` pointing at ``target``.
        
        ``target`` is repo-relative too; implementations translate it into
        whatever form resolves correctly inside the mounted repository.
        """
        ...
    
    def ingest_file(self, repository: str, dest_path: str, local_file: Path) -> None:
        """Copy the raw bytes of ``local_file`` to ``dest_path``."""
        ...
    
    def create_catalog(self, repository: str, directory: str) -> None:
        """Make ``directory`` the root of a nested catalog."""
        ...


@runtime_checkable
class CredentialSource(Protocol):
    """Looks up registry credentials for an image."""
    
    def get_credentials(self, image: Image) -> Tuple[str, str]:
        """
        Returns:
            (username, password)
            
        Raises:
            CredentialUnavailable: If no credential is configured
        """
        ...


@runtime_checkable
class TokenNegotiator(Protocol):
    
    def first_request_for_auth(self, url: str, user: str, password: str) -> str:
        """
        Negotiate an Authorization header value for ``url``.
        
        Returns an empty string when the registry serves the URL anonymously.
        
        Raises:
            AuthTokenFailure: If negotiation fails
        """
        ...


@runtime_checkable
class BlobFetcher(Protocol):
    
    def fetch(self, url: str, token: str) -> bytes:
        """
        Download ``url`` with ``token`` as Authorization header.
        
        Raises:
            TransportFailure: On network errors or non-success status
        """
        ...
