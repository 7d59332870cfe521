"""Registry and credential test doubles."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from podman_store.errors import (
    AuthTokenFailure,
    CredentialUnavailable,
    ManifestUnavailable,
    TransportFailure,
)
from podman_store.models import Image, Manifest

__all__ = ["FakeRegistry", "FakeCredentials"]


class FakeRegistry:
    """
    ManifestSource, TokenNegotiator and BlobFetcher in one.
    
    Blobs are keyed by URL. Every call is recorded.
    """
    
    def __init__(self, token: str = "Bearer test-token") -> None:
        self.token = token
        self.manifests: Dict[str, Manifest] = {}
        self.blobs: Dict[str, bytes] = {}
        self.auth_calls: List[Tuple[str, str, str]] = []
        self.fetch_calls: List[Tuple[str, str]] = []
        self.manifest_calls = 0
        self.fail_auth = False
    
    def add_image(self, image: Image, manifest: Manifest, config_blob: bytes) -> None:
        self.manifests[str(image)] = manifest
        self.blobs[image.blob_url(manifest.config.digest)] = config_blob
    
    def get_manifest(self, image: Image) -> Manifest:
        self.manifest_calls += 1
        try:
            return self.manifests[str(image)]
        except KeyError:
            raise ManifestUnavailable(f"no manifest for {image}") from None
    
    def first_request_for_auth(self, url: str, user: str, password: str) -> str:
        self.auth_calls.append((url, user, password))
        if self.fail_auth:
            raise AuthTokenFailure(f"token endpoint rejected {user!r}")
        return self.token
    
    def fetch(self, url: str, token: str) -> bytes:
        self.fetch_calls.append((url, token))
        if url not in self.blobs:
            raise TransportFailure(f"404 for {url}")
        return self.blobs[url]


class FakeCredentials:
    """CredentialSource returning fixed credentials, or none at all."""
    
    def __init__(self, creds: Optional[Tuple[str, str]] = ("alice", "s3cret")) -> None:
        self.creds = creds
    
    def get_credentials(self, image: Image) -> Tuple[str, str]:
        if self.creds is None:
            raise CredentialUnavailable(f"no credential for {image.registry}")
        return self.creds
