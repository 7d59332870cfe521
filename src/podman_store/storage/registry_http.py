"""
Registry HTTP Client for the OCI Distribution API.

Fetches image manifests and blobs with the Docker Registry v2 token flow.
Only the pieces the store publisher needs are implemented: manifest fetch,
Bearer/Basic token negotiation and authenticated blob download.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from typing import Dict, Optional

import httpx
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import AuthTokenFailure, CredentialUnavailable, ManifestUnavailable, TransportFailure
from ..models import Image, Manifest
from ..settings import Settings
from .base import CredentialSource

__all__ = ["RegistryHTTP", "ACCEPTED_MANIFEST_TYPES", "CONFIG_ACCEPT"]

logger = logging.getLogger(__name__)

# Single-image manifest types; manifest lists / indexes are not resolved here
ACCEPTED_MANIFEST_TYPES = [
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
]

# Accept header sent with the config blob request
CONFIG_ACCEPT = "application/vnd.docker.distribution.manifest.v2+json"


class RegistryHTTP:
    """
    HTTP client for OCI Distribution API operations.
    
    Implements ManifestSource, TokenNegotiator and BlobFetcher.
    """
    
    def __init__(self, settings: Settings, credentials: Optional[CredentialSource] = None,
                 client: Optional[httpx.Client] = None):
        """
        Initialize registry HTTP client.
        
        Args:
            settings: Timeouts, retry count and TLS verification
            credentials: Credential source used for manifest requests
            client: Preconfigured httpx client (tests pass one with a MockTransport)
        """
        self.settings = settings
        self.credentials = credentials
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(settings.http_timeout_s),
            follow_redirects=True,
            verify=not settings.registry_insecure,
            headers={"User-Agent": "podman-store/0.1.0"}
        )
        # Tenacity counts attempts, settings count retries
        self._retrying = Retrying(
            stop=stop_after_attempt(settings.http_retry + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
    
    def get_manifest(self, image: Image) -> Manifest:
        """
        Fetch and parse the image manifest.
        
        Raises:
            ManifestUnavailable: On any auth, network, status or parse failure
        """
        url = image.manifest_url()
        user, password = "", ""
        if self.credentials is not None:
            try:
                user, password = self.credentials.get_credentials(image)
            except CredentialUnavailable as e:
                logger.warning(f"{e}; fetching manifest anonymously")
        
        try:
            token = self.first_request_for_auth(url, user, password)
            headers = {"Accept": ", ".join(ACCEPTED_MANIFEST_TYPES)}
            if token:
                headers["Authorization"] = token
            response = self._send("GET", url, headers=headers)
            response.raise_for_status()
        except AuthTokenFailure as e:
            raise ManifestUnavailable(f"Authentication failed for manifest {image}: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ManifestUnavailable(
                f"Registry error {e.response.status_code} fetching manifest {image}") from e
        except httpx.HTTPError as e:
            raise ManifestUnavailable(f"Network error fetching manifest {image}: {e}") from e
        
        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ManifestUnavailable(f"Invalid JSON in manifest {image}: {e}") from e
        
        media_type = data.get("mediaType") if isinstance(data, dict) else None
        if media_type and media_type not in ACCEPTED_MANIFEST_TYPES:
            raise ManifestUnavailable(
                f"Unsupported manifest media type: {media_type}. "
                f"Expected one of: {', '.join(ACCEPTED_MANIFEST_TYPES)}"
            )
        
        try:
            manifest = Manifest.model_validate(data)
        except ValidationError as e:
            raise ManifestUnavailable(f"Malformed manifest {image}: {e}") from e
        
        logger.debug(f"Fetched manifest for {image}: {len(manifest.layers)} layers")
        return manifest
    
    def first_request_for_auth(self, url: str, user: str, password: str) -> str:
        """
        Probe ``url`` anonymously and negotiate an Authorization value.
        
        Handles 401 responses by:
        1. Parsing the WWW-Authenticate challenge
        2. For Bearer: exchanging (user, password), or nothing when anonymous,
           for a token at the challenge realm
        3. For Basic: encoding (user, password) directly
        
        Returns:
            "Bearer <token>", "Basic <b64>" or "" when no auth is required
            
        Raises:
            AuthTokenFailure: If the probe or the token exchange fails
        """
        try:
            response = self._send("GET", url)
        except httpx.HTTPError as e:
            raise AuthTokenFailure(f"Network error probing {url}: {e}") from e
        
        if response.status_code != 401:
            return ""
        
        challenge = response.headers.get("WWW-Authenticate", "")
        if challenge.lower().startswith("basic"):
            if not user:
                raise AuthTokenFailure(f"Registry requires basic auth for {url} and no user is set")
            encoded = base64.b64encode(f"{user}:{password}".encode()).decode()
            return f"Basic {encoded}"
        
        if not challenge.lower().startswith("bearer"):
            raise AuthTokenFailure(f"Unsupported auth challenge for {url}: {challenge!r}")
        
        params: Dict[str, str] = {}
        for match in re.finditer(r'(\w+)="([^"]*)"', challenge):
            params[match.group(1)] = match.group(2)
        
        realm = params.pop("realm", None)
        if not realm:
            raise AuthTokenFailure(f"Auth challenge for {url} has no realm")
        
        auth = (user, password) if user else None
        try:
            token_response = self._send("GET", realm, params=params, auth=auth)
            token_response.raise_for_status()
            token_data = token_response.json()
        except httpx.HTTPStatusError as e:
            raise AuthTokenFailure(
                f"Token endpoint {realm} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AuthTokenFailure(f"Network error contacting token endpoint {realm}: {e}") from e
        except json.JSONDecodeError as e:
            raise AuthTokenFailure(f"Invalid JSON from token endpoint {realm}: {e}") from e
        
        token = token_data.get("token") or token_data.get("access_token")
        if not token:
            raise AuthTokenFailure(f"Token endpoint {realm} returned no token")
        return f"Bearer {token}"
    
    def fetch(self, url: str, token: str) -> bytes:
        """
        Download ``url`` into memory.
        
        Raises:
            TransportFailure: On network errors or non-success status
        """
        headers = {"Accept": CONFIG_ACCEPT}
        if token:
            headers["Authorization"] = token
        try:
            response = self._send("GET", url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(f"Registry error {e.response.status_code} fetching {url}") from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Network error fetching {url}: {e}") from e
        return response.content
    
    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        return self._retrying(self.client.request, method, url, **kwargs)
    
    def close(self):
        """Close HTTP client."""
        self.client.close()
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
