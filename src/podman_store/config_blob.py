"""
Image config blob ingestion.

Downloads the config blob referenced by the manifest and stores it where
containers-storage looks for it:
overlay-images/<image_id>/=<base64 of the config digest>.
"""
from __future__ import annotations

import logging
import posixpath
from typing import Optional

from .errors import AuthTokenFailure, CredentialUnavailable
from .models import Image, Manifest
from .paths import StorePaths, config_file_name
from .scratch import scratch_file
from .storage.base import BlobFetcher, CredentialSource, PublishTarget, TokenNegotiator

__all__ = ["ConfigIngestor"]

logger = logging.getLogger(__name__)


class ConfigIngestor:
    """Authenticates against the registry, downloads and ingests the config blob."""
    
    def __init__(self, target: PublishTarget, paths: StorePaths,
                 credentials: CredentialSource, tokens: TokenNegotiator,
                 fetcher: BlobFetcher, scratch_dir: Optional[str] = None):
        self.target = target
        self.paths = paths
        self.credentials = credentials
        self.tokens = tokens
        self.fetcher = fetcher
        self.scratch_dir = scratch_dir
    
    def ingest_config_file(self, repository: str, image: Image, manifest: Manifest) -> str:
        """
        Download the config blob of ``manifest`` and ingest it into the store.
        
        A missing credential is not an error: the download is attempted
        anonymously. Every other failure propagates.
        
        Args:
            repository: Repository to ingest into
            image: Image the manifest belongs to (registry coordinates)
            manifest: Image manifest
            
        Returns:
            Repo-relative path of the ingested config file
            
        Raises:
            AuthTokenFailure: If token negotiation fails
            TransportFailure: If the download fails
            ScratchFileIOFailure: If the scratch file cannot be written
            InvalidDigest: If the config digest is malformed
            RemoteIngestionFailure: If ingestion fails
        """
        config_digest = manifest.config.digest
        config_url = image.blob_url(config_digest)
        
        try:
            user, password = self.credentials.get_credentials(image)
        except CredentialUnavailable as e:
            logger.warning(
                f"Unable to get the credential for downloading the configuration blob, "
                f"trying anonymously: {e}")
            user, password = "", ""
        
        try:
            token = self.tokens.first_request_for_auth(config_url, user, password)
        except AuthTokenFailure:
            logger.error(f"Unable to retrieve the token for downloading config file {config_url}")
            raise
        
        body = self.fetcher.fetch(config_url, token)
        logger.debug(f"Downloaded config blob {config_digest} ({len(body)} bytes)")
        
        with scratch_file(body, prefix="configFile.", scratch_dir=self.scratch_dir) as tmp:
            fname = config_file_name(config_digest)
            config_file_path = posixpath.join(self.paths.image_dir(manifest.image_id), fname)
            self.target.ingest_file(repository, config_file_path, tmp)
        
        logger.debug(f"Ingested config file at {config_file_path}")
        return config_file_path
