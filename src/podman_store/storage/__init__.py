"""Collaborators of the store publisher: registry access and repository ingestion."""
from .base import BlobFetcher, CredentialSource, ManifestSource, PublishTarget, TokenNegotiator

__all__ = ["BlobFetcher", "CredentialSource", "ManifestSource", "PublishTarget", "TokenNegotiator"]
