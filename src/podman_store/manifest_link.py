"""Discovery symlink from the image metadata slot to the published manifest."""
from __future__ import annotations

import logging
import posixpath

from .models import Image, Manifest
from .paths import StorePaths
from .storage.base import PublishTarget

__all__ = ["ManifestPublisher", "published_manifest_path"]

logger = logging.getLogger(__name__)

METADATA_DIR = ".metadata"


def published_manifest_path(image: Image) -> str:
    """
    Repo-relative path where the manifest of ``image`` is published.
    
    Repository and reference are concatenated as-is; the reference carries
    its own ":" or "@" separator.
    
    Examples:
        >>> published_manifest_path(Image.parse("registry.example.com/library/ubuntu:22.04"))
        '.metadata/registry.example.com/library/ubuntu:22.04/manifest.json'
    """
    return posixpath.join(METADATA_DIR, image.registry, image.repository + image.reference, "manifest.json")


class ManifestPublisher:
    """
    Creates overlay-images/<image_id>/manifest.json.
    
    The manifest itself is published elsewhere; this only adds the alias
    the container engine looks up.
    """
    
    def __init__(self, target: PublishTarget, paths: StorePaths):
        self.target = target
        self.paths = paths
    
    def ingest_image_manifest(self, repository: str, image: Image, manifest: Manifest) -> str:
        """
        Returns:
            Repo-relative path of the created symlink
        """
        symlink_path = self.paths.image_manifest(manifest.image_id)
        target_path = published_manifest_path(image)
        self.target.create_symlink(repository, symlink_path, target_path)
        logger.debug(f"Linked {symlink_path} -> {target_path}")
        return symlink_path
