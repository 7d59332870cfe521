"""
Store path construction helpers.

Centralizes the containers-storage overlay layout so every component builds
repo-relative paths the same way from one immutable StorePaths value.
"""
from __future__ import annotations

import base64
import posixpath
from dataclasses import dataclass

from .models import digest_hex
from .settings import Settings

__all__ = ["StorePaths", "trim_repo_prefix", "config_file_name", "local_path"]

ROOTFS_DIR = "overlay"
IMAGE_METADATA_DIR = "overlay-images"
LAYER_METADATA_DIR = "overlay-layers"
LINK_DIR = "l"


@dataclass(frozen=True)
class StorePaths:
    """
    Repo-relative paths of the podman additional image store.
    
    Layout (relative to root):
        overlay/<layer_id>/diff                  symlink to the exploded layer
        overlay/<layer_id>/link                  file holding the link id
        overlay/l/<link_id>                      symlink to overlay/<layer_id>/diff
        overlay-images/<image_id>/<config name>  image config blob
        overlay-images/<image_id>/manifest.json  symlink to the published manifest
        overlay-images/images.lock               empty sentinel
        overlay-layers/layers.lock               empty sentinel
    """
    root: str = "podmanStore"
    
    @classmethod
    def from_settings(cls, settings: Settings) -> StorePaths:
        return cls(root=settings.store_root)
    
    @property
    def overlay(self) -> str:
        return posixpath.join(self.root, ROOTFS_DIR)
    
    @property
    def overlay_images(self) -> str:
        return posixpath.join(self.root, IMAGE_METADATA_DIR)
    
    @property
    def overlay_layers(self) -> str:
        return posixpath.join(self.root, LAYER_METADATA_DIR)
    
    @property
    def links(self) -> str:
        return posixpath.join(self.overlay, LINK_DIR)
    
    @property
    def catalog_dirs(self) -> tuple[str, ...]:
        """Top-level directories that get their own catalog, in bootstrap order."""
        return (self.root, self.overlay, self.overlay_images, self.overlay_layers)
    
    @property
    def images_lock(self) -> str:
        return posixpath.join(self.overlay_images, "images.lock")
    
    @property
    def layers_lock(self) -> str:
        return posixpath.join(self.overlay_layers, "layers.lock")
    
    def layer_diff(self, layer_id: str) -> str:
        return posixpath.join(self.overlay, layer_id, "diff")
    
    def layer_link_file(self, layer_id: str) -> str:
        return posixpath.join(self.overlay, layer_id, "link")
    
    def link_alias(self, link_id: str) -> str:
        return posixpath.join(self.links, link_id)
    
    def image_dir(self, image_id: str) -> str:
        return posixpath.join(self.overlay_images, image_id)
    
    def image_manifest(self, image_id: str) -> str:
        return posixpath.join(self.image_dir(image_id), "manifest.json")
    
    @staticmethod
    def layerfs_target(sub_dir: str, layer_id: str) -> str:
        """
        Location of an exploded layer inside the repository.
        
        Layers are sharded by the first two hex characters of their id:
        "<sub_dir>/ab/ab12.../layerfs".
        """
        return posixpath.join(sub_dir, layer_id[:2], layer_id, "layerfs")


def local_path(settings: Settings, repository: str, path: str) -> str:
    """Absolute path of a repo-relative path under the local mount root."""
    return posixpath.join(settings.mount_root, repository, path)


def trim_repo_prefix(settings: Settings, path: str) -> str:
    """
    Strip "<mount_root>/<repository>/" from an absolute path.
    
    Examples:
        >>> trim_repo_prefix(Settings(), "/cvmfs/unpacked.example.org/podmanStore/x")
        'podmanStore/x'
        
    Paths outside the mount root are returned without their leading slash.
    """
    mount_root = settings.mount_root.rstrip("/") + "/"
    if path.startswith(mount_root):
        rest = path[len(mount_root):]
        parts = rest.split("/", 1)
        return parts[1] if len(parts) == 2 else ""
    return path.lstrip("/")


def config_file_name(digest: str) -> str:
    """
    Name of the config blob inside overlay-images/<image_id>/.
    
    containers-storage stores image "big data" under "=" + base64(key), with
    the key being the full config digest string.
    
    Raises:
        InvalidDigest: If digest is not of the form <algorithm>:<hex>
    """
    digest_hex(digest)
    return "=" + base64.b64encode(digest.encode("utf-8")).decode("ascii")
