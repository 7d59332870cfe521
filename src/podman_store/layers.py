"""
Per-layer store entries.

For every layer of the manifest two passes create:
- overlay/<layer_id>/diff, a symlink to the exploded layer in the repository
- overlay/l/<link_id>, a short alias of the diff directory, and
  overlay/<layer_id>/link, a file holding that alias

The aliases keep the lowerdir list of the overlay mount short.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .errors import RemoteIngestionFailure
from .link_ids import generate_link_id
from .models import Manifest
from .paths import StorePaths
from .scratch import scratch_file
from .storage.base import PublishTarget

__all__ = ["LayerLinker"]

logger = logging.getLogger(__name__)


class LayerLinker:
    """Builds the diff symlinks and link aliases of an image's layers."""
    
    def __init__(self, target: PublishTarget, paths: StorePaths,
                 id_factory: Callable[[], str] = generate_link_id,
                 scratch_dir: Optional[str] = None):
        self.target = target
        self.paths = paths
        self.id_factory = id_factory
        self.scratch_dir = scratch_dir
    
    def ingest_rootfs(self, repository: str, manifest: Manifest, sub_dir: str) -> None:
        """
        Link overlay/<layer_id>/diff to <sub_dir>/<id[:2]>/<id>/layerfs for every layer.
        
        Layers are processed in manifest order; the first failure propagates
        and already created links stay in place.
        """
        for layer_id in manifest.layer_ids:
            symlink_path = self.paths.layer_diff(layer_id)
            target_path = self.paths.layerfs_target(sub_dir, layer_id)
            try:
                self.target.create_symlink(repository, symlink_path, target_path)
            except RemoteIngestionFailure:
                logger.error(f"Error in creating the symlink for the diff dir of layer {layer_id}")
                raise
            logger.debug(f"Linked {symlink_path} -> {target_path}")
    
    def create_link_dir(self, repository: str, manifest: Manifest) -> Dict[str, str]:
        """
        Give every layer a fresh link id.
        
        Per layer: alias symlink overlay/l/<link_id> -> overlay/<layer_id>/diff,
        then the link id (no trailing newline) ingested at overlay/<layer_id>/link.
        
        Returns:
            Mapping of layer id to the link id it received
        """
        link_ids: Dict[str, str] = {}
        for layer_id in manifest.layer_ids:
            link_id = self.id_factory()
            
            alias_path = self.paths.link_alias(link_id)
            try:
                self.target.create_symlink(repository, alias_path, self.paths.layer_diff(layer_id))
            except RemoteIngestionFailure:
                logger.error(f"Error in creating the symlink for the link dir of layer {layer_id}")
                raise
            
            with scratch_file(link_id.encode("ascii"), prefix="linkfile.",
                              scratch_dir=self.scratch_dir) as tmp:
                self.target.ingest_file(repository, self.paths.layer_link_file(layer_id), tmp)
            
            logger.debug(f"Layer {layer_id} aliased as {link_id}")
            link_ids[layer_id] = link_id
        return link_ids
