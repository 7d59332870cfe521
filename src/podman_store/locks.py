"""Empty sentinel files the container engine expects next to its metadata."""
from __future__ import annotations

import logging
import os
from typing import Optional

from .paths import local_path, trim_repo_prefix
from .scratch import scratch_file
from .settings import Settings
from .storage.base import PublishTarget

__all__ = ["LockFileManager"]

logger = logging.getLogger(__name__)


class LockFileManager:
    """
    Creates zero-byte lock files in the store, once.
    
    Existence is checked against the locally mounted repository; the check
    and the ingestion are not atomic with respect to other publishers.
    """
    
    def __init__(self, target: PublishTarget, settings: Settings,
                 scratch_dir: Optional[str] = None):
        self.target = target
        self.settings = settings
        self.scratch_dir = scratch_dir if scratch_dir is not None else settings.scratch_dir
    
    def create_lock_file(self, repository: str, path: str) -> bool:
        """
        Create the empty file ``path`` (repo-relative) unless it already exists.
        
        Returns:
            True if the file was ingested, False if it was already present
            
        Raises:
            ScratchFileIOFailure: If the scratch file cannot be created
            RemoteIngestionFailure: If ingestion fails
        """
        lock_file_path = local_path(self.settings, repository, path)
        if os.path.lexists(lock_file_path):
            logger.debug(f"Lock file {lock_file_path} already present")
            return False
        
        with scratch_file(prefix="lock.", scratch_dir=self.scratch_dir) as tmp:
            self.target.ingest_file(repository, trim_repo_prefix(self.settings, lock_file_path), tmp)
        logger.info(f"Created lock file {repository}:{path}")
        return True
