"""Nested catalog bootstrap for the top-level store directories."""
from __future__ import annotations

import logging
from typing import List

from .errors import RemoteIngestionFailure
from .paths import StorePaths
from .storage.base import PublishTarget

__all__ = ["CatalogManager"]

logger = logging.getLogger(__name__)


class CatalogManager:
    """
    Puts a catalog boundary at the store root and its three top-level directories.
    
    Catalogs only bound per-directory metadata cost, so a failure is logged
    and the remaining directories are still attempted.
    """
    
    def __init__(self, target: PublishTarget, paths: StorePaths):
        self.target = target
        self.paths = paths
    
    def bootstrap(self, repository: str) -> List[str]:
        """
        Request a catalog in every directory of StorePaths.catalog_dirs.
        
        Returns:
            Directories whose catalog could not be created
        """
        failed = []
        for directory in self.paths.catalog_dirs:
            try:
                self.target.create_catalog(repository, directory)
            except RemoteIngestionFailure as e:
                logger.error(f"Impossible to create subcatalog in directory {directory}: {e}")
                failed.append(directory)
            else:
                logger.debug(f"Catalog created in {repository}:{directory}")
        return failed
