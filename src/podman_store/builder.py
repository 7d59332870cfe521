"""
Podman additional image store publishing.

StoreBuilder runs the fixed publish sequence for one image:

1. catalogs in the store's top-level directories
2. diff symlinks for every layer
3. link aliases and link files for every layer
4. the config blob
5. the manifest discovery symlink
6. overlay-images/images.lock
7. overlay-layers/layers.lock

Whether a failing step stops the publish is decided by the policy table in
``policy``. Nothing already ingested is rolled back.
"""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, TypeVar

from .catalogs import CatalogManager
from .config_blob import ConfigIngestor
from .errors import RemoteIngestionFailure, StoreError
from .layers import LayerLinker
from .link_ids import generate_link_id
from .locks import LockFileManager
from .manifest_link import ManifestPublisher
from .models import Image, Manifest
from .paths import StorePaths
from .policy import FailurePolicy, Step, build_policy
from .settings import Settings, create_settings_from_env
from .storage.base import BlobFetcher, CredentialSource, ManifestSource, PublishTarget, TokenNegotiator

__all__ = ["StoreBuilder", "PublishReport", "create_podman_image_store"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PublishReport:
    """Outcome of one publish."""
    image: str
    repository: str
    image_id: Optional[str] = None
    link_ids: Dict[str, str] = field(default_factory=dict)
    config_path: Optional[str] = None
    manifest_link: Optional[str] = None
    failed_catalogs: List[str] = field(default_factory=list)
    created_locks: List[str] = field(default_factory=list)
    best_effort_failures: Dict[Step, str] = field(default_factory=dict)


class StoreBuilder:
    """
    Publishes one image into the podman store of a repository.
    
    Collaborators are injected; see ``from_settings`` for the production wiring.
    """
    
    def __init__(self, image: Image, *, settings: Settings, manifests: ManifestSource,
                 target: PublishTarget, credentials: CredentialSource,
                 tokens: TokenNegotiator, fetcher: BlobFetcher,
                 policy: Optional[Mapping[Step, FailurePolicy]] = None,
                 id_factory: Optional[Callable[[], str]] = None):
        self.image = image
        self.settings = settings
        self.manifests = manifests
        self.policy = build_policy(policy)
        self.paths = StorePaths.from_settings(settings)
        
        if id_factory is None:
            def id_factory() -> str:
                return generate_link_id(settings.link_id_length)
        
        self.catalogs = CatalogManager(target, self.paths)
        self.layers = LayerLinker(target, self.paths, id_factory=id_factory,
                                  scratch_dir=settings.scratch_dir)
        self.config = ConfigIngestor(target, self.paths, credentials, tokens, fetcher,
                                     scratch_dir=settings.scratch_dir)
        self.manifest_links = ManifestPublisher(target, self.paths)
        self.locks = LockFileManager(target, settings)
    
    @classmethod
    def from_settings(cls, image: Image, settings: Optional[Settings] = None, **kwargs) -> StoreBuilder:
        """
        Build a StoreBuilder that talks to the registry over HTTP and
        publishes with cvmfs_server.
        """
        from .storage.credentials import CredentialStore
        from .storage.cvmfs import CvmfsPublisher
        from .storage.registry_http import RegistryHTTP
        
        settings = settings or create_settings_from_env()
        credentials = CredentialStore(settings)
        registry = RegistryHTTP(settings, credentials=credentials)
        return cls(
            image,
            settings=settings,
            manifests=registry,
            target=CvmfsPublisher(settings),
            credentials=credentials,
            tokens=registry,
            fetcher=registry,
            **kwargs,
        )
    
    def create_podman_image_store(self, repository: str, sub_dir: str) -> PublishReport:
        """
        Publish the image into ``repository``.
        
        Args:
            repository: Repository name (e.g. "unpacked.example.org")
            sub_dir: Repo-relative directory holding the exploded layers
            
        Returns:
            PublishReport describing what was created
            
        Raises:
            ValueError: If sub_dir is absolute
            StoreError: The first failure of a fatal step, unchanged
        """
        if posixpath.isabs(sub_dir):
            raise ValueError(f"sub_dir must be relative to the repository root: {sub_dir!r}")
        
        report = PublishReport(image=str(self.image), repository=repository)
        logger.info(f"Publishing {self.image} into podman store of {repository}")
        
        failed = self._run(Step.CATALOGS, report, self._bootstrap_catalogs, repository)
        report.failed_catalogs = failed or []
        
        manifest: Manifest = self._run(Step.FETCH_MANIFEST, report, self.manifests.get_manifest, self.image)
        report.image_id = manifest.image_id
        
        self._run(Step.ROOTFS_LINKS, report, self.layers.ingest_rootfs, repository, manifest, sub_dir)
        
        link_ids = self._run(Step.LINK_DIR, report, self.layers.create_link_dir, repository, manifest)
        report.link_ids = link_ids or {}
        
        report.config_path = self._run(
            Step.CONFIG, report, self.config.ingest_config_file, repository, self.image, manifest)
        report.manifest_link = self._run(
            Step.MANIFEST_LINK, report, self.manifest_links.ingest_image_manifest,
            repository, self.image, manifest)
        
        for step, lock_path in ((Step.IMAGES_LOCK, self.paths.images_lock),
                                (Step.LAYERS_LOCK, self.paths.layers_lock)):
            if self._run(step, report, self.locks.create_lock_file, repository, lock_path):
                report.created_locks.append(lock_path)
        
        logger.info(f"Published {self.image} as image {report.image_id} "
                    f"with {len(report.link_ids)} layers into {repository}")
        return report
    
    def _bootstrap_catalogs(self, repository: str) -> List[str]:
        """CatalogManager tries every directory; a fatal catalog policy fails on any miss."""
        failed = self.catalogs.bootstrap(repository)
        if failed and self.policy[Step.CATALOGS] is FailurePolicy.FATAL:
            raise RemoteIngestionFailure(
                f"Unable to create catalogs in {', '.join(failed)}", path=failed[0])
        return failed
    
    def _run(self, step: Step, report: PublishReport, func: Callable[..., T], *args) -> Optional[T]:
        """Run one step and apply its failure policy."""
        try:
            return func(*args)
        except StoreError as e:
            if self.policy[step] is FailurePolicy.BEST_EFFORT:
                logger.warning(f"Step {step.value} failed for {self.image}, continuing: {e}")
                report.best_effort_failures[step] = str(e)
                return None
            logger.error(f"Step {step.value} failed for {self.image}: {e}")
            raise


def create_podman_image_store(image: Image, repository: str, sub_dir: str,
                              settings: Optional[Settings] = None) -> PublishReport:
    """Publish ``image`` with the production collaborators."""
    return StoreBuilder.from_settings(image, settings).create_podman_image_store(repository, sub_dir)
