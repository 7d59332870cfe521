"""
CernVM-FS publish target.

Writes into a CernVM-FS repository by streaming a small tar archive to
``cvmfs_server ingest``. Archives are built in memory with deterministic
headers (uid=0, gid=0, mtime=0) so identical requests produce identical
payloads.
"""
from __future__ import annotations

import io
import logging
import posixpath
import subprocess
import tarfile
from pathlib import Path
from typing import List

from ..errors import RemoteIngestionFailure
from ..settings import Settings

__all__ = ["CvmfsPublisher", "CATALOG_MARKER"]

logger = logging.getLogger(__name__)

CATALOG_MARKER = ".cvmfscatalog"


def _normalized_info(name: str) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name=name)
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    info.mtime = 0
    return info


class CvmfsPublisher:
    """
    PublishTarget backed by ``cvmfs_server ingest``.
    
    Each call is one ingestion: the parent directory of the destination is
    used as --base_dir and the archive holds a single entry named after the
    destination's basename.
    """
    
    def __init__(self, settings: Settings):
        self.settings = settings
    
    def create_symlink(self, repository: str, link_path: str, target: str) -> None:
        if posixpath.isabs(link_path) or posixpath.isabs(target):
            raise ValueError(
                f"Symlink paths must be repository-relative: {link_path!r} -> {target!r}")
        
        base_dir, name = posixpath.split(link_path)
        # Relative targets keep resolving wherever the repository is mounted
        relative_target = posixpath.relpath(target, base_dir or ".")
        
        info = _normalized_info(name)
        info.type = tarfile.SYMTYPE
        info.linkname = relative_target
        info.mode = 0o777
        
        logger.debug(f"Symlink {repository}:{link_path} -> {relative_target}")
        self._ingest(repository, base_dir, [(info, None)])
    
    def ingest_file(self, repository: str, dest_path: str, local_file: Path) -> None:
        base_dir, name = posixpath.split(dest_path)
        try:
            data = Path(local_file).read_bytes()
        except OSError as e:
            raise RemoteIngestionFailure(
                f"Unable to read {local_file} for ingestion: {e}", path=dest_path) from e
        
        info = _normalized_info(name)
        info.size = len(data)
        info.mode = 0o644
        
        logger.debug(f"Ingest {len(data)} bytes at {repository}:{dest_path}")
        self._ingest(repository, base_dir, [(info, data)])
    
    def create_catalog(self, repository: str, directory: str) -> None:
        info = _normalized_info(CATALOG_MARKER)
        info.size = 0
        info.mode = 0o644
        
        logger.debug(f"Catalog marker at {repository}:{directory}")
        self._ingest(repository, directory, [(info, b"")])
    
    def _ingest(self, repository: str, base_dir: str, entries: List[tuple]) -> None:
        payload = self._build_archive(entries)
        cmd = [
            self.settings.cvmfs_server, "ingest",
            "--tar_file", "-",
            "--base_dir", base_dir,
            repository,
        ]
        try:
            subprocess.run(
                cmd,
                input=payload,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.settings.ingest_timeout_s,
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode(errors="replace").strip()
            logger.error(f"cvmfs_server ingest into {repository}:{base_dir} failed: {stderr}")
            raise RemoteIngestionFailure(
                f"Ingestion into {repository}:{base_dir} exited with {e.returncode}: {stderr}",
                path=base_dir) from e
        except subprocess.TimeoutExpired as e:
            raise RemoteIngestionFailure(
                f"Ingestion into {repository}:{base_dir} timed out after {self.settings.ingest_timeout_s}s",
                path=base_dir) from e
        except OSError as e:
            raise RemoteIngestionFailure(
                f"Unable to run {self.settings.cvmfs_server}: {e}", path=base_dir) from e
    
    @staticmethod
    def _build_archive(entries: List[tuple]) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w", format=tarfile.USTAR_FORMAT) as tar:
            for info, data in entries:
                tar.addfile(info, io.BytesIO(data) if data is not None else None)
        return buffer.getvalue()
