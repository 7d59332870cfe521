"""
Settings and configuration for the podman image store publisher.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the store publisher.
    
    Store layout:
        store_root: Directory inside the repository holding the image store
        mount_root: Where repositories are mounted locally (e.g. /cvmfs)
        link_id_length: Length of the short layer link aliases
        scratch_dir: Directory for scratch files (None = system temp dir)
        
    Registry settings:
        registry_user: Username for registry authentication
        registry_pass: Password for registry authentication
        registry_insecure: Skip TLS verification for local/dev registries
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Number of retries for failed requests (0=no retry)
        
    Publishing settings:
        cvmfs_server: Path to the cvmfs_server executable
        ingest_timeout_s: Timeout for a single ingestion command
    """
    store_root: str = "podmanStore"
    mount_root: str = "/cvmfs"
    link_id_length: int = 26
    scratch_dir: Optional[str] = None
    
    registry_user: Optional[str] = None
    registry_pass: Optional[str] = None
    registry_insecure: bool = False
    http_timeout_s: float = 30.0
    http_retry: int = 0
    
    cvmfs_server: str = "cvmfs_server"
    ingest_timeout_s: float = 600.0
    
    def __post_init__(self):
        """Validate settings on construction."""
        if not self.store_root:
            raise ValueError("store_root is required")
        
        # store_root is repo-relative and must not escape the repository
        root_pattern = r"^[A-Za-z0-9._-]+(?:/[A-Za-z0-9._-]+)*$"
        if not re.match(root_pattern, self.store_root) or ".." in self.store_root.split("/"):
            raise ValueError(f"Invalid store_root format: {self.store_root}")
        
        if not self.mount_root or not self.mount_root.startswith("/"):
            raise ValueError(f"mount_root must be an absolute path, got {self.mount_root!r}")
        
        if self.link_id_length <= 0:
            raise ValueError(f"link_id_length must be positive, got {self.link_id_length}")
        
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")
        
        if self.ingest_timeout_s <= 0:
            raise ValueError(f"ingest_timeout_s must be positive, got {self.ingest_timeout_s}")
        
        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")
        
        if self.registry_pass and not self.registry_user:
            raise ValueError("registry_pass specified but registry_user is missing")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.
    
    Environment Variables:
        - PODMAN_STORE_ROOT (default: podmanStore)
        - PODMAN_STORE_MOUNT_ROOT (default: /cvmfs)
        - PODMAN_STORE_LINK_ID_LENGTH (default: 26)
        - PODMAN_STORE_SCRATCH_DIR (optional)
        - PODMAN_STORE_REGISTRY_USERNAME (optional)
        - PODMAN_STORE_REGISTRY_PASSWORD (optional)
        - PODMAN_STORE_REGISTRY_INSECURE (default: false)
        - PODMAN_STORE_HTTP_TIMEOUT (default: 30.0)
        - PODMAN_STORE_HTTP_RETRY (default: 0)
        - PODMAN_STORE_CVMFS_SERVER (default: cvmfs_server)
        - PODMAN_STORE_INGEST_TIMEOUT (default: 600.0)
    
    Returns:
        Settings object with validated configuration
        
    Raises:
        ValueError: If configuration is invalid
        
    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')
    
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default
    
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default
    
    return Settings(
        store_root=os.getenv("PODMAN_STORE_ROOT") or "podmanStore",
        mount_root=os.getenv("PODMAN_STORE_MOUNT_ROOT") or "/cvmfs",
        link_id_length=get_int("PODMAN_STORE_LINK_ID_LENGTH", 26),
        scratch_dir=os.getenv("PODMAN_STORE_SCRATCH_DIR") or None,
        registry_user=os.getenv("PODMAN_STORE_REGISTRY_USERNAME") or None,
        registry_pass=os.getenv("PODMAN_STORE_REGISTRY_PASSWORD") or None,
        registry_insecure=str_to_bool(os.getenv("PODMAN_STORE_REGISTRY_INSECURE", "false")),
        http_timeout_s=get_float("PODMAN_STORE_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("PODMAN_STORE_HTTP_RETRY", 0),
        cvmfs_server=os.getenv("PODMAN_STORE_CVMFS_SERVER") or "cvmfs_server",
        ingest_timeout_s=get_float("PODMAN_STORE_INGEST_TIMEOUT", 600.0),
    )
