"""
Registry credential lookup.

Credentials come from the settings (PODMAN_STORE_REGISTRY_USERNAME /
PODMAN_STORE_REGISTRY_PASSWORD) or, failing that, from the Docker client
config file.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from ..errors import CredentialUnavailable
from ..models import Image
from ..settings import Settings

__all__ = ["CredentialStore", "DockerAuth"]

logger = logging.getLogger(__name__)


class DockerAuth:
    """Handle Docker Registry authentication from config files."""
    
    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or Path.home() / ".docker" / "config.json"
    
    def get_credentials(self, registry: str) -> Optional[Tuple[str, str]]:
        """
        Get credentials for registry from Docker config.
        
        Returns: (username, password) or None if not found
        """
        config = self._load_config()
        if not config:
            return None
        
        auths = config.get("auths", {})
        
        # Try exact match, then with https:// prefix, then without protocol
        for key in (registry, f"https://{registry}",
                    registry.replace("https://", "").replace("http://", "")):
            if key in auths:
                auth_entry = auths[key]
                break
        else:
            return None
        
        if "auth" in auth_entry:
            try:
                decoded = base64.b64decode(auth_entry["auth"]).decode()
            except (binascii.Error, UnicodeDecodeError):
                logger.debug(f"Ignoring malformed auth entry for {registry} in {self.config_path}")
            else:
                if ":" in decoded:
                    user, password = decoded.split(":", 1)
                    return user, password
        
        if "username" in auth_entry and "password" in auth_entry:
            return auth_entry["username"], auth_entry["password"]
        
        return None
    
    def _load_config(self) -> Optional[dict]:
        if not self.config_path.exists():
            return None
        try:
            with open(self.config_path, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Failed to read Docker config {self.config_path}: {e}")
            return None


class CredentialStore:
    """
    Credential source backed by settings and the Docker config.
    
    An explicit password in the settings wins; the user is the image's own
    user when set, otherwise the settings user.
    """
    
    def __init__(self, settings: Settings, docker_auth: Optional[DockerAuth] = None):
        self._settings = settings
        self._docker_auth = docker_auth or DockerAuth()
    
    def get_credentials(self, image: Image) -> Tuple[str, str]:
        if self._settings.registry_pass:
            user = image.user or self._settings.registry_user
            logger.debug(f"Using configured credential for {image.registry}")
            return user, self._settings.registry_pass
        
        creds = self._docker_auth.get_credentials(image.registry)
        if creds:
            logger.debug(f"Using Docker config credential for {image.registry}")
            return creds
        
        raise CredentialUnavailable(f"No credential configured for registry {image.registry}")
