"""
Publish container images as a podman additional image store inside a
CernVM-FS repository.
"""
from .builder import PublishReport, StoreBuilder, create_podman_image_store
from .errors import (
    AuthTokenFailure,
    CredentialUnavailable,
    InvalidDigest,
    ManifestUnavailable,
    RemoteIngestionFailure,
    ScratchFileIOFailure,
    StoreError,
    TransportFailure,
)
from .models import Descriptor, Image, Manifest
from .paths import StorePaths
from .policy import DEFAULT_POLICY, FailurePolicy, Step
from .settings import Settings, create_settings_from_env

__version__ = "0.1.0"

__all__ = [
    "StoreBuilder",
    "PublishReport",
    "create_podman_image_store",
    "Image",
    "Descriptor",
    "Manifest",
    "StorePaths",
    "Settings",
    "create_settings_from_env",
    "Step",
    "FailurePolicy",
    "DEFAULT_POLICY",
    "StoreError",
    "ManifestUnavailable",
    "CredentialUnavailable",
    "AuthTokenFailure",
    "TransportFailure",
    "ScratchFileIOFailure",
    "RemoteIngestionFailure",
    "InvalidDigest",
]
