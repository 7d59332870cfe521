"""
Data models for image publishing.

These Pydantic models describe the image being published and the subset of
the OCI / docker v2 image manifest the store layout is derived from.
"""
from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import InvalidDigest

__all__ = ["Image", "Descriptor", "Manifest", "digest_hex", "DIGEST_RE"]

# <algorithm>:<hex> with at least 32 lowercase hex characters, e.g. sha256:0123...
DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[+._-][a-z0-9]+)*:[a-f0-9]{32,}$")


def digest_hex(digest: str) -> str:
    """
    Strip the algorithm prefix from a content digest.
    
    Args:
        digest: Content digest (e.g. "sha256:ab12...")
        
    Returns:
        Hex portion of the digest, used as LayerID / ImageID
        
    Raises:
        InvalidDigest: If digest is not of the form <algorithm>:<hex>, or the
            hex part is shorter than 32 characters (the shortest accepted
            digest, md5-sized; sha256 and sha512 are well above it)
    """
    if not isinstance(digest, str) or not DIGEST_RE.match(digest):
        raise InvalidDigest(f"invalid digest format: {digest!r}")
    return digest.split(":", 1)[1]


class Image(BaseModel):
    """
    Image coordinates supplied by the caller.
    
    Immutable for the duration of one publish.
    """
    model_config = ConfigDict(frozen=True)
    
    scheme: str = Field(default="https", description="URL scheme used to reach the registry")
    registry: str = Field(..., description="Registry host[:port]")
    repository: str = Field(..., description="Repository path (e.g. library/ubuntu)")
    tag: Optional[str] = Field(default=None, description="Tag reference")
    digest: Optional[str] = Field(default=None, description="Manifest digest reference")
    user: Optional[str] = Field(default=None, description="Registry user")
    
    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v):
        if v not in ("http", "https"):
            raise ValueError(f"unsupported scheme: {v}")
        return v
    
    @model_validator(mode="after")
    def validate_reference(self):
        """An image needs a tag, a digest, or both."""
        if not self.tag and not self.digest:
            raise ValueError(f"image {self.registry}/{self.repository} has neither tag nor digest")
        return self
    
    @property
    def reference(self) -> str:
        """Reference suffix including its own separator (":tag", "@digest" or both)."""
        if self.tag and self.digest:
            return f":{self.tag}@{self.digest}"
        if self.digest:
            return f"@{self.digest}"
        return f":{self.tag}"
    
    @property
    def manifest_reference(self) -> str:
        """Reference used in /v2/<repo>/manifests/<ref>; digest wins over tag."""
        return self.digest or self.tag
    
    def blob_url(self, digest: str) -> str:
        return f"{self.scheme}://{self.registry}/v2/{self.repository}/blobs/{digest}"
    
    def manifest_url(self) -> str:
        return f"{self.scheme}://{self.registry}/v2/{self.repository}/manifests/{self.manifest_reference}"
    
    def __str__(self) -> str:
        return f"{self.scheme}://{self.registry}/{self.repository}{self.reference}"
    
    @classmethod
    def parse(cls, image_str: str, user: Optional[str] = None) -> Image:
        """
        Parse an image string into an Image.
        
        Supports formats:
        - "https://registry.example.com/library/ubuntu:22.04"
        - "registry.example.com/library/ubuntu@sha256:<hex>"
        - "registry.example.com:5000/org/app:1.0@sha256:<hex>"
        
        The scheme defaults to https and the tag to "latest" when neither a
        tag nor a digest is given.
        
        Raises:
            ValueError: If the string has no registry or repository part
        """
        image_str = image_str.strip()
        scheme = "https"
        if "://" in image_str:
            scheme, image_str = image_str.split("://", 1)
        
        if "/" not in image_str:
            raise ValueError(f"Invalid image format, expected <registry>/<repository>: {image_str}")
        registry, rest = image_str.split("/", 1)
        
        digest = None
        if "@" in rest:
            rest, digest = rest.split("@", 1)
        
        tag = None
        last_slash = rest.rfind("/")
        colon = rest.rfind(":")
        if colon > last_slash:
            rest, tag = rest[:colon], rest[colon + 1:]
        
        if not registry or not rest:
            raise ValueError(f"Invalid image format: {image_str}")
        if not tag and not digest:
            tag = "latest"
        
        return cls(scheme=scheme, registry=registry, repository=rest,
                   tag=tag, digest=digest, user=user)


class Descriptor(BaseModel):
    """Content descriptor referenced from a manifest."""
    model_config = ConfigDict(populate_by_name=True)
    
    media_type: str = Field(default="", alias="mediaType")
    size: int = Field(default=0, ge=0)
    digest: str = Field(..., description="Content digest (<algorithm>:<hex>)")
    
    @field_validator("digest")
    @classmethod
    def validate_digest(cls, v):
        if not DIGEST_RE.match(v):
            raise ValueError(f"invalid digest format: {v}")
        return v
    
    @property
    def hex(self) -> str:
        return digest_hex(self.digest)


class Manifest(BaseModel):
    """Image manifest: ordered layers plus one config blob."""
    model_config = ConfigDict(populate_by_name=True)
    
    schema_version: int = Field(default=2, alias="schemaVersion")
    media_type: str = Field(default="", alias="mediaType")
    config: Descriptor
    layers: List[Descriptor] = Field(default_factory=list)
    
    @property
    def layer_ids(self) -> List[str]:
        """LayerIDs in manifest order."""
        return [layer.hex for layer in self.layers]
    
    @property
    def image_id(self) -> str:
        return self.config.hex
