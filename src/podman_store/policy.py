"""
Failure policy for the publish sequence.

Each step of StoreBuilder is either fatal (first failure stops the publish
and propagates) or best-effort (failure is logged and the publish goes on).
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

__all__ = ["Step", "FailurePolicy", "DEFAULT_POLICY", "build_policy"]


class Step(str, Enum):
    """Publish steps, in execution order."""
    CATALOGS = "catalogs"
    FETCH_MANIFEST = "fetch_manifest"
    ROOTFS_LINKS = "rootfs_links"
    LINK_DIR = "link_dir"
    CONFIG = "config"
    MANIFEST_LINK = "manifest_link"
    IMAGES_LOCK = "images_lock"
    LAYERS_LOCK = "layers_lock"


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best_effort"


DEFAULT_POLICY: Mapping[Step, FailurePolicy] = MappingProxyType({
    Step.CATALOGS: FailurePolicy.BEST_EFFORT,
    Step.FETCH_MANIFEST: FailurePolicy.FATAL,
    Step.ROOTFS_LINKS: FailurePolicy.FATAL,
    Step.LINK_DIR: FailurePolicy.FATAL,
    Step.CONFIG: FailurePolicy.FATAL,
    Step.MANIFEST_LINK: FailurePolicy.FATAL,
    Step.IMAGES_LOCK: FailurePolicy.FATAL,
    Step.LAYERS_LOCK: FailurePolicy.FATAL,
})


def build_policy(overrides: Mapping[Step, FailurePolicy] | None = None) -> Mapping[Step, FailurePolicy]:
    """
    Return DEFAULT_POLICY with ``overrides`` applied, as a read-only mapping.
    
    The manifest fetch cannot be made best-effort: every later step needs it.
    
    Raises:
        ValueError: If overrides make FETCH_MANIFEST best-effort
    """
    policy = dict(DEFAULT_POLICY)
    policy.update(overrides or {})
    if policy[Step.FETCH_MANIFEST] is not FailurePolicy.FATAL:
        raise ValueError("fetch_manifest must be fatal")
    return MappingProxyType(policy)
