"""Tests for the publish failure policy table."""
from __future__ import annotations

import pytest

from podman_store.policy import DEFAULT_POLICY, FailurePolicy, Step, build_policy


class TestDefaultPolicy:
    
    def test_only_catalogs_are_best_effort(self):
        """Test that catalog bootstrap is the only best-effort step."""
        best_effort = {step for step, policy in DEFAULT_POLICY.items()
                       if policy is FailurePolicy.BEST_EFFORT}
        assert best_effort == {Step.CATALOGS}
    
    def test_every_step_has_a_policy(self):
        """Test that every publish step has an entry."""
        assert set(DEFAULT_POLICY) == set(Step)
    
    def test_read_only(self):
        """Test that the default table cannot be modified."""
        with pytest.raises(TypeError):
            DEFAULT_POLICY[Step.CONFIG] = FailurePolicy.BEST_EFFORT  # type: ignore[index]


class TestBuildPolicy:
    
    def test_no_overrides_matches_default(self):
        """Test that no overrides yields the default table."""
        assert dict(build_policy()) == dict(DEFAULT_POLICY)
    
    def test_override_applied(self):
        """Test that an override changes only its own step and leaves the default intact."""
        policy = build_policy({Step.LAYERS_LOCK: FailurePolicy.BEST_EFFORT})
        assert policy[Step.LAYERS_LOCK] is FailurePolicy.BEST_EFFORT
        assert policy[Step.IMAGES_LOCK] is FailurePolicy.FATAL
        assert DEFAULT_POLICY[Step.LAYERS_LOCK] is FailurePolicy.FATAL
    
    def test_manifest_fetch_cannot_be_best_effort(self):
        """Test that the manifest fetch cannot be relaxed."""
        with pytest.raises(ValueError, match="fetch_manifest must be fatal"):
            build_policy({Step.FETCH_MANIFEST: FailurePolicy.BEST_EFFORT})
