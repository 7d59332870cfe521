"""
Test error mapping and CLI exit code functionality.
"""
from __future__ import annotations

import pytest
import typer

from podman_store.errors import (
    AuthTokenFailure,
    InvalidDigest,
    ManifestUnavailable,
    RemoteIngestionFailure,
    ScratchFileIOFailure,
    TransportFailure,
)
from podman_store.mappers import EXIT_CODES, exit_code_for, run_and_exit


class TestExitCodeMapping:
    """Test exception to exit code mapping."""
    
    def test_known_exceptions_mapped_correctly(self):
        assert exit_code_for(ManifestUnavailable("x")) == 1
        assert exit_code_for(InvalidDigest("x")) == 2
        assert exit_code_for(ValueError("x")) == 2
        assert exit_code_for(AuthTokenFailure("x")) == 3
        assert exit_code_for(TransportFailure("x")) == 3
        assert exit_code_for(RemoteIngestionFailure("x")) == 4
        assert exit_code_for(ScratchFileIOFailure("x")) == 5
    
    def test_unknown_exception_maps_to_fallback(self):
        assert exit_code_for(RuntimeError("x")) == 3
        assert exit_code_for(KeyError("x")) == 3
    
    def test_exit_code_keys(self):
        assert set(EXIT_CODES) == {
            "ManifestUnavailable",
            "ValueError",
            "InvalidDigest",
            "ValidationError",
            "AuthTokenFailure",
            "TransportFailure",
            "RemoteIngestionFailure",
            "ScratchFileIOFailure",
        }


class TestRunAndExit:
    
    def test_success_returns_result(self):
        assert run_and_exit(lambda: 42) == 42
    
    def test_exception_becomes_exit(self):
        def failing():
            raise RemoteIngestionFailure("rejected")
        
        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)
        assert exc_info.value.exit_code == 4
        assert isinstance(exc_info.value.__cause__, RemoteIngestionFailure)
