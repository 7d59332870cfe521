"""Tests for the scratch file helper."""
from __future__ import annotations

from unittest.mock import patch

import pytest

from podman_store.errors import ScratchFileIOFailure
from podman_store.scratch import scratch_file


class TestScratchFile:
    """Test scratch_file create/use/delete discipline."""
    
    def test_yields_file_with_content(self, tmp_path):
        with scratch_file(b"payload", scratch_dir=str(tmp_path)) as path:
            assert path.read_bytes() == b"payload"
            assert path.parent == tmp_path
    
    def test_empty_by_default(self, tmp_path):
        with scratch_file(scratch_dir=str(tmp_path)) as path:
            assert path.stat().st_size == 0
    
    def test_removed_after_success(self, tmp_path):
        with scratch_file(b"x", scratch_dir=str(tmp_path)) as path:
            pass
        assert not path.exists()
        assert list(tmp_path.iterdir()) == []
    
    def test_removed_after_failure(self, tmp_path):
        with pytest.raises(RuntimeError):
            with scratch_file(b"x", scratch_dir=str(tmp_path)) as path:
                raise RuntimeError("ingestion failed")
        assert not path.exists()
    
    def test_already_removed_file_is_fine(self, tmp_path):
        with scratch_file(b"x", scratch_dir=str(tmp_path)) as path:
            path.unlink()
        assert not path.exists()
    
    def test_missing_scratch_dir_raises(self, tmp_path):
        with pytest.raises(ScratchFileIOFailure, match="Unable to create scratch file"):
            with scratch_file(b"x", scratch_dir=str(tmp_path / "missing")):
                pass
    
    def test_write_failure_raises_and_cleans_up(self, tmp_path):
        with patch("podman_store.scratch.os.fdopen", side_effect=OSError("disk full")):
            with pytest.raises(ScratchFileIOFailure, match="disk full"):
                with scratch_file(b"x", scratch_dir=str(tmp_path)):
                    pass
        assert list(tmp_path.iterdir()) == []
    
    def test_prefix(self, tmp_path):
        with scratch_file(prefix="linkfile.", scratch_dir=str(tmp_path)) as path:
            assert path.name.startswith("linkfile.")
