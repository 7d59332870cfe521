"""Tests for per-layer diff symlinks and link aliases."""
from __future__ import annotations

import itertools

import pytest

from podman_store.errors import RemoteIngestionFailure
from podman_store.layers import LayerLinker
from podman_store.link_ids import LINK_ID_CHARSET

from tests.helpers.image_helpers import LAYER_A, LAYER_B, LAYER_C, make_manifest

ID_A = LAYER_A.split(":")[1]
ID_B = LAYER_B.split(":")[1]
ID_C = LAYER_C.split(":")[1]


def sequential_ids():
    counter = itertools.count()
    return lambda: f"LINK{next(counter):022d}"


class TestIngestRootfs:
    """Test LayerLinker.ingest_rootfs."""
    
    def test_one_diff_symlink_per_layer_in_order(self, target, paths, repository):
        """Test that each layer gets one diff symlink, in manifest order."""
        manifest = make_manifest([LAYER_A, LAYER_B, LAYER_C])
        
        LayerLinker(target, paths).ingest_rootfs(repository, manifest, "layers")
        
        assert target.operations("symlink") == [
            f"podmanStore/overlay/{ID_A}/diff",
            f"podmanStore/overlay/{ID_B}/diff",
            f"podmanStore/overlay/{ID_C}/diff",
        ]
    
    def test_targets_sharded_by_two_hex_chars(self, target, paths, repository, manifest):
        """Test that diff targets are sharded by the first two hex characters."""
        LayerLinker(target, paths).ingest_rootfs(repository, manifest, "layers")
        
        assert target.symlinks[paths.layer_diff(ID_A)] == f"layers/aa/{ID_A}/layerfs"
        assert target.symlinks[paths.layer_diff(ID_B)] == f"layers/bb/{ID_B}/layerfs"
    
    def test_first_failure_aborts_remaining_layers(self, target, paths, repository):
        """Test that the first failing layer stops the pass."""
        manifest = make_manifest([LAYER_A, LAYER_B, LAYER_C])
        target.fail_paths = {paths.layer_diff(ID_B)}
        
        with pytest.raises(RemoteIngestionFailure):
            LayerLinker(target, paths).ingest_rootfs(repository, manifest, "layers")
        
        # Already created links stay, later layers are not attempted
        assert list(target.symlinks) == [paths.layer_diff(ID_A)]
        assert len(target.operations("symlink")) == 2
    
    def test_empty_manifest(self, target, paths, repository):
        """Test that a manifest without layers creates nothing."""
        LayerLinker(target, paths).ingest_rootfs(repository, make_manifest([]), "layers")
        assert target.calls == []


class TestCreateLinkDir:
    """Test LayerLinker.create_link_dir."""
    
    def test_alias_symlink_and_link_file_per_layer(self, target, paths, repository, manifest):
        """Test that each layer gets an alias symlink and a link file holding its id."""
        linker = LayerLinker(target, paths, id_factory=sequential_ids())
        
        link_ids = linker.create_link_dir(repository, manifest)
        
        assert link_ids == {ID_A: "LINK" + "0" * 22, ID_B: "LINK" + "0" * 21 + "1"}
        for layer_id, link_id in link_ids.items():
            assert target.symlinks[paths.link_alias(link_id)] == paths.layer_diff(layer_id)
            assert target.files[paths.layer_link_file(layer_id)] == link_id.encode()
    
    def test_link_file_has_no_trailing_newline(self, target, paths, repository, manifest):
        """Test that the link file holds exactly the id."""
        LayerLinker(target, paths).create_link_dir(repository, manifest)
        
        content = target.files[paths.layer_link_file(ID_A)]
        assert not content.endswith(b"\n")
        assert len(content) == 26
    
    def test_default_ids_are_26_base32_chars(self, target, paths, repository, manifest):
        """Test that default link ids are 26 base32 characters."""
        link_ids = LayerLinker(target, paths).create_link_dir(repository, manifest)
        
        assert len(link_ids) == 2
        for link_id in link_ids.values():
            assert len(link_id) == 26
            assert set(link_id) <= set(LINK_ID_CHARSET)
    
    def test_steps_in_order_per_layer(self, target, paths, repository, manifest):
        """Test that the alias precedes the link file for each layer."""
        LayerLinker(target, paths, id_factory=sequential_ids()).create_link_dir(repository, manifest)
        
        assert [op for op, _, _ in target.calls] == ["symlink", "ingest", "symlink", "ingest"]
    
    def test_scratch_files_removed(self, target, paths, repository, manifest):
        """Test that link file scratch copies are deleted after ingestion."""
        LayerLinker(target, paths).create_link_dir(repository, manifest)
        
        assert len(target.scratch_files) == 2
        assert not any(path.exists() for path in target.scratch_files)
    
    def test_ingest_failure_aborts_and_removes_scratch(self, target, paths, repository, manifest):
        """Test that a link file failure aborts and still deletes the scratch file."""
        target.fail_paths = {paths.layer_link_file(ID_A)}
        
        with pytest.raises(RemoteIngestionFailure):
            LayerLinker(target, paths).create_link_dir(repository, manifest)
        
        assert not target.scratch_files[0].exists()
        assert len(target.operations("symlink")) == 1
    
    def test_alias_failure_aborts_before_link_file(self, target, paths, repository, manifest):
        """Test that an alias failure aborts before the link file is written."""
        linker = LayerLinker(target, paths, id_factory=lambda: "FIXED")
        target.fail_paths = {paths.link_alias("FIXED")}
        
        with pytest.raises(RemoteIngestionFailure):
            linker.create_link_dir(repository, manifest)
        assert target.operations("ingest") == []
    
    def test_colliding_ids_are_not_deduplicated(self, target, paths, repository, manifest):
        """Test that duplicate ids from the factory are used as they come."""
        linker = LayerLinker(target, paths, id_factory=lambda: "SAME")
        
        link_ids = linker.create_link_dir(repository, manifest)
        
        assert set(link_ids.values()) == {"SAME"}
        assert target.operations("symlink") == [paths.link_alias("SAME")] * 2
