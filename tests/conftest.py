"""Root pytest configuration for podman-store tests."""
import pytest

from podman_store.builder import StoreBuilder
from podman_store.paths import StorePaths
from podman_store.settings import Settings

from tests.fakes.fake_registry import FakeCredentials, FakeRegistry
from tests.fakes.fake_target import FakePublishTarget
from tests.helpers.image_helpers import CONFIG_BLOB, make_image, make_manifest

REPOSITORY = "unpacked.example.org"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires cvmfs_server)"
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's PODMAN_STORE_* variables out of the tests."""
    import os
    for key in list(os.environ):
        if key.startswith("PODMAN_STORE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def repository():
    return REPOSITORY


@pytest.fixture
def settings(tmp_path):
    """Settings with the mount root and scratch dir under tmp_path."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return Settings(
        mount_root=str(tmp_path / "cvmfs"),
        scratch_dir=str(scratch),
    )


@pytest.fixture
def paths(settings):
    return StorePaths.from_settings(settings)


@pytest.fixture
def image():
    return make_image()


@pytest.fixture
def manifest():
    return make_manifest()


@pytest.fixture
def target(settings):
    from pathlib import Path
    return FakePublishTarget(mount_root=Path(settings.mount_root))


@pytest.fixture
def registry(image, manifest):
    registry = FakeRegistry()
    registry.add_image(image, manifest, CONFIG_BLOB)
    return registry


@pytest.fixture
def credentials():
    return FakeCredentials()


@pytest.fixture
def builder(image, settings, registry, target, credentials):
    return StoreBuilder(
        image,
        settings=settings,
        manifests=registry,
        target=target,
        credentials=credentials,
        tokens=registry,
        fetcher=registry,
    )
