"""
podman-store CLI

- publish: Publish an image into the podman store of a repository
- layout: Show the store entries a publish would create
"""
from __future__ import annotations

import logging
from typing import Optional

import typer

from .builder import StoreBuilder
from .mappers import run_and_exit
from .models import Image
from .manifest_link import published_manifest_path
from .paths import StorePaths, config_file_name
from .settings import create_settings_from_env

app = typer.Typer(name="podman-store", help="Publish container images as a podman additional image store")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def publish(
    image: str = typer.Argument(..., help="Image, e.g. https://registry.example.com/library/ubuntu:22.04"),
    repository: str = typer.Argument(..., help="Repository to publish into"),
    sub_dir: str = typer.Argument(..., help="Repo-relative directory holding the exploded layers"),
    user: Optional[str] = typer.Option(None, "--user", help="Registry user"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug output")
) -> None:
    """Publish an image into the podman store."""
    _configure_logging(verbose)
    
    def _publish() -> None:
        img = Image.parse(image, user=user)
        settings = create_settings_from_env()
        report = StoreBuilder.from_settings(img, settings).create_podman_image_store(repository, sub_dir)
        
        typer.echo(f"Published {report.image} as {report.image_id}")
        typer.echo(f"Layers: {len(report.link_ids)}")
        if report.config_path:
            typer.echo(f"Config: {report.config_path}")
        for lock in report.created_locks:
            typer.echo(f"Created: {lock}")
        for directory in report.failed_catalogs:
            typer.echo(f"Warning: no catalog in {directory}")
        for step, message in report.best_effort_failures.items():
            typer.echo(f"Warning: {step.value} failed: {message}")
    
    run_and_exit(_publish)


@app.command()
def layout(
    image: str = typer.Argument(..., help="Image reference"),
    sub_dir: str = typer.Argument(..., help="Repo-relative directory holding the exploded layers"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug output")
) -> None:
    """Show the store entries a publish would create, without ingesting."""
    _configure_logging(verbose)
    
    def _layout() -> None:
        from .storage.credentials import CredentialStore
        from .storage.registry_http import RegistryHTTP
        
        img = Image.parse(image)
        settings = create_settings_from_env()
        paths = StorePaths.from_settings(settings)
        with RegistryHTTP(settings, credentials=CredentialStore(settings)) as registry:
            manifest = registry.get_manifest(img)
        
        for layer_id in manifest.layer_ids:
            typer.echo(f"{paths.layer_diff(layer_id)} -> {paths.layerfs_target(sub_dir, layer_id)}")
            typer.echo(f"{paths.layer_link_file(layer_id)}")
        image_dir = paths.image_dir(manifest.image_id)
        typer.echo(f"{image_dir}/{config_file_name(manifest.config.digest)}")
        typer.echo(f"{paths.image_manifest(manifest.image_id)} -> {published_manifest_path(img)}")
        typer.echo(paths.images_lock)
        typer.echo(paths.layers_lock)
    
    run_and_exit(_layout)


def main():
    app()


if __name__ == "__main__":
    main()
