"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping so every Typer command
reports failures the same way.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

import typer

T = TypeVar('T')

logger = logging.getLogger(__name__)

EXIT_CODES = {
    "ManifestUnavailable": 1,
    "ValueError": 2,
    "InvalidDigest": 2,
    "ValidationError": 2,
    "AuthTokenFailure": 3,
    "TransportFailure": 3,
    "RemoteIngestionFailure": 4,
    "ScratchFileIOFailure": 5,
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to exit code.
    
    - 1: Manifest not available
    - 2: Invalid input (bad image reference, digest or settings)
    - 3: Registry auth/network error, or unknown error
    - 4: Repository ingestion failed
    - 5: Local scratch file I/O failed
    """
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.
    
    Raises:
        typer.Exit: With the mapped exit code if ``func`` raises
    """
    try:
        return func()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
