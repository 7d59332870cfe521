"""
Scratch files for content that is ingested into the repository.

Every artifact written to the store goes through a short-lived local file:
create, write, hand to the ingestion command, delete. scratch_file() is the
single place that guarantees the delete on every exit path.
"""
from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .errors import ScratchFileIOFailure

__all__ = ["scratch_file"]

logger = logging.getLogger(__name__)


@contextmanager
def scratch_file(data: bytes = b"", *, prefix: str = "podman-store.",
                 scratch_dir: Optional[str] = None) -> Iterator[Path]:
    """
    Write ``data`` to a temporary file and yield its path.
    
    The file is removed when the block exits, whether it exits normally or
    by an exception.
    
    Args:
        data: Content of the scratch file (empty for sentinel files)
        prefix: Temp file name prefix
        scratch_dir: Directory for the temp file (None = system temp dir)
        
    Raises:
        ScratchFileIOFailure: If the file cannot be created or written
    """
    try:
        fd, temp_name = tempfile.mkstemp(prefix=prefix, dir=scratch_dir)
    except OSError as e:
        raise ScratchFileIOFailure(f"Unable to create scratch file: {e}") from e
    
    temp_path = Path(temp_name)
    try:
        try:
            with os.fdopen(fd, "wb") as out:
                out.write(data)
        except OSError as e:
            raise ScratchFileIOFailure(f"Unable to write scratch file {temp_path}: {e}") from e
        
        logger.debug(f"Wrote {len(data)} bytes to scratch file {temp_path}")
        yield temp_path
    finally:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
