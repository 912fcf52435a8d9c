"""
Photo Writer
============

Persistence sink for the composed collage.

The core calls a PhotoWriter once per save action. Success returns an
asset identifier; failure raises PhotoWriteError with a description.

DirectoryPhotoWriter is a reference sink that stores PNG files on disk.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Protocol, Union

import cv2
import numpy as np

from collage_studio.exceptions import PhotoWriteError


logger = logging.getLogger(__name__)


class PhotoWriter(Protocol):
    """Protocol for persistence sinks."""

    async def save(self, image: np.ndarray) -> str:
        """
        Store one composed image.

        Returns:
            Asset identifier

        Raises:
            PhotoWriteError: If the image cannot be stored
        """
        ...


class DirectoryPhotoWriter:
    """
    Writes collages as PNG files into a directory.

    Asset ids are random hex strings; the file is <output_dir>/<id>.png.
    """

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self.output_dir = Path(output_dir)

    async def save(self, image: np.ndarray) -> str:
        asset_id = uuid.uuid4().hex
        path = self.output_dir / f"{asset_id}.png"
        await asyncio.to_thread(self._write, path, image)
        logger.info(f"Collage written to {path}")
        return asset_id

    def _write(self, path: Path, image: np.ndarray) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            written = cv2.imwrite(str(path), image)
        except (OSError, cv2.error) as e:
            raise PhotoWriteError(f"Could not write {path}: {e}") from e

        if not written:
            raise PhotoWriteError(f"Could not write {path}: encoder refused image")
