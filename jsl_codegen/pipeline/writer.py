"""
Atomic file writer for generated code.

Ensures that file writes are atomic so an interrupted run never leaves a
half-written file behind.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from .backends.declarations import RenderedFile

logger = logging.getLogger(__name__)


class OutputWriter:
    """Writes rendered files under an output directory.

    Each file is written to a temporary file in the same directory and then
    atomically moved over the target, so readers see either the old or the
    new content.
    """

    def __init__(self, force: bool = False):
        """Initialize the writer.

        Args:
            force: Overwrite files that already exist
        """
        self.force = force

    def write(self, path: Path, content: str) -> None:
        """Write content to a file atomically.

        Args:
            path: Target file path
            content: Content to write

        Raises:
            FileExistsError: If the file exists and force is off
            OSError: If file operations fail
        """
        if path.exists() and not self.force:
            raise FileExistsError(f"Output file already exists: {path}. Use --force to overwrite.")

        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory, so the final rename stays on one filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug("Wrote %s", path)

    def write_all(self, out_dir: str | Path, files: tuple[RenderedFile, ...] | list[RenderedFile]) -> list[Path]:
        """Write the files of one target.

        Existing files are checked before anything is written, so a refused
        run leaves the directory untouched.

        Args:
            out_dir: Output directory of the target
            files: Rendered files, with paths relative to out_dir

        Returns:
            Paths written

        Raises:
            FileExistsError: If a file exists and force is off
        """
        out_dir = Path(out_dir)
        paths = [out_dir / f.path for f in files]
        if not self.force:
            for path in paths:
                if path.exists():
                    raise FileExistsError(f"Output file already exists: {path}. Use --force to overwrite.")

        for path, f in zip(paths, files, strict=True):
            self.write(path, f.content)
        return paths
