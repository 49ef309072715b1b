"""
File Loader
===========
Reads report and template files as UTF-8 text.

Relative paths resolve against the current working directory (the CI
workspace). A missing file is not an error: load_text returns None so each
caller can log the absence in its own terms.
"""
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class FileLoader:
    """Small seam around file reads so stages can be tested without disk I/O."""

    def __init__(self, base_dir: Optional[str] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()

    def resolve(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.base_dir / candidate

    def load_text(self, path: str) -> Optional[str]:
        """
        Return the file's text, or None if it does not exist or cannot be read.

        Undecodable bytes are replaced rather than failing the read.
        """
        if not path:
            return None

        resolved = self.resolve(path)
        if not resolved.is_file():
            logger.debug("File not found: %s", resolved)
            return None

        try:
            return resolved.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Could not read %s: %s", resolved, exc)
            return None
