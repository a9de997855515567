"""Per-project scratch directories that give shell commands real files to see."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from collabide.exceptions import CollabValidationError

LOGGER = logging.getLogger(__name__)


class FilesystemMirror:
    """Materializes project files under ``<root>/<project_id>/<name>``.

    The mirror is never the source of truth. Directories are created lazily and
    the whole tree for a project can be rebuilt at any time from the working
    list or the persisted store. Only flat names are accepted: the action
    vocabulary has no notion of nested directories, and a name must never
    resolve outside its project directory.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        """Return the directory that holds every project mirror."""
        return self._root

    def project_dir(self, project_id: str) -> Path:
        """Return the mirror directory for ``project_id`` without creating it."""
        self._validate_segment(project_id, label="project id")
        return self._root / project_id

    def ensure_project_dir(self, project_id: str) -> Path:
        """Create the project directory if needed (idempotent) and return it."""
        directory = self.project_dir(project_id)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def path_for(self, project_id: str, name: str) -> Path:
        """Return the mirrored path of ``name`` inside the project directory."""
        self._validate_segment(name, label="file name")
        return self.project_dir(project_id) / name

    def write(self, project_id: str, name: str, content: str) -> Path:
        """Write ``content`` to the mirrored copy of ``name``."""
        path = self.path_for(project_id, name)
        self.ensure_project_dir(project_id)
        path.write_text(content, encoding="utf-8")
        LOGGER.debug("Mirrored file | project=%s | name=%s | bytes=%d", project_id, name, len(content))
        return path

    def remove(self, project_id: str, name: str) -> bool:
        """Delete the mirrored copy of ``name`` if it exists."""
        path = self.path_for(project_id, name)
        if not path.exists():
            return False
        path.unlink()
        LOGGER.debug("Removed mirrored file | project=%s | name=%s", project_id, name)
        return True

    def rebuild(self, project_id: str, files: Iterable[tuple[str, str]]) -> Path:
        """Replace the project's mirror with exactly ``files`` (name, content pairs)."""
        directory = self.project_dir(project_id)
        if directory.exists():
            shutil.rmtree(directory)
        directory.mkdir(parents=True, exist_ok=True)
        count = 0
        for name, content in files:
            self.write(project_id, name, content)
            count += 1
        LOGGER.info("Rebuilt mirror | project=%s | files=%d", project_id, count)
        return directory

    def _validate_segment(self, value: str, *, label: str) -> None:
        if not value or not value.strip():
            raise CollabValidationError(f"Empty {label} cannot be mirrored.")
        if value in {".", ".."} or "/" in value or "\\" in value or "\x00" in value:
            raise CollabValidationError(
                f"Invalid {label} for the filesystem mirror.",
                context={label.replace(" ", "_"): value},
            )


__all__ = ["FilesystemMirror"]
