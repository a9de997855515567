"""Keeps the three forms of a project file in lock-step.

A file exists in the persisted store (authoritative across sessions), in the
working list of the current turn, and in the filesystem mirror used by shell
commands. Every write goes through :class:`FileStateSync` in a fixed order:

1. check the name against the mirror (when the batch has a project id),
2. persist (when a store is enabled and the batch has a project id),
3. mirror (when the batch has a project id),
4. in-memory working list.

A failure at any step raises before later steps run, so the working list
never claims a change the store or the mirror did not accept.
"""

from __future__ import annotations

import logging
from typing import MutableSequence

from collabide.execution.mirror import FilesystemMirror
from collabide.models.file_record import FileRecord

LOGGER = logging.getLogger(__name__)


def find_file(files: MutableSequence[FileRecord], name: str) -> FileRecord | None:
    """Return the first file in ``files`` whose name equals ``name``."""
    for record in files:
        if record.name == name:
            return record
    return None


class FileStateSync:
    """Applies file writes and deletes to the store, the mirror and the working list."""

    def __init__(self, mirror: FilesystemMirror, *, persist: bool = True) -> None:
        self._mirror = mirror
        self._persist = persist

    @property
    def mirror(self) -> FilesystemMirror:
        """Return the filesystem mirror this sync writes to."""
        return self._mirror

    @property
    def persist_enabled(self) -> bool:
        """Return True when writes are also sent to the relational store."""
        return self._persist

    def write(
        self,
        files: MutableSequence[FileRecord],
        record: FileRecord,
        project_id: str | None,
    ) -> FileRecord:
        """Store ``record`` everywhere and return the working-list entry.

        When a file of the same name already exists in ``files`` its content is
        replaced in place; otherwise ``record`` is appended.
        """
        if project_id:
            self._mirror.path_for(project_id, record.name)
            if self._persist:
                FileRecord.upsert(project_id, record)
            self._mirror.write(project_id, record.name, record.content)

        existing = find_file(files, record.name)
        if existing is not None:
            existing.content = record.content
            return existing
        files.append(record)
        return record

    def remove(
        self,
        files: MutableSequence[FileRecord],
        name: str,
        project_id: str | None,
    ) -> FileRecord | None:
        """Delete ``name`` everywhere and return the removed working-list entry."""
        existing = find_file(files, name)
        if existing is None:
            return None

        if project_id:
            self._mirror.path_for(project_id, name)
            if self._persist:
                FileRecord.delete_by_name(project_id, name)
            self._mirror.remove(project_id, name)

        files.remove(existing)
        return existing

    def materialize(self, project_id: str, files: MutableSequence[FileRecord]) -> None:
        """Write every working-list file into the mirror (used before ad-hoc commands)."""
        self._mirror.ensure_project_dir(project_id)
        for record in files:
            self._mirror.write(project_id, record.name, record.content)

    def rebuild_mirror(self, project_id: str) -> list[FileRecord]:
        """Reconstruct the mirror from the persisted form; safe to call repeatedly."""
        if not self._persist:
            LOGGER.warning("Mirror rebuild requested without a store | project=%s", project_id)
            return []
        records = FileRecord.get_by_project(project_id)
        self._mirror.rebuild(project_id, ((record.name, record.content) for record in records))
        return records


__all__ = ["FileStateSync", "find_file"]
