"""
Models package for the collabide core.

This package provides data models and CRUD operations for:
- Actions: typed instructions parsed from agent output
- Files: project files in their working, persisted and mirrored forms
- Executions: audit rows for command runs
- Projects and users: the minimal rows the persistence sink needs
"""

from .action import Action, ActionKind
from .execution_record import ExecutionRecord
from .file_record import FileRecord, language_for
from .project import Project, User

__all__ = [
    'Action',
    'ActionKind',
    'ExecutionRecord',
    'FileRecord',
    'Project',
    'User',
    'language_for',
]
