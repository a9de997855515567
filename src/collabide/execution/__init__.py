"""Action execution: engine, command runner, filesystem mirror and state sync."""

from collabide.execution.command_runner import CommandResult, CommandRunner
from collabide.execution.engine import ExecutionEngine, ExecutionResult
from collabide.execution.mirror import FilesystemMirror
from collabide.execution.run_queue import ProjectRunQueue
from collabide.execution.sync import FileStateSync, find_file

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ExecutionEngine",
    "ExecutionResult",
    "FileStateSync",
    "FilesystemMirror",
    "ProjectRunQueue",
    "find_file",
]
