"""Shared core utilities for build orchestration."""

from .archive import MANIFEST_NAME, ArchiveArtifact, ArchiveConsole, ArchiveManager, ArchiveMetadata
from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    OutputHandler,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from .config_loader import (
    ConfigLoader,
    FILE_LOADERS,
    collect_config_files,
    load_config_file,
    load_config_path,
    merge_mappings,
    normalize_string_list,
)

__all__ = [
    "MANIFEST_NAME",
    "ArchiveConsole",
    "ArchiveManager",
    "ArchiveArtifact",
    "ArchiveMetadata",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "OutputHandler",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "ConfigLoader",
    "FILE_LOADERS",
    "collect_config_files",
    "load_config_file",
    "load_config_path",
    "merge_mappings",
    "normalize_string_list",
]
