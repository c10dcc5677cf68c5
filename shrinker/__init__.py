"""Shrinker/obfuscator build step: dependency classification, tool invocation and artifact reassembly."""

from .arguments import ArgumentBuilder
from .classpath import ClasspathResolver
from .config import ExclusionRule, InclusionRule, ShrinkerConfig
from .context import Console, Context
from .engine import RunResult, ShrinkerEngine
from .errors import ConfigurationError, FileSystemError, ProcessError, ResolutionError, ShrinkerError
from .lifecycle import ArchiveLifecycleManager, ArtifactLayout, DeleteResult, DeleteStatus, delete_path
from .matcher import matches
from .model import ArtifactLocation, Dependency, Project, RunPlan
from .process import ToolProcessRunner, locate_tool_jar
from .publisher import ArtifactPublisher, AttachedArtifact, BuildOutputs

__all__ = [
    "ArchiveLifecycleManager",
    "ArgumentBuilder",
    "ArtifactLayout",
    "ArtifactLocation",
    "ArtifactPublisher",
    "AttachedArtifact",
    "BuildOutputs",
    "ClasspathResolver",
    "ConfigurationError",
    "Console",
    "Context",
    "DeleteResult",
    "DeleteStatus",
    "Dependency",
    "ExclusionRule",
    "FileSystemError",
    "InclusionRule",
    "ProcessError",
    "Project",
    "ResolutionError",
    "RunPlan",
    "RunResult",
    "ShrinkerConfig",
    "ShrinkerEngine",
    "ShrinkerError",
    "ToolProcessRunner",
    "delete_path",
    "locate_tool_jar",
    "matches",
]
