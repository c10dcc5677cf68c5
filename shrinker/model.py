"""Data model shared by the classification, resolution and lifecycle code."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set

COMPILE_SCOPES = frozenset({"compile", "provided", "system"})


def quote_path(path: Path | str) -> str:
    """Quote a path the way the tool's own argument parser expects."""
    return f"'{path}'"


def jar_reference(path: Path | str, filters: Sequence[str] = ()) -> str:
    """Return ``'path'(filter,...)``, omitting the parentheses when there is no filter."""
    reference = quote_path(path)
    parts = [part for part in filters if part]
    if parts:
        reference = f"{reference}({','.join(parts)})"
    return reference


def name_no_type(file_name: str) -> str:
    """Strip the last extension from ``file_name``."""
    head, dot, _ = file_name.rpartition(".")
    if not dot:
        return file_name
    return head


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _resolve_path(value: Any, base: Path) -> Path | None:
    text = _optional_str(value)
    if text is None:
        return None
    path = Path(text).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


@dataclass(frozen=True, slots=True)
class Dependency:
    """A resolved artifact of the build graph."""

    group_id: str
    artifact_id: str
    version: str
    type: str = "jar"
    scope: str = "compile"
    classifier: str | None = None
    file: Path | None = None
    depth: int = 1

    @property
    def key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    def __str__(self) -> str:
        parts = [self.group_id, self.artifact_id, self.type]
        if self.classifier:
            parts.append(self.classifier)
        parts.extend([self.version, self.scope])
        return ":".join(parts)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base: Path) -> "Dependency":
        group_id = _optional_str(data.get("group_id"))
        artifact_id = _optional_str(data.get("artifact_id"))
        if not group_id or not artifact_id:
            raise ValueError("Dependency entries require group_id and artifact_id")
        depth = data.get("depth", 1)
        if not isinstance(depth, int) or isinstance(depth, bool):
            raise TypeError(f"Dependency {group_id}:{artifact_id} depth must be an integer")
        return cls(
            group_id=group_id,
            artifact_id=artifact_id,
            version=str(data.get("version", "")),
            type=_optional_str(data.get("type")) or "jar",
            scope=_optional_str(data.get("scope")) or "compile",
            classifier=_optional_str(data.get("classifier")),
            file=_resolve_path(data.get("file"), base),
            depth=depth,
        )


@dataclass(slots=True)
class Project:
    """The slice of the build graph the step needs: coordinates, layout and resolved artifacts."""

    name: str
    group_id: str
    artifact_id: str
    version: str
    basedir: Path
    build_directory: Path
    output_directory: Path
    final_name: str
    packaging: str = "jar"
    artifacts: List[Dependency] = field(default_factory=list)
    modules: Dict[str, Path] = field(default_factory=dict)
    tool_artifacts: List[Dependency] = field(default_factory=list)

    def compile_artifacts(self) -> List[Dependency]:
        return [artifact for artifact in self.artifacts if artifact.scope in COMPILE_SCOPES]

    def module_output(self, key: str) -> Path | None:
        return self.modules.get(key)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, root: Path) -> "Project":
        project_section = data.get("project")
        if not isinstance(project_section, Mapping):
            raise ValueError("[project] section is required in the build file")
        group_id = _optional_str(project_section.get("group_id"))
        artifact_id = _optional_str(project_section.get("artifact_id"))
        if not group_id or not artifact_id:
            raise ValueError("project.group_id and project.artifact_id are required")
        version = str(project_section.get("version", ""))

        basedir = _resolve_path(project_section.get("basedir"), root) or root
        build_directory = _resolve_path(project_section.get("build_directory"), basedir) or basedir / "target"
        output_directory = (
            _resolve_path(project_section.get("output_directory"), basedir) or build_directory / "classes"
        )
        final_name = _optional_str(project_section.get("final_name"))
        if final_name is None:
            final_name = f"{artifact_id}-{version}" if version else artifact_id

        modules_section = project_section.get("modules", {})
        if not isinstance(modules_section, Mapping):
            raise TypeError("project.modules must be a table of 'group:artifact' = path")
        modules: Dict[str, Path] = {}
        for key, value in modules_section.items():
            path = _resolve_path(value, basedir)
            if path is None:
                raise ValueError(f"project.modules.{key} must name a directory")
            modules[str(key)] = path

        return cls(
            name=_optional_str(project_section.get("name")) or artifact_id,
            group_id=group_id,
            artifact_id=artifact_id,
            version=version,
            basedir=basedir,
            build_directory=build_directory,
            output_directory=output_directory,
            final_name=final_name,
            packaging=(_optional_str(project_section.get("packaging")) or "jar").lower(),
            artifacts=_parse_dependencies(data.get("dependencies"), base=basedir, section="dependencies"),
            modules=modules,
            tool_artifacts=_parse_dependencies(data.get("tool_artifacts"), base=basedir, section="tool_artifacts"),
        )


def _parse_dependencies(value: Any, *, base: Path, section: str) -> List[Dependency]:
    if not value:
        return []
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise TypeError(f"[[{section}]] must be an array of tables")
    dependencies: List[Dependency] = []
    for entry in value:
        if not isinstance(entry, Mapping):
            raise TypeError(f"[[{section}]] entries must be tables")
        dependencies.append(Dependency.from_mapping(entry, base=base))
    return dependencies


class LocationSource(str, Enum):
    CLASSIFIER = "classifier"
    MODULE = "module"
    PRIORITY = "priority"
    DEPENDENCY = "dependency"


@dataclass(frozen=True, slots=True)
class ArtifactLocation:
    """Where a dependency's classes live for this run."""

    path: Path
    source: LocationSource

    @property
    def key(self) -> str:
        return str(self.path)

    @property
    def is_directory(self) -> bool:
        return self.source is LocationSource.MODULE or self.path.is_dir()



@dataclass(slots=True)
class RunPlan:
    """Arguments accumulated for one tool invocation plus the bookkeeping needed afterwards.

    Every classpath entry is registered in ``seen``; the first registration
    wins and later ones are ignored.
    """

    arguments: List[str] = field(default_factory=list)
    input_files: List[Path] = field(default_factory=list)
    seen: Set[str] = field(default_factory=set)
    staged_libraries: List[Path] = field(default_factory=list)
    temp_library_dir: Path | None = None
    has_inclusion_library: bool = False
    injar_count: int = 0
    _pending_injars: int = 0

    def is_seen(self, key: str) -> bool:
        return key in self.seen

    def add_injar(self, path: Path, filters: Sequence[str] = ()) -> bool:
        key = str(path)
        if key in self.seen:
            return False
        self.seen.add(key)
        self.arguments.extend(["-injars", jar_reference(path, filters)])
        if path not in self.input_files:
            self.input_files.append(path)
        self.injar_count += 1
        self._pending_injars += 1
        return True

    def add_libraryjar(self, path: Path | str) -> bool:
        key = str(path)
        if key in self.seen:
            return False
        self.seen.add(key)
        self.arguments.extend(["-libraryjars", quote_path(path)])
        return True

    def stage_library(self, path: Path) -> bool:
        key = str(path)
        if key in self.seen:
            return False
        self.seen.add(key)
        self.staged_libraries.append(path)
        return True

    def add_outjar(self, path: Path, filters: Sequence[str] = ()) -> bool:
        """Emit ``-outjars`` only when inputs were added since the previous one."""
        if self._pending_injars == 0:
            return False
        self.arguments.extend(["-outjars", jar_reference(path, filters)])
        self._pending_injars = 0
        return True

    def add_option(self, *tokens: str) -> None:
        self.arguments.extend(tokens)

    def extend_options(self, tokens: Iterable[str]) -> None:
        self.arguments.extend(tokens)

    @property
    def has_injars(self) -> bool:
        return self.injar_count > 0


__all__ = [
    "COMPILE_SCOPES",
    "ArtifactLocation",
    "Dependency",
    "LocationSource",
    "Project",
    "RunPlan",
    "jar_reference",
    "name_no_type",
    "quote_path",
]
