"""Map dependencies to the files or directories the tool should read."""
from __future__ import annotations

from pathlib import Path
from typing import List

from .context import Console
from .errors import ResolutionError
from .model import ArtifactLocation, Dependency, LocationSource, Project


class ClasspathResolver:
    """Resolve dependencies, preferring live module output and pre-staged libraries.

    Resolution order:

    1. classifier artifacts resolve to their own file;
    2. a sibling module of the same build resolves to its compiled output
       directory;
    3. a library in the priority directory named ``<artifactId>-<digit>...``;
    4. the dependency's own resolved file, which must exist.
    """

    def __init__(self, project: Project, console: Console) -> None:
        self._project = project
        self._console = console

    def resolve(self, dependency: Dependency, priority_dir: Path | None = None) -> ArtifactLocation:
        if dependency.classifier is not None:
            if dependency.file is None:
                raise ResolutionError(f"Dependency Resolution Required {dependency}")
            return ArtifactLocation(dependency.file, LocationSource.CLASSIFIER)

        module_dir = self._project.module_output(dependency.key)
        if module_dir is not None:
            return ArtifactLocation(module_dir, LocationSource.MODULE)

        if priority_dir is not None:
            candidates = self._scan_priority_dir(dependency, priority_dir)
            if len(candidates) > 1:
                names = ", ".join(candidate.name for candidate in candidates)
                self._console.warn(f"Found more than one library for artifact {dependency}: {names}")
            if candidates:
                return ArtifactLocation(candidates[0], LocationSource.PRIORITY)

        file = dependency.file
        if file is None or not file.exists():
            raise ResolutionError(f"Dependency Resolution Required {dependency}")
        return ArtifactLocation(file, LocationSource.DEPENDENCY)

    @staticmethod
    def _scan_priority_dir(dependency: Dependency, priority_dir: Path) -> List[Path]:
        if not priority_dir.is_dir():
            return []
        base = f"{dependency.artifact_id}-"
        found: List[Path] = []
        for entry in sorted(priority_dir.iterdir()):
            name = entry.name
            # expect a version number right after the artifact id, and room for ".jar"
            if name.startswith(base) and len(name) > len(base) + 4 and name[len(base)].isdigit():
                found.append(entry)
        return found


__all__ = ["ClasspathResolver"]
