"""Preparation and reassembly of the files around one tool run."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Sequence, Tuple
import shutil
import zipfile

from core.archive import ArchiveArtifact, ArchiveManager, ArchiveMetadata

from .config import ShrinkerConfig
from .context import Console
from .errors import FileSystemError
from .model import ArtifactLocation, Project, RunPlan, name_no_type


class DeleteStatus(str, Enum):
    MISSING = "missing"
    DELETED = "deleted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DeleteResult:
    status: DeleteStatus
    path: Path
    failed_path: Path | None = None
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not DeleteStatus.FAILED

    def describe(self) -> str:
        message = f"Can't delete {self.failed_path or self.path}"
        if self.error is not None:
            message = f"{message}: {self.error}"
        return message

    def raise_for_failure(self) -> None:
        if self.status is DeleteStatus.FAILED:
            raise FileSystemError(self.describe(), self.failed_path or self.path)


def _delete_tree(path: Path) -> Tuple[Path, OSError] | None:
    if path.is_dir() and not path.is_symlink():
        try:
            children = sorted(path.iterdir())
        except OSError as exc:
            return path, exc
        for child in children:
            failure = _delete_tree(child)
            if failure is not None:
                return failure
        try:
            path.rmdir()
        except OSError as exc:
            return path, exc
        return None
    try:
        path.unlink()
    except OSError as exc:
        return path, exc
    return None


def delete_path(path: Path) -> DeleteResult:
    """Recursively delete *path*, stopping at the first entry that cannot be removed."""
    if not path.exists() and not path.is_symlink():
        return DeleteResult(DeleteStatus.MISSING, path)
    failure = _delete_tree(path)
    if failure is not None:
        failed_path, error = failure
        return DeleteResult(DeleteStatus.FAILED, path, failed_path, error)
    return DeleteResult(DeleteStatus.DELETED, path)


@dataclass(slots=True)
class ArtifactLayout:
    """Where the tool reads from and writes to for this run."""

    in_jar: Path
    in_jar_present: bool
    out_jar: Path
    outjar_name: str
    same_artifact: bool
    processing_war: bool = False
    expanded_dir: Path | None = None
    priority_dir: Path | None = None
    base_file: Path | None = None

    @property
    def classes_dir(self) -> Path | None:
        if self.expanded_dir is None:
            return None
        return self.expanded_dir / "WEB-INF" / "classes"

    @property
    def classes_input_dir(self) -> Path | None:
        if self.expanded_dir is None:
            return None
        return self.expanded_dir / "WEB-INF" / "classes_input"


class ArchiveLifecycleManager:
    """Extract, rename, stage, delete and repackage files for a tool run.

    Mandatory steps raise :class:`FileSystemError`; best-effort cleanup only
    warns. With a dry-run console nothing on disk is touched.
    """

    def __init__(
        self,
        *,
        config: ShrinkerConfig,
        project: Project,
        console: Console,
        archiver: ArchiveManager,
    ) -> None:
        self._config = config
        self._project = project
        self._console = console
        self._archiver = archiver

    def _metadata(self) -> ArchiveMetadata:
        return ArchiveMetadata(
            group_id=self._project.group_id,
            artifact_id=self._project.artifact_id,
            version=self._project.version,
            add_descriptor=self._config.add_maven_descriptor,
        )

    def delete(self, path: Path, *, fatal: bool) -> DeleteResult:
        if self._console.dry_run:
            if path.exists():
                self._console.dry(f"Would delete {path}")
            return DeleteResult(DeleteStatus.MISSING, path)
        result = delete_path(path)
        if result.ok:
            return result
        if fatal:
            result.raise_for_failure()
        self._console.warn(result.describe())
        return result

    def rename(self, source: Path, target: Path) -> None:
        if self._console.dry_run:
            self._console.dry(f"Would rename {source} to {target}")
            return
        try:
            source.rename(target)
        except OSError as exc:
            raise FileSystemError(f"Can't rename {source}: {exc}", source) from exc

    def ensure_directory(self, path: Path) -> None:
        if path.is_dir():
            return
        if self._console.dry_run:
            self._console.dry(f"Would create {path}")
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileSystemError(f"Can't create {path}: {exc}", path) from exc

    def prepare(self) -> ArtifactLayout | None:
        """Work out input and output paths, extracting and renaming as needed.

        Returns ``None`` when the input is missing and the step should do nothing.
        """
        config = self._config
        in_jar = config.injar_file
        if not in_jar.exists():
            if config.injar_not_exists_skip:
                self._console.info('Bypass ProGuard processing because "injar" does not exist')
                return None
            if self._project.packaging == "jar":
                raise FileSystemError(f"Can't find file {in_jar}", in_jar)
            self._console.info(f"Bypass ProGuard processing because {in_jar} does not exist")
            return None

        processing_war = self._project.packaging == "war" and config.injar.endswith(".war")
        expanded_dir = None
        priority_dir = None
        if processing_war:
            expanded_dir = self.extract_war(in_jar)
            priority_dir = expanded_dir / "WEB-INF" / "lib"

        self.ensure_directory(config.output_directory)

        outjar = config.outjar
        if config.attach:
            outjar = name_no_type(config.injar)
            if config.use_artifact_classifier():
                outjar += f"-{config.attach_artifact_classifier}"
            outjar += f".{config.attach_artifact_type}"

        base_file = None
        if priority_dir is not None:
            outjar = outjar or config.injar
            out_jar = (priority_dir / f"{name_no_type(outjar)}.jar").absolute()
            self.delete(out_jar, fatal=True)
            same_artifact = outjar == config.injar
        elif outjar and outjar != config.injar:
            same_artifact = False
            out_jar = (config.output_directory / outjar).absolute()
            self.delete(out_jar, fatal=True)
        else:
            same_artifact = True
            outjar = config.injar
            out_jar = in_jar.absolute()
            suffix = "" if in_jar.is_dir() else ".jar"
            base_file = config.output_directory / f"{name_no_type(config.injar)}_proguard_base{suffix}"
            self.delete(base_file, fatal=True)
            self.rename(in_jar, base_file)
            in_jar = base_file

        return ArtifactLayout(
            in_jar=in_jar,
            in_jar_present=True,
            out_jar=out_jar,
            outjar_name=outjar,
            same_artifact=same_artifact,
            processing_war=processing_war,
            expanded_dir=expanded_dir,
            priority_dir=priority_dir,
            base_file=base_file,
        )

    def extract_war(self, war_file: Path) -> Path:
        expanded_dir = (
            self._config.output_directory / f"{name_no_type(self._config.injar)}_war_proguard_expanded"
        ).absolute()
        self.delete(expanded_dir, fatal=True)
        self.ensure_directory(expanded_dir)
        try:
            self._archiver.extract_archive(archive_path=war_file, destination_dir=expanded_dir, format_hint="war")
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            raise FileSystemError(f"Can't extract {war_file}: {exc}", war_file) from exc
        return expanded_dir

    def stage_war_classes(self, layout: ArtifactLayout) -> Path | None:
        """Move ``WEB-INF/classes`` aside so it can be read and rewritten separately."""
        classes_dir = layout.classes_dir
        classes_input = layout.classes_input_dir
        if classes_dir is None or classes_input is None:
            return None
        if self._console.dry_run:
            self._console.dry(f"Would rename {classes_dir} to {classes_input}")
            return classes_input
        if not classes_dir.is_dir():
            self._console.debug(f"No classes directory in web archive: {classes_dir}")
            return None
        self.delete(classes_input, fatal=True)
        self.rename(classes_dir, classes_input)
        return classes_input

    def stage_libraries(self, libraries: Sequence[Path]) -> Path | None:
        """Copy *libraries* into one fresh temporary directory and return it."""
        if not libraries:
            return None
        staging = self._config.library_staging_dir
        self._console.debug("Copy libraryJars to temporary directory")
        self._console.debug(f"Temporary directory: {staging}")
        if self._console.dry_run:
            self._console.dry(f"Would copy {len(libraries)} libraries to {staging}")
            return staging

        self.delete(staging, fatal=False)
        try:
            staging.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileSystemError(
                f"Can't create temporary libraryJars directory: {staging.absolute()}", staging
            ) from exc

        for library in libraries:
            target = self._unique_target(staging, library.name)
            try:
                if library.is_dir():
                    shutil.copytree(library, target)
                else:
                    shutil.copy2(library, target)
            except OSError as exc:
                raise FileSystemError(
                    f"Can't copy {library} to temporary libraryJars directory {staging}: {exc}", library
                ) from exc
        return staging

    @staticmethod
    def _unique_target(directory: Path, name: str) -> Path:
        target = directory / name
        index = 1
        while target.exists():
            target = directory / f"{index}-{name}"
            index += 1
        return target

    def remove_processed_inputs(self, layout: ArtifactLayout, plan: RunPlan) -> None:
        """Drop inputs that were rewritten into the web archive's output jar."""
        if not layout.processing_war:
            return
        for path in plan.input_files:
            if path.is_dir() or path.parent == layout.priority_dir:
                self._console.info(f"Removing proguarded: {path}")
                self.delete(path, fatal=True)

    def cleanup_staging(self, plan: RunPlan) -> None:
        if plan.temp_library_dir is not None:
            self.delete(plan.temp_library_dir, fatal=False)

    def merge_assembly(self, layout: ArtifactLayout, libraries: Sequence[ArtifactLocation]) -> Path:
        """Rebuild the output jar from the processed jar plus the bundled libraries."""
        self._console.info("creating assembly")
        result_file = self._config.output_directory / f"{name_no_type(self._config.injar)}_proguard_result.jar"
        self.delete(result_file, fatal=True)
        self.rename(layout.out_jar, result_file)

        artifacts: List[ArchiveArtifact] = [ArchiveArtifact(result_file, "proguard result")]
        for location in libraries:
            if location.is_directory:
                self._console.info(f"merge project: {location.path}")
            else:
                self._console.info(f"merge artifact: {location.path}")
            artifacts.append(ArchiveArtifact(location.path))

        self._create(artifacts, layout.out_jar, format_hint="jar", kind="jar")
        self.delete(result_file, fatal=False)
        return layout.out_jar

    def repackage_war(self, layout: ArtifactLayout) -> Path:
        if layout.expanded_dir is None:
            raise FileSystemError(f"No expanded web archive to repackage for {layout.in_jar}", layout.in_jar)
        output_war = self._config.output_directory / layout.outjar_name
        self.delete(output_war, fatal=True)
        self._create([ArchiveArtifact(layout.expanded_dir, "expanded war")], output_war, format_hint="war", kind="war")
        return output_war

    def _create(self, artifacts: Sequence[ArchiveArtifact], target: Path, *, format_hint: str, kind: str) -> None:
        try:
            self._archiver.create_archive(
                artifacts=artifacts,
                target_path=target,
                metadata=self._metadata(),
                format_hint=format_hint,
            )
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            raise FileSystemError(f"Unable to create {kind} {target}: {exc}", target) from exc

    def cleanup_expanded(self, layout: ArtifactLayout) -> None:
        if layout.expanded_dir is not None:
            self.delete(layout.expanded_dir, fatal=False)

    def cleanup_base(self, layout: ArtifactLayout) -> None:
        if layout.base_file is not None:
            self.delete(layout.base_file, fatal=False)

    def restore_base(self, layout: ArtifactLayout) -> None:
        """Put the renamed input back at its original path after an unfinished run.

        Any partial output at that path is discarded first. Failures only warn,
        so the error that stopped the run is the one that surfaces.
        """
        base_file = layout.base_file
        if base_file is None or self._console.dry_run or not base_file.exists():
            return
        original = layout.out_jar
        if not self.delete(original, fatal=False).ok:
            return
        try:
            self.rename(base_file, original)
        except FileSystemError as exc:
            self._console.warn(str(exc))
            return
        self._console.info(f"Restored {original}")


__all__ = [
    "ArchiveLifecycleManager",
    "ArtifactLayout",
    "DeleteResult",
    "DeleteStatus",
    "delete_path",
]
