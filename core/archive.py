"""Archive management utilities for jar-family (zip based) archives."""
from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Protocol, Sequence, Tuple, runtime_checkable
import os
import tempfile
import zipfile

MANIFEST_NAME = "META-INF/MANIFEST.MF"

_SUFFIX_FORMATS: list[tuple[str, str]] = [
    (".jar", "zip"),
    (".war", "zip"),
    (".ear", "zip"),
    (".aar", "zip"),
    (".zip", "zip"),
]

_FORMAT_ALIASES: dict[str, str] = {
    "jar": "zip",
    "war": "zip",
    "ear": "zip",
    "aar": "zip",
    "zip": "zip",
}


@runtime_checkable
class ArchiveConsole(Protocol):
    """Minimal console interface required by :class:`ArchiveManager`."""

    dry_run: bool

    def info(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def dry(self, message: str) -> None:
        ...


@dataclass(slots=True)
class ArchiveArtifact:
    """Filesystem content to merge into an archive.

    ``source`` is either a directory, whose tree is added relative to its
    root, or an existing archive, whose entries are copied over.
    """

    source: Path
    label: str | None = None


@dataclass(slots=True)
class ArchiveMetadata:
    """Coordinates written into generated archive metadata."""

    group_id: str
    artifact_id: str
    version: str
    created_by: str = "shrinker"
    add_descriptor: bool = False

    def manifest(self) -> bytes:
        lines = [
            "Manifest-Version: 1.0",
            f"Created-By: {self.created_by}",
            "",
            "",
        ]
        return "\r\n".join(lines).encode("utf-8")

    def descriptor_name(self) -> str:
        return f"META-INF/maven/{self.group_id}/{self.artifact_id}/pom.properties"

    def descriptor(self) -> bytes:
        lines = [
            f"#Generated by {self.created_by}",
            f"version={self.version}",
            f"groupId={self.group_id}",
            f"artifactId={self.artifact_id}",
            "",
        ]
        return "\n".join(lines).encode("utf-8")


class ArchiveManager:
    """Extract jar-family archives and assemble new ones from directories and archives."""

    def __init__(
        self,
        console: ArchiveConsole,
    ) -> None:
        self._console = console

    def create_archive(
        self,
        *,
        artifacts: Sequence[ArchiveArtifact],
        target_path: Path | str,
        metadata: ArchiveMetadata | None = None,
        format_hint: str | None = None,
        overwrite: bool = True,
    ) -> Path:
        """Create an archive at *target_path* from *artifacts*.

        Parameters
        ----------
        artifacts:
            Directories and archives to merge, in priority order. When two
            sources provide the same entry name the first one wins.
        target_path:
            Exact path (including filename) for the archive that should be created.
        metadata:
            Coordinates used for a generated manifest (when no source provides
            one) and for the optional build descriptor.
        format_hint:
            Optional explicit archive format such as ``"jar"`` or ``"war"``. When
            omitted, the format is inferred from *target_path*'s suffix.
        overwrite:
            When ``False`` and the target already exists, a :class:`FileExistsError`
            is raised instead of replacing the file.
        """

        target = Path(target_path).expanduser()
        sources = [Path(artifact.source).expanduser() for artifact in artifacts]

        for source in sources:
            if not source.exists():
                raise FileNotFoundError(f"Archive source '{source}' does not exist")

        self._resolve_archive_format(target=target, format_hint=format_hint)

        if self._console.dry_run:
            labels = ", ".join(artifact.label or Path(artifact.source).name for artifact in artifacts)
            self._emit_dry(f"Would archive {labels} to {target}")
            return target

        if target.exists() and not overwrite:
            raise FileExistsError(f"Archive target '{target}' already exists")

        target.parent.mkdir(parents=True, exist_ok=True)

        return self._make_zip_archive(
            target_path=target,
            sources=sources,
            metadata=metadata,
        )

    def _resolve_archive_format(
            self,
            *,
            target: Path,
            format_hint: str | None) -> str:
        if format_hint:
            normalized = format_hint.strip().lower()
            if normalized in _FORMAT_ALIASES:
                return _FORMAT_ALIASES[normalized]
            raise ValueError(
                f"Unsupported archive format hint '{format_hint}'")

        filename = target.name.lower()
        for suffix, fmt in _SUFFIX_FORMATS:
            if filename.endswith(suffix):
                return fmt

        raise ValueError(
            "Unable to determine archive format from target path. "
            "Provide an explicit format_hint or use a supported suffix."
        )

    def _emit_dry(self, message: str) -> None:
        dry_method = getattr(self._console, "dry", None)
        if callable(dry_method):
            dry_method(message)
            return
        if getattr(self._console, "dry_run", False):
            self._console.info(f"[dry-run] {message}")

    @staticmethod
    def _iter_directory(root: Path) -> Iterator[Tuple[str, Path]]:
        for dirpath, dirnames, filenames in os.walk(root, topdown=True):
            dirnames.sort()
            filenames.sort()

            current_dir = Path(dirpath)
            relative_dir = current_dir.relative_to(root)

            for filename in filenames:
                if relative_dir != Path("."):
                    arcname_path = relative_dir / filename
                else:
                    arcname_path = Path(filename)
                yield arcname_path.as_posix(), current_dir / filename

    @staticmethod
    def _find_manifest(sources: Iterable[Path], opened: Dict[Path, zipfile.ZipFile]) -> bytes | None:
        for source in sources:
            if source.is_dir():
                candidate = source / MANIFEST_NAME
                if candidate.is_file():
                    return candidate.read_bytes()
                continue
            try:
                return opened[source].read(MANIFEST_NAME)
            except KeyError:
                continue
        return None

    def _make_zip_archive(
        self,
        *,
        target_path: Path,
        sources: List[Path],
        metadata: ArchiveMetadata | None,
    ) -> Path:
        with tempfile.NamedTemporaryFile(dir=target_path.parent, suffix=".tmp", delete=False) as temp_handle:
            temp_path = Path(temp_handle.name)

        try:
            with ExitStack() as stack:
                opened: Dict[Path, zipfile.ZipFile] = {
                    source: stack.enter_context(zipfile.ZipFile(source, "r"))
                    for source in sources
                    if not source.is_dir()
                }
                archive = stack.enter_context(
                    zipfile.ZipFile(
                        temp_path,
                        mode="w",
                        compression=zipfile.ZIP_DEFLATED,
                        compresslevel=9,
                        allowZip64=True,
                        strict_timestamps=False,
                    )
                )
                written: set[str] = set()

                # The manifest must be the first entry for jar readers.
                manifest = self._find_manifest(sources, opened)
                if manifest is None and metadata is not None:
                    manifest = metadata.manifest()
                if manifest is not None:
                    archive.writestr(MANIFEST_NAME, manifest)
                    written.add(MANIFEST_NAME)

                if metadata is not None and metadata.add_descriptor:
                    name = metadata.descriptor_name()
                    archive.writestr(name, metadata.descriptor())
                    written.add(name)

                for source in sources:
                    if source.is_dir():
                        for arcname, file_path in self._iter_directory(source):
                            if arcname in written:
                                continue
                            archive.write(file_path, arcname)
                            written.add(arcname)
                        continue

                    reader = opened[source]
                    for info in reader.infolist():
                        if info.is_dir() or info.filename in written:
                            continue
                        archive.writestr(info, reader.read(info))
                        written.add(info.filename)

            os.replace(temp_path, target_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

        return target_path

    def extract_archive(
        self,
        *,
        archive_path: Path | str,
        destination_dir: Path | str,
        format_hint: str | None = None,
    ) -> None:
        """Extract an archive to a destination directory.

        Parameters
        ----------
        archive_path:
            Path to the archive file.
        destination_dir:
            Directory where contents should be extracted.
        format_hint:
            Optional explicit archive format.
        """
        archive = Path(archive_path).expanduser()
        dest = Path(destination_dir).expanduser()

        if not archive.exists():
            raise FileNotFoundError(f"Archive '{archive}' does not exist")

        self._resolve_archive_format(target=archive, format_hint=format_hint)

        if self._console.dry_run:
            self._emit_dry(f"Would extract {archive} to {dest}")
            return

        dest.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "r") as zip_ref:
            zip_ref.extractall(dest)

        self._console.info(f"Extracted {archive} to {dest}")


__all__ = [
    "MANIFEST_NAME",
    "ArchiveConsole",
    "ArchiveManager",
    "ArchiveArtifact",
    "ArchiveMetadata",
]
