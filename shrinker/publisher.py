"""Attaching generated files to the build's outputs."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List
import json

from .config import ShrinkerConfig
from .context import Console
from .errors import ConfigurationError
from .lifecycle import ArtifactLayout
from .model import Project


@dataclass(frozen=True, slots=True)
class AttachedArtifact:
    type: str
    classifier: str | None
    file: Path


class BuildOutputs:
    """The build's secondary artifacts, in attach order."""

    def __init__(self) -> None:
        self.attached: List[AttachedArtifact] = []

    def attach(self, artifact_type: str, classifier: str | None, file: Path) -> AttachedArtifact:
        artifact = AttachedArtifact(type=artifact_type, classifier=classifier, file=file)
        self.attached.append(artifact)
        return artifact

    def serialize(self) -> str:
        data = [
            {"type": item.type, "classifier": item.classifier, "file": str(item.file)}
            for item in self.attached
        ]
        return json.dumps(data, indent=2)


class ArtifactPublisher:
    def __init__(
        self,
        *,
        config: ShrinkerConfig,
        project: Project,
        console: Console,
        outputs: BuildOutputs,
    ) -> None:
        self._config = config
        self._project = project
        self._console = console
        self._outputs = outputs

    def _main_classifier(self) -> str | None:
        if self._config.use_artifact_classifier():
            return self._config.attach_artifact_classifier
        return None

    def validate(self, layout: ArtifactLayout) -> None:
        """Reject attach settings that cannot succeed, before the tool is launched."""
        config = self._config
        if not config.attach:
            return
        if (
            not layout.same_artifact
            and self._main_classifier() is None
            and config.attach_artifact_type == self._project.packaging
        ):
            raise ConfigurationError(
                f"Attached artifact {layout.out_jar} needs a classifier; "
                f"without one it collides with the main {self._project.packaging} artifact"
            )
        if config.attach_map and not config.use_map_artifact_classifier():
            raise ConfigurationError("Map artifact classifier cannot be empty")
        if config.attach_seed and not config.use_seed_artifact_classifier():
            raise ConfigurationError("Seed artifact classifier cannot be empty")

    def publish(self, layout: ArtifactLayout, output_file: Path) -> List[AttachedArtifact]:
        config = self._config
        if not config.attach:
            return []
        self.validate(layout)

        start = len(self._outputs.attached)
        main_classifier = self._main_classifier()
        if not layout.same_artifact:
            self._outputs.attach(config.attach_artifact_type, main_classifier, output_file)

        if config.attach_map:
            self._attach_text_file(self._project.build_directory / config.mapping_file_name, main_classifier, "map")
        if config.attach_seed:
            self._attach_text_file(self._project.build_directory / config.seed_file_name, main_classifier, "seed")

        if config.attach_map:
            if not config.mapping_file.exists():
                self._console.warn("Cannot attach proguard map artifact as file does not exist.")
            else:
                self._outputs.attach(
                    config.attach_map_artifact_type, config.attach_map_artifact_classifier, config.mapping_file
                )

        if config.attach_seed:
            if not config.seed_file.exists():
                self._console.warn("Cannot attach proguard seed artifact as file does not exist.")
            else:
                self._outputs.attach(
                    config.attach_seed_artifact_type, config.attach_seed_artifact_classifier, config.seed_file
                )

        return self._outputs.attached[start:]

    def _attach_text_file(self, file: Path, main_classifier: str | None, suffix: str) -> None:
        classifier = f"{main_classifier}-{suffix}" if main_classifier else suffix
        self._console.info(f"Attempting to attach {suffix} artifact")
        if not file.exists():
            self._console.warn(f"Cannot attach file because it does not exist: {file}")
        elif not file.is_file():
            self._console.warn(f"Cannot attach file because it is not a file: {file}")
        else:
            self._outputs.attach("txt", classifier, file)


__all__ = ["ArtifactPublisher", "AttachedArtifact", "BuildOutputs"]
