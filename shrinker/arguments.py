"""Classification of dependencies into tool arguments."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence
import os

from .classpath import ClasspathResolver
from .config import WILDCARD, InclusionRule, ShrinkerConfig
from .context import Console
from .errors import ConfigurationError
from .lifecycle import ArchiveLifecycleManager, ArtifactLayout
from .matcher import find_matches, is_excluded
from .model import COMPILE_SCOPES, Dependency, Project, RunPlan, quote_path

MANIFEST_FILTER = "!META-INF/MANIFEST.MF"
DESCRIPTOR_FILTER = "!META-INF/maven/**"


class ArgumentBuilder:
    """Produce the ordered tool arguments for one run.

    Arguments are emitted in a fixed order: the web archive's classes
    directory, inclusion matches, the primary input, remaining compile
    dependencies, the output, then the trailing options. Within a loop the
    order is the iteration order of the dependency list; sort it first if
    the build graph does not guarantee one.
    """

    def __init__(
        self,
        *,
        config: ShrinkerConfig,
        project: Project,
        console: Console,
        resolver: ClasspathResolver,
        lifecycle: ArchiveLifecycleManager,
    ) -> None:
        self._config = config
        self._project = project
        self._console = console
        self._resolver = resolver
        self._lifecycle = lifecycle

    def build(self, layout: ArtifactLayout, dependencies: Sequence[Dependency] | None = None) -> RunPlan:
        config = self._config
        artifacts = list(self._project.artifacts if dependencies is None else dependencies)
        plan = RunPlan()

        if self._console.debug_enabled:
            self._log_dependencies(artifacts)

        if layout.processing_war:
            self._add_war_classes(plan, layout)

        for rule in config.inclusions:
            self._add_inclusion(plan, layout, rule, artifacts)

        if layout.in_jar_present and not layout.processing_war:
            plan.add_injar(layout.in_jar, self._descriptor_filters(config.in_filter))

        if config.include_dependency:
            self._add_dependencies(plan, layout, artifacts)

        plan.add_outjar(layout.out_jar, self._descriptor_filters(config.out_filter))

        self._add_trailing_options(plan)
        return plan

    def _log_dependencies(self, artifacts: Sequence[Dependency]) -> None:
        for artifact in artifacts:
            if artifact.scope in COMPILE_SCOPES:
                self._console.debug(f"--- compile artifact {artifact}")
        for artifact in artifacts:
            self._console.debug(f"--- artifact {artifact}")

    def _descriptor_filters(self, extra: str | None) -> List[str]:
        filters: List[str] = []
        if not self._config.add_maven_descriptor:
            filters.append(DESCRIPTOR_FILTER)
        if extra:
            filters.append(extra)
        return filters

    def _add_library(self, plan: RunPlan, path: Path) -> bool:
        if self._config.put_library_jars_in_temp_dir:
            return plan.stage_library(path)
        return plan.add_libraryjar(path)

    def _add_war_classes(self, plan: RunPlan, layout: ArtifactLayout) -> None:
        classes_dir = layout.classes_dir
        if classes_dir is None:
            return
        if not self._config.process_war_classes_dir:
            plan.add_libraryjar(classes_dir)
            return
        classes_input = self._lifecycle.stage_war_classes(layout)
        if classes_input is None:
            return
        plan.add_injar(classes_input)
        # class files are written back to their original location
        plan.add_outjar(classes_dir)

    def _add_inclusion(
        self,
        plan: RunPlan,
        layout: ArtifactLayout,
        rule: InclusionRule,
        artifacts: Sequence[Dependency],
    ) -> None:
        matched = find_matches(rule, artifacts)
        if not matched:
            raise ConfigurationError(f"artifactId Not found {rule.describe()}")

        for dependency in matched:
            if is_excluded(dependency, self._config.exclusions):
                self._console.debug(f"--- excluded inclusion match: {dependency}")
                continue
            location = self._resolver.resolve(dependency, layout.priority_dir)

            if rule.library:
                plan.has_inclusion_library = True
                self._console.debug(f"--- ADD libraryjars: {dependency.artifact_id}")
                self._add_library(plan, location.path)
                continue

            if (
                layout.processing_war
                and rule.artifact_id == WILDCARD
                and location.path.parent != layout.priority_dir
            ):
                self._console.debug(
                    "Wildcard matching artifact will be included as a library "
                    f"(as does not belong to enclosed libs): {location.path}"
                )
                plan.add_libraryjar(location.path)
                continue

            filters = [MANIFEST_FILTER]
            if not self._config.add_maven_descriptor:
                filters.append(DESCRIPTOR_FILTER)
            if rule.filter:
                filters.append(rule.filter)
            self._console.debug(f"--- ADD injars: {dependency.artifact_id}")
            if not plan.add_injar(location.path, filters):
                self._console.debug(f"--- ignore duplicate classpath entry: {location.path}")

    def _add_dependencies(self, plan: RunPlan, layout: ArtifactLayout, artifacts: Sequence[Dependency]) -> None:
        for dependency in artifacts:
            if dependency.scope not in COMPILE_SCOPES:
                continue
            if is_excluded(dependency, self._config.exclusions):
                continue
            location = self._resolver.resolve(dependency, layout.priority_dir)
            if plan.is_seen(location.key):
                self._console.debug(f"--- ignore library since one in injar: {dependency.artifact_id}")
                continue
            if self._config.include_dependency_injar:
                self._console.debug(f"--- ADD library as injars: {dependency.artifact_id}")
                plan.add_injar(location.path)
            else:
                self._console.debug(f"--- ADD libraryjars: {dependency.artifact_id}")
                self._add_library(plan, location.path)

    def _lib_path(self, lib: str) -> Path:
        path = Path(lib).expanduser()
        if not path.is_absolute():
            path = self._project.basedir / path
        return path

    def _add_trailing_options(self, plan: RunPlan) -> None:
        config = self._config

        if not config.obfuscate:
            plan.add_option("-dontobfuscate")

        include = config.proguard_include
        if include is not None and include.is_file() and os.access(include, os.R_OK):
            plan.add_option("-include", quote_path(include))
            self._console.debug(f"proguardInclude {include}")
        elif config.require_include:
            raise ConfigurationError(f"proguardInclude config is not readable: {include}")
        else:
            self._console.debug(f"proguardInclude config does not exist {include}")

        for lib in config.libs:
            self._add_library(plan, self._lib_path(lib))

        plan.temp_library_dir = self._lifecycle.stage_libraries(plan.staged_libraries)
        if plan.temp_library_dir is not None:
            plan.add_libraryjar(plan.temp_library_dir)

        plan.add_option("-printmapping", quote_path(config.mapping_file))
        plan.add_option("-printseeds", quote_path(config.seed_file))

        if config.verbose or self._console.debug_enabled:
            plan.add_option("-verbose")

        plan.extend_options(config.options)


__all__ = ["ArgumentBuilder", "DESCRIPTOR_FILTER", "MANIFEST_FILTER"]
