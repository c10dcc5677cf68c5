"""The shrinker build step: prepare, classify, run, reassemble, attach."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .arguments import ArgumentBuilder
from .classpath import ClasspathResolver
from .config import ShrinkerConfig
from .context import Context
from .errors import ConfigurationError, FileSystemError
from .lifecycle import ArchiveLifecycleManager, ArtifactLayout
from .matcher import find_matches, is_excluded
from .model import ArtifactLocation, Project, RunPlan
from .process import ToolProcessRunner, locate_tool_jar
from .publisher import ArtifactPublisher, AttachedArtifact, BuildOutputs


@dataclass(slots=True)
class RunResult:
    skipped: bool
    plan: RunPlan | None = None
    layout: ArtifactLayout | None = None
    output_file: Path | None = None
    command: List[str] = field(default_factory=list)
    attached: List[AttachedArtifact] = field(default_factory=list)


class ShrinkerEngine:
    def __init__(
        self,
        *,
        project: Project,
        config: ShrinkerConfig,
        context: Context,
        outputs: BuildOutputs | None = None,
    ) -> None:
        self._project = project
        self._config = config
        self._context = context
        self.outputs = outputs or BuildOutputs()

        console = context.console
        self._resolver = ClasspathResolver(project, console)
        self._lifecycle = ArchiveLifecycleManager(
            config=config,
            project=project,
            console=console,
            archiver=context.archiver,
        )
        self._builder = ArgumentBuilder(
            config=config,
            project=project,
            console=console,
            resolver=self._resolver,
            lifecycle=self._lifecycle,
        )
        self._process = ToolProcessRunner(console=console, runner=context.runner)
        self._publisher = ArtifactPublisher(
            config=config,
            project=project,
            console=console,
            outputs=self.outputs,
        )

    def execute(self) -> RunResult:
        try:
            return self._execute()
        except OSError as exc:
            path = Path(exc.filename) if exc.filename else None
            raise FileSystemError(f"I/O failure: {exc}", path) from exc

    def _execute(self) -> RunResult:
        config = self._config
        console = self._context.console

        if config.skip:
            console.info('Bypass ProGuard processing because "proguard.skip=true"')
            return RunResult(skipped=True)

        layout = self._lifecycle.prepare()
        if layout is None:
            return RunResult(skipped=True)

        reassembled = False
        try:
            self._publisher.validate(layout)
            tool_jar = self._tool_jar()

            plan: RunPlan | None = None
            try:
                plan = self._builder.build(layout)
                command = self._process.command(
                    tool_jar, config.main_class, plan.arguments, max_memory=config.max_memory, java=config.java
                )
                self._process.run(
                    tool_jar,
                    config.main_class,
                    plan.arguments,
                    max_memory=config.max_memory,
                    quiet=config.silent,
                    java=config.java,
                    cwd=self._context.workspace,
                )
            finally:
                if plan is not None:
                    self._lifecycle.cleanup_staging(plan)

            if console.dry_run:
                console.dry("Would reassemble the output and attach artifacts")
                return RunResult(skipped=False, plan=plan, layout=layout, output_file=layout.out_jar, command=command)

            output_file = self._reassemble(layout, plan)
            reassembled = True
            self._lifecycle.cleanup_base(layout)
            attached = self._publisher.publish(layout, output_file)
        finally:
            if not reassembled:
                self._lifecycle.restore_base(layout)
            self._lifecycle.cleanup_expanded(layout)

        return RunResult(
            skipped=False,
            plan=plan,
            layout=layout,
            output_file=output_file,
            command=command,
            attached=attached,
        )

    def _tool_jar(self) -> Path:
        config = self._config
        console = self._context.console
        try:
            return locate_tool_jar(config, self._project, console)
        except ConfigurationError as exc:
            if not console.dry_run:
                raise
            # a dry run only shows the command, so a placeholder jar is enough
            console.warn(f"{exc}; showing the command with a placeholder tool jar")
            return config.tool_jar or Path("proguard.jar")

    def _reassemble(self, layout: ArtifactLayout, plan: RunPlan) -> Path:
        self._lifecycle.remove_processed_inputs(layout, plan)

        output_file = layout.out_jar
        if plan.has_inclusion_library:
            output_file = self._lifecycle.merge_assembly(layout, self._assembly_libraries(layout))

        if layout.processing_war:
            output_file = self._lifecycle.repackage_war(layout)
        return output_file

    def _assembly_libraries(self, layout: ArtifactLayout) -> List[ArtifactLocation]:
        locations: List[ArtifactLocation] = []
        for rule in self._config.inclusions:
            if not rule.library:
                continue
            candidates = [
                dependency
                for dependency in find_matches(rule, self._project.artifacts)
                if not is_excluded(dependency, self._config.exclusions)
            ]
            if not candidates:
                continue
            locations.append(self._resolver.resolve(candidates[0], layout.priority_dir))
        return locations


__all__ = ["RunResult", "ShrinkerEngine"]
