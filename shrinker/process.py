"""Launching the external tool in its own JVM."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from core.command_runner import CommandError, CommandResult, CommandRunner

from .config import ShrinkerConfig
from .context import Console
from .errors import ConfigurationError, ProcessError
from .model import Project

ROUTINE_OUTPUT = (
    "ProGuard, version ",
    "Reading program jar [",
    "Reading program directory [",
    "Reading library jar [",
    "Reading library directory [",
    "Preparing output jar [",
    "Preparing output directory [",
    "  Copying resources from program jar [",
    "  Copying resources from program directory [",
)


def locate_tool_jar(config: ShrinkerConfig, project: Project, console: Console) -> Path:
    """Find the jar that provides the tool's main class."""

    if config.tool_jar is not None:
        jar = config.tool_jar
        if not jar.exists():
            raise ConfigurationError(f"proguard jar ({jar}) does not exist")
        if not jar.is_file():
            raise ConfigurationError(f"proguard jar ({jar}) is not a file")
        return jar

    prefix = "dexguard" if config.use_dexguard else "proguard"
    chosen = None
    distance = -1
    for artifact in project.tool_artifacts:
        console.debug(f"tool artifact: {artifact.file}")
        artifact_id = artifact.artifact_id
        if not artifact_id.startswith(prefix) or artifact_id.startswith("proguard-maven-plugin"):
            continue
        console.debug(f"proguard dependency trail: {artifact.depth}")
        if config.proguard_version is not None and config.proguard_version == artifact.version:
            chosen = artifact
            break
        if distance == -1 or artifact.depth < distance:
            chosen = artifact
            distance = artifact.depth

    if chosen is None or chosen.file is None:
        raise ConfigurationError(
            f"Obfuscation failed ProGuard ({config.main_class}) not found in the {prefix} tool artifacts"
        )
    console.debug(f"proguard artifact: {chosen.file}")
    return chosen.file.absolute()


class ToolProcessRunner:
    """Run the tool through ``java -cp <jar> <main-class>`` and wait for it.

    Output is streamed line by line through the console unless *quiet*, in
    which case it is captured and only shown when the tool fails. There is no
    timeout: the tool's own progress output is the only liveness signal.
    """

    def __init__(self, *, console: Console, runner: CommandRunner) -> None:
        self._console = console
        self._runner = runner

    @staticmethod
    def command(
        tool_jar: Path,
        main_class: str,
        args: Sequence[str],
        *,
        max_memory: str | None = None,
        java: str = "java",
    ) -> List[str]:
        command = [java]
        if max_memory:
            command.append(f"-Xmx{max_memory}")
        command.extend(["-cp", str(tool_jar), main_class])
        command.extend(args)
        return command

    def _echo(self, line: str) -> None:
        if line.startswith(ROUTINE_OUTPUT):
            self._console.debug(line)
        else:
            self._console.info(line)

    def run(
        self,
        tool_jar: Path,
        main_class: str,
        args: Sequence[str],
        *,
        max_memory: str | None = None,
        quiet: bool = False,
        java: str = "java",
        cwd: Path | None = None,
    ) -> CommandResult:
        command = self.command(tool_jar, main_class, args, max_memory=max_memory, java=java)
        self._console.info(f"proguard jar: {tool_jar}")
        self._console.debug(f"Run Proguard with options {list(args)}")

        try:
            return self._runner.run(
                command,
                cwd=cwd,
                note="proguard",
                on_output=None if quiet else self._echo,
            )
        except CommandError as exc:
            if quiet:
                for stream in (exc.result.stdout, exc.result.stderr):
                    for line in stream.splitlines():
                        self._console.error(line)
            raise ProcessError(exc.result) from exc
        except OSError as exc:
            raise ConfigurationError(f"Unable to launch {java}: {exc}") from exc


__all__ = ["ROUTINE_OUTPUT", "ToolProcessRunner", "locate_tool_jar"]
