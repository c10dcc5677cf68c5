"""Builders shared by the shrinker tests."""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Mapping, Sequence
from unittest.mock import MagicMock
import zipfile

from core.command_runner import CommandError, CommandResult, CommandRunner
from shrinker.config import ShrinkerConfig
from shrinker.context import Console
from shrinker.model import Dependency, Project


def make_jar(path: Path, entries: Mapping[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path


def make_project(root: Path, *, packaging: str = "jar", **overrides) -> Project:
    build_directory = root / "target"
    build_directory.mkdir(parents=True, exist_ok=True)
    project = Project(
        name="app",
        group_id="com.example",
        artifact_id="app",
        version="1.0",
        basedir=root,
        build_directory=build_directory,
        output_directory=build_directory / "classes",
        final_name="app-1.0",
        packaging=packaging,
    )
    return replace(project, **overrides)


def make_config(project: Project, **overrides) -> ShrinkerConfig:
    extension = "war" if project.packaging == "war" else "jar"
    values = {
        "output_directory": project.build_directory,
        "injar": f"{project.final_name}.{extension}",
        "proguard_include": None,
    }
    values.update(overrides)
    return ShrinkerConfig(**values)


def make_dependency(root: Path, artifact_id: str, *, create: bool = True, **overrides) -> Dependency:
    version = overrides.pop("version", "1.0")
    file = root / "repo" / f"{artifact_id}-{version}.jar"
    if create:
        make_jar(file, {f"{artifact_id}/Lib.class": artifact_id})
    values = {
        "group_id": "g",
        "artifact_id": artifact_id,
        "version": version,
        "file": file,
    }
    values.update(overrides)
    return Dependency(**values)


def quiet_console(*, dry_run: bool = False, debug: bool = False) -> MagicMock:
    console = MagicMock(spec=Console)
    console.dry_run = dry_run
    console.debug_enabled = debug
    return console


def messages(method: MagicMock) -> List[str]:
    return [call.args[0] for call in method.call_args_list]


class ScriptedToolRunner(CommandRunner):
    """Runner that stands in for the tool: records the command and runs a callback on it."""

    def __init__(self, action: Callable[[Sequence[str]], None] | None = None, *, returncode: int = 0) -> None:
        self.commands: List[List[str]] = []
        self.cwds: List[Path | None] = []
        self._action = action
        self._returncode = returncode

    def run(self, command, *, cwd=None, env=None, check=True, note=None, on_output=None) -> CommandResult:
        self.commands.append(list(command))
        self.cwds.append(cwd)
        if self._action is not None:
            self._action(command)
        result = CommandResult(command=command, returncode=self._returncode, stdout="", stderr="")
        if check and self._returncode != 0:
            raise CommandError(result)
        return result


def argument_value(command: Sequence[str], flag: str) -> List[str]:
    """Every value following *flag* in *command*, unquoted and without filters."""
    values: List[str] = []
    for index, token in enumerate(command):
        if token == flag and index + 1 < len(command):
            values.append(unquote(command[index + 1]))
    return values


def unquote(token: str) -> str:
    if token.startswith("'"):
        end = token.index("'", 1)
        return token[1:end]
    return token
