"""Immutable run configuration and the rules that drive dependency classification."""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Sequence, Tuple

from core.config_loader import normalize_string_list

from .model import Project

WILDCARD = "*"


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _bool(section: Mapping[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise TypeError(f"proguard.{key} must be a boolean")
    return value


def _path(value: Any, base: Path) -> Path | None:
    text = _optional_str(value)
    if text is None:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else base / path


@dataclass(frozen=True, slots=True)
class ExclusionRule:
    """Pattern over dependency coordinates; unset or ``*`` fields match anything."""

    group_id: str | None = None
    artifact_id: str | None = None
    type: str | None = None
    classifier: str | None = None

    def describe(self) -> str:
        return ":".join(part or WILDCARD for part in (self.group_id, self.artifact_id, self.type, self.classifier))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExclusionRule":
        return cls(
            group_id=_optional_str(data.get("group_id")),
            artifact_id=_optional_str(data.get("artifact_id")),
            type=_optional_str(data.get("type")),
            classifier=_optional_str(data.get("classifier")),
        )


@dataclass(frozen=True, slots=True)
class InclusionRule:
    """Pattern selecting dependencies to process (``library=False``) or to reference and merge."""

    group_id: str | None = None
    artifact_id: str | None = None
    type: str | None = None
    classifier: str | None = None
    library: bool = False
    filter: str | None = None

    def describe(self) -> str:
        return ":".join(part or WILDCARD for part in (self.group_id, self.artifact_id, self.type, self.classifier))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InclusionRule":
        library = data.get("library", False)
        if not isinstance(library, bool):
            raise TypeError("proguard.inclusions[].library must be a boolean")
        return cls(
            group_id=_optional_str(data.get("group_id")),
            artifact_id=_optional_str(data.get("artifact_id")),
            type=_optional_str(data.get("type")),
            classifier=_optional_str(data.get("classifier")),
            library=library,
            filter=_optional_str(data.get("filter")),
        )


def _rules(value: Any, factory, *, field_name: str) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise TypeError(f"proguard.{field_name} must be an array of tables")
    rules = []
    for entry in value:
        if not isinstance(entry, Mapping):
            raise TypeError(f"proguard.{field_name} entries must be tables")
        rules.append(factory(entry))
    return tuple(rules)


@dataclass(frozen=True, slots=True)
class ShrinkerConfig:
    output_directory: Path
    injar: str
    skip: bool = False
    proguard_include: Path | None = None
    require_include: bool = False
    proguard_version: str | None = None
    use_dexguard: bool = False
    tool_jar: Path | None = None
    options: Tuple[str, ...] = ()
    obfuscate: bool = True
    include_dependency: bool = True
    include_dependency_injar: bool = False
    put_library_jars_in_temp_dir: bool = False
    temp_library_jars_dir: Path | None = None
    inclusions: Tuple[InclusionRule, ...] = ()
    exclusions: Tuple[ExclusionRule, ...] = ()
    libs: Tuple[str, ...] = ()
    injar_not_exists_skip: bool = False
    in_filter: str | None = None
    outjar: str | None = None
    out_filter: str | None = None
    attach: bool = False
    attach_map: bool = False
    attach_seed: bool = False
    attach_artifact_type: str = "jar"
    attach_artifact_classifier: str | None = "small"
    append_classifier: bool = True
    attach_map_artifact_type: str = "txt"
    attach_seed_artifact_type: str = "txt"
    attach_map_artifact_classifier: str | None = "proguard-map"
    attach_seed_artifact_classifier: str | None = "proguard-seed"
    add_maven_descriptor: bool = False
    max_memory: str | None = None
    main_class: str = "proguard.ProGuard"
    process_war_classes_dir: bool = True
    mapping_file_name: str = "proguard_map.txt"
    seed_file_name: str = "proguard_seeds.txt"
    silent: bool = False
    verbose: bool = False
    java: str = "java"

    @property
    def injar_file(self) -> Path:
        return self.output_directory / self.injar

    @property
    def library_staging_dir(self) -> Path:
        return self.temp_library_jars_dir or self.output_directory / "tempLibraryjars"

    @property
    def mapping_file(self) -> Path:
        return (self.output_directory / self.mapping_file_name).absolute()

    @property
    def seed_file(self) -> Path:
        return (self.output_directory / self.seed_file_name).absolute()

    def use_artifact_classifier(self) -> bool:
        return self.append_classifier and bool(self.attach_artifact_classifier)

    def use_map_artifact_classifier(self) -> bool:
        return bool(self.attach_map_artifact_classifier)

    def use_seed_artifact_classifier(self) -> bool:
        return bool(self.attach_seed_artifact_classifier)

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any], *, project: Project) -> "ShrinkerConfig":
        """Build the configuration from a ``[proguard]`` table, defaulting from *project*."""

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            raise ValueError(f"Unknown proguard option(s): {', '.join(unknown)}")

        base = project.basedir
        output_directory = _path(section.get("output_directory"), base) or project.build_directory

        if "proguard_include" in section:
            proguard_include = _path(section.get("proguard_include"), base)
        else:
            proguard_include = base / "proguard.conf"

        def text(key: str, default: str | None) -> str | None:
            if key not in section:
                return default
            return _optional_str(section.get(key))

        return cls(
            output_directory=output_directory,
            injar=text("injar", None) or f"{project.final_name}.jar",
            skip=_bool(section, "skip", False),
            proguard_include=proguard_include,
            require_include=_bool(section, "require_include", False),
            proguard_version=text("proguard_version", None),
            use_dexguard=_bool(section, "use_dexguard", False),
            tool_jar=_path(section.get("tool_jar"), base),
            options=tuple(normalize_string_list(section.get("options"), field_name="proguard.options")),
            obfuscate=_bool(section, "obfuscate", True),
            include_dependency=_bool(section, "include_dependency", True),
            include_dependency_injar=_bool(section, "include_dependency_injar", False),
            put_library_jars_in_temp_dir=_bool(section, "put_library_jars_in_temp_dir", False),
            temp_library_jars_dir=_path(section.get("temp_library_jars_dir"), base),
            inclusions=_rules(section.get("inclusions"), InclusionRule.from_mapping, field_name="inclusions"),
            exclusions=_rules(section.get("exclusions"), ExclusionRule.from_mapping, field_name="exclusions"),
            libs=tuple(normalize_string_list(section.get("libs"), field_name="proguard.libs")),
            injar_not_exists_skip=_bool(section, "injar_not_exists_skip", False),
            in_filter=text("in_filter", None),
            outjar=text("outjar", None),
            out_filter=text("out_filter", None),
            attach=_bool(section, "attach", False),
            attach_map=_bool(section, "attach_map", False),
            attach_seed=_bool(section, "attach_seed", False),
            attach_artifact_type=text("attach_artifact_type", "jar") or "jar",
            attach_artifact_classifier=text("attach_artifact_classifier", "small"),
            append_classifier=_bool(section, "append_classifier", True),
            attach_map_artifact_type=text("attach_map_artifact_type", "txt") or "txt",
            attach_seed_artifact_type=text("attach_seed_artifact_type", "txt") or "txt",
            attach_map_artifact_classifier=text("attach_map_artifact_classifier", "proguard-map"),
            attach_seed_artifact_classifier=text("attach_seed_artifact_classifier", "proguard-seed"),
            add_maven_descriptor=_bool(section, "add_maven_descriptor", False),
            max_memory=text("max_memory", None),
            main_class=text("main_class", "proguard.ProGuard") or "proguard.ProGuard",
            process_war_classes_dir=_bool(section, "process_war_classes_dir", True),
            mapping_file_name=text("mapping_file_name", "proguard_map.txt") or "proguard_map.txt",
            seed_file_name=text("seed_file_name", "proguard_seeds.txt") or "proguard_seeds.txt",
            silent=_bool(section, "silent", False),
            verbose=_bool(section, "verbose", False),
            java=text("java", "java") or "java",
        )


__all__ = [
    "WILDCARD",
    "ExclusionRule",
    "InclusionRule",
    "ShrinkerConfig",
]
