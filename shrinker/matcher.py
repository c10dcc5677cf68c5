"""Coordinate matching for inclusion and exclusion rules."""
from __future__ import annotations

from typing import Iterable, List, Union

from .config import WILDCARD, ExclusionRule, InclusionRule
from .model import Dependency

Rule = Union[InclusionRule, ExclusionRule]


def _field_matches(pattern: str | None, value: str | None) -> bool:
    if pattern is None or pattern == WILDCARD:
        return True
    return value == pattern


def matches(rule: Rule, dependency: Dependency) -> bool:
    """Return ``True`` when every set field of *rule* equals the dependency's value."""
    return (
        _field_matches(rule.group_id, dependency.group_id)
        and _field_matches(rule.artifact_id, dependency.artifact_id)
        and _field_matches(rule.type, dependency.type)
        and _field_matches(rule.classifier, dependency.classifier)
    )


def find_matches(rule: Rule, dependencies: Iterable[Dependency]) -> List[Dependency]:
    return [dependency for dependency in dependencies if matches(rule, dependency)]


def is_excluded(dependency: Dependency, exclusions: Iterable[ExclusionRule]) -> bool:
    return any(matches(rule, dependency) for rule in exclusions)


__all__ = ["Rule", "find_matches", "is_excluded", "matches"]
