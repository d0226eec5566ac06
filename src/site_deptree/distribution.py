import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet

# https://packaging.python.org/en/latest/specifications/name-normalization/
NAME_NORMALIZE_PATTERN = re.compile(r"[-_.]+")

DistributionName = str


def normalize_name(name: str) -> DistributionName:
    """Collapse runs of `-`, `_` and `.` into a single dash and lowercase."""
    return NAME_NORMALIZE_PATTERN.sub("-", name).lower()


@dataclass(frozen=True)
class RequiredDistribution:
    """A dependency declared by a distribution.

    `required_version` is the raw declaration text after the name, markers
    included, so two declarations differing only by marker stay distinct.
    """

    name: DistributionName
    required_version: str


@dataclass(frozen=True)
class DistributionMeta:
    """Installed version and declared dependencies of one distribution."""

    installed_version: str
    dependencies: FrozenSet[RequiredDistribution] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.installed_version:
            raise ValueError(
                "Empty <Version> was provided while constructing <DistributionMeta>"
            )
        object.__setattr__(self, "dependencies", frozenset(self.dependencies))


DependencyDag = Dict[DistributionName, DistributionMeta]
