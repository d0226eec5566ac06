"""
Rendering of the dependency graph as an indented forest.

Each node is printed on its own line, prefixed with one dash per level of
indentation:

    requests [installed=2.32.3]
    ----certifi [required=>=2017.4.17, installed=2024.8.30]
    ----urllib3 [required=<3,>=1.21.1, installed=2.2.3]
"""

from typing import Iterable, List, Optional, Tuple

from .cli_config import get_config
from .dag import find_top_level_distributions
from .distribution import DependencyDag, DistributionName

# (name, required label, level, names on the path from the root)
_Frame = Tuple[DistributionName, Optional[str], int, frozenset]


class TreeRenderer:
    """Renders dependency subtrees of a finished graph."""

    def __init__(
        self,
        dag: DependencyDag,
        indent: Optional[int] = None,
        not_installed_marker: Optional[str] = None,
        cycle_marker: Optional[str] = None,
    ):
        render_config = get_config().render
        self.dag = dag
        self.indent = indent if indent is not None else render_config.indent
        self.not_installed_marker = (
            not_installed_marker or render_config.not_installed_marker
        )
        self.cycle_marker = cycle_marker or render_config.cycle_marker

    def format_line(
        self,
        name: DistributionName,
        required_version: Optional[str],
        installed_version: str,
        level: int,
    ) -> str:
        prefix = "-" * level
        if required_version is None:
            return f"{prefix}{name} [installed={installed_version}]"
        return (
            f"{prefix}{name} "
            f"[required={self.format_required(required_version)}, installed={installed_version}]"
        )

    @staticmethod
    def format_required(required_version: str) -> str:
        """Label for a raw constraint; an empty comparison part reads as Any."""
        constraint, separator, marker = required_version.partition(";")
        if constraint.strip():
            return required_version
        return f"Any{separator}{marker}"

    def render(self, root: DistributionName) -> List[str]:
        """
        Render the subtree reachable from root.

        A name already on the path from the root is printed once more with
        the cycle marker and not expanded again, so traversal terminates
        on cyclic graphs.
        """
        lines: List[str] = []
        stack: List[_Frame] = [(root, None, 0, frozenset())]

        while stack:
            name, required_version, level, path = stack.pop()
            meta = self.dag.get(name)
            installed_version = (
                meta.installed_version if meta is not None else self.not_installed_marker
            )
            line = self.format_line(name, required_version, installed_version, level)

            if name in path:
                lines.append(f"{line} {self.cycle_marker}")
                continue
            lines.append(line)

            if meta is None:
                continue

            child_path = path | {name}
            children = sorted(
                meta.dependencies, key=lambda d: (d.name, d.required_version)
            )
            # reversed so the first child is popped first
            for dependency in reversed(children):
                stack.append(
                    (dependency.name, dependency.required_version, level + self.indent, child_path)
                )

        return lines

    def render_all(self, roots: Optional[Iterable[DistributionName]] = None) -> List[str]:
        """Render every top-level distribution, or the given roots."""
        if roots is None:
            roots = find_top_level_distributions(self.dag)

        lines: List[str] = []
        for root in roots:
            lines.extend(self.render(root))
        return lines
