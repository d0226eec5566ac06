import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from .cli_config import get_config
from .distribution import (
    DistributionMeta,
    DistributionName,
    RequiredDistribution,
    normalize_name,
)
from .error_handling import (
    InvalidDependencyConstraint,
    MetadataError,
    MissingName,
    MissingVersion,
    log_parsing_error,
)

# PEP 440 public version with optional local label, matched verbatim
_VERSION = r"""
    (?:\d+!)?                                              # epoch
    \d+(?:\.\d+)*                                          # release
    (?:[-_.]?(?:alpha|beta|preview|pre|rc|a|b|c)[-_.]?\d*)?  # pre-release
    (?:-\d+|[-_.]?(?:post|rev|r)[-_.]?\d*)?                # post-release
    (?:[-_.]?dev[-_.]?\d*)?                                # dev release
    (?:\+[a-z0-9]+(?:[-_.][a-z0-9]+)*)?                    # local version
"""

_WILDCARD_VERSION = r"(?:\d+!)?\d+(?:\.\d+)*\.\*"

_COMPARISON_OPERATOR = r"(?:===|==|!=|<=|>=|~=|<|>)"

_CLAUSE = rf"{_COMPARISON_OPERATOR}\s*(?:{_WILDCARD_VERSION}|{_VERSION})"

_DISTRIBUTION_NAME = r"[A-Za-z0-9._-]+"

NAME_LINE_PATTERN = re.compile(
    rf"^name:\s*(?P<name>{_DISTRIBUTION_NAME})\s*$", re.IGNORECASE
)
VERSION_LINE_PATTERN = re.compile(
    rf"^version:\s*(?P<version>{_VERSION})\s*$", re.IGNORECASE | re.VERBOSE
)
REQUIREMENT_LINE_PATTERN = re.compile(
    rf"^Requires-Dist:\s*(?P<name>{_DISTRIBUTION_NAME})\s*"
    r"(?:\[(?P<extras>[^\]]*)\])?"
    r"(?P<rest>.*)$"
)
VERSION_COMPARISON_PATTERN = re.compile(
    rf"\s*{_CLAUSE}(?:\s*,\s*{_CLAUSE})*\s*", re.IGNORECASE | re.VERBOSE
)


class LineKind(Enum):
    """Header productions recognised in a METADATA file."""

    NAME = "name"
    VERSION = "version"
    REQUIREMENT = "requirement"


@dataclass(frozen=True)
class MetadataLine:
    """A classified METADATA header line.

    For requirements `value` is the raw dependency name and `constraint`
    the raw text that followed it (extras dropped, parens unwrapped).
    """

    kind: LineKind
    value: str
    constraint: Optional[str] = None


def _unwrap_parens(text: str) -> str:
    text = text.strip()
    if text.startswith("(") and text.endswith(")"):
        return text[1:-1].strip()
    return text


def _split_requirement_rest(rest: str) -> str:
    """Turn the text after a dependency name into its stored constraint.

    Only surrounding parens and outer whitespace are removed; the text
    between the constraint and the marker is kept as written.
    """
    constraint, separator, marker = rest.partition(";")
    if not separator:
        return _unwrap_parens(constraint)
    gap = constraint[len(constraint.rstrip()):]
    return f"{_unwrap_parens(constraint)}{gap};{marker.rstrip()}"


def classify_line(line: str) -> Optional[MetadataLine]:
    """
    Classify a single METADATA line.

    Returns None for anything that is not a name, version or
    Requires-Dist declaration; such lines are ignored.
    """
    match = NAME_LINE_PATTERN.match(line)
    if match:
        return MetadataLine(LineKind.NAME, match.group("name"))

    match = VERSION_LINE_PATTERN.match(line)
    if match:
        return MetadataLine(LineKind.VERSION, match.group("version"))

    match = REQUIREMENT_LINE_PATTERN.match(line)
    if match:
        return MetadataLine(
            LineKind.REQUIREMENT,
            match.group("name"),
            _split_requirement_rest(match.group("rest")),
        )

    return None


def parse_version_comparison(text: str) -> str:
    """
    Validate a requirement constraint against the version-comparison grammar.

    A trailing environment marker is dropped before matching and an empty
    constraint is accepted.

    Args:
        text: Raw constraint text, possibly with a `; marker` suffix

    Returns:
        str: The pure comparison part of the constraint

    Raises:
        InvalidDependencyConstraint: If a clause is malformed
    """
    constraint = _unwrap_parens(text.partition(";")[0])
    if not constraint:
        return ""
    if VERSION_COMPARISON_PATTERN.fullmatch(constraint) is None:
        raise InvalidDependencyConstraint(
            f"Invalid dependency version constraint: {text!r}"
        )
    return constraint


def node_from_lines(
    lines: Iterable[str],
) -> Tuple[DistributionName, DistributionMeta]:
    """
    Build a graph node from the header lines of one distribution.

    Later Name/Version declarations overwrite earlier ones. Requirements
    are deduplicated on (normalized name, raw constraint).

    Raises:
        MissingName: No Name declaration was seen
        MissingVersion: No Version declaration was seen
        InvalidDependencyConstraint: Any requirement has a malformed constraint
    """
    name: Optional[str] = None
    version: Optional[str] = None
    declared: Set[Tuple[str, str]] = set()

    for line in lines:
        parsed = classify_line(line)
        if parsed is None:
            continue
        if parsed.kind is LineKind.NAME:
            name = parsed.value
        elif parsed.kind is LineKind.VERSION:
            version = parsed.value
        else:
            declared.add((normalize_name(parsed.value), parsed.constraint))

    if name is None:
        raise MissingName()
    if version is None:
        raise MissingVersion()

    dependencies = set()
    for dependency_name, constraint in declared:
        parse_version_comparison(constraint)
        dependencies.add(RequiredDistribution(dependency_name, constraint))

    return normalize_name(name), DistributionMeta(version, frozenset(dependencies))


def _validate_file_path(file_path: str) -> Path:
    """
    Validate a METADATA file path.

    Raises:
        ValueError: If path is invalid or not a file
    """
    if not file_path:
        raise ValueError("File path must be a non-empty string")

    try:
        path = Path(file_path).resolve()
    except (OSError, ValueError) as e:
        raise ValueError(f"Invalid file path: {e}")

    if not path.exists():
        raise ValueError(f"File does not exist: {path}")

    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    return path


def _is_description_boundary(line: str, sentinel: str) -> bool:
    # an empty line separates the headers from the message body
    return not line or line == sentinel


def read_metadata_lines(file_path: str, sentinel: Optional[str] = None) -> List[str]:
    """
    Read the header lines of a METADATA file.

    Reading stops at the first empty line or at a line equal to the
    description sentinel, so the free-text body is never classified.

    Args:
        file_path: Path to the METADATA file
        sentinel: Boundary marker, defaults to the configured one

    Returns:
        List[str]: Header lines, without line endings

    Raises:
        ValueError: If the file cannot be read
    """
    validated_path = _validate_file_path(file_path)
    if sentinel is None:
        sentinel = get_config().scan.description_sentinel

    lines = []
    try:
        with open(validated_path, encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.rstrip("\r\n")
                if _is_description_boundary(line, sentinel):
                    break
                lines.append(line)
    except PermissionError:
        raise ValueError(f"Permission denied reading file: {validated_path}")
    except OSError as e:
        raise ValueError(f"Error reading file: {e}")

    return lines


def parse_metadata_file(file_path: str) -> Tuple[DistributionName, DistributionMeta]:
    """Read one METADATA file and build its graph node."""
    lines = read_metadata_lines(file_path)
    try:
        return node_from_lines(lines)
    except MetadataError as e:
        log_parsing_error(
            str(e),
            module="parsers",
            function="parse_metadata_file",
            file_path=file_path,
            exception=e,
        )
        raise e.with_source(str(file_path)) from e
