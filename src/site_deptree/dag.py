"""
Dependency graph assembly for an installed Python environment.

Walks the `*.dist-info` directories of one or more site-packages
directories and turns every METADATA file into a graph node.
"""

from pathlib import Path
from typing import Iterator, List, Optional, Set, Union

from .cli_config import get_config
from .distribution import DependencyDag, DistributionName
from .error_handling import ErrorCategory, MetadataError, get_error_handler
from .parsers import parse_metadata_file
from .structured_logging import (
    log_distribution_parsed,
    log_distribution_skipped,
    log_duplicate_distribution,
    log_graph_build_complete,
    log_graph_build_start,
)


def get_meta_dirs(env_path: Union[str, Path]) -> Iterator[Path]:
    """
    Yield metadata directories of a site-packages directory.

    Args:
        env_path: site-packages directory

    Raises:
        ValueError: If the directory cannot be listed
    """
    suffix = get_config().scan.metadata_dir_suffix
    try:
        entries = sorted(Path(env_path).iterdir())
    except OSError as e:
        get_error_handler().error(
            ErrorCategory.FILESYSTEM,
            f"Can not read site-packages dir: {e}",
            "dag",
            "get_meta_dirs",
            exception=e,
            details={"env_path": str(env_path)},
        )
        raise ValueError(f"Can not read site-packages dir {env_path}: {e}")

    for entry in entries:
        if entry.name.endswith(suffix) and entry.is_dir():
            yield entry


def get_dep_dag_from_env(
    *env_paths: Union[str, Path], fail_fast: Optional[bool] = None
) -> DependencyDag:
    """
    Build the dependency graph of every distribution installed in env_paths.

    Args:
        env_paths: site-packages directories to scan
        fail_fast: Abort on the first malformed distribution (default from
            config). When False the distribution is skipped and logged.

    Returns:
        DependencyDag: Normalized distribution name to metadata

    Raises:
        MetadataError: A distribution record is malformed and fail_fast is set
        ValueError: A directory or METADATA file can not be read
    """
    config = get_config()
    if fail_fast is None:
        fail_fast = config.scan.fail_fast

    dependency_dag: DependencyDag = {}
    skipped = 0

    for env_path in env_paths:
        log_graph_build_start(str(env_path))
        for meta_dir in get_meta_dirs(env_path):
            meta_file_path = meta_dir / config.scan.metadata_file_name
            if not meta_file_path.is_file():
                continue

            try:
                name, meta = parse_metadata_file(str(meta_file_path))
            except MetadataError as e:
                if fail_fast:
                    raise
                skipped += 1
                log_distribution_skipped(str(meta_dir.name), e.message)
                continue

            if name in dependency_dag:
                log_duplicate_distribution(name, str(meta_dir.name))
            dependency_dag[name] = meta
            log_distribution_parsed(name, meta.installed_version, len(meta.dependencies))

    log_graph_build_complete(len(dependency_dag), skipped)
    return dependency_dag


def find_top_level_distributions(dag: DependencyDag) -> List[DistributionName]:
    """Return distributions that no other distribution depends on."""
    required_names: Set[DistributionName] = {
        dependency.name
        for meta in dag.values()
        for dependency in meta.dependencies
    }
    return sorted(name for name in dag if name not in required_names)
