"""
Shared fixtures for site-deptree tests.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

import pytest

from site_deptree.cli_config import reset_config
from site_deptree.error_handling import setup_error_handling

REQUESTS_METADATA = [
    "Metadata-Version: 2.1",
    "Name: requests",
    "Version: 2.32.3",
    "Summary: Python HTTP for Humans.",
    "Home-page: https://requests.readthedocs.io",
    "License: Apache-2.0",
    "Requires-Python: >=3.8",
    "Description-Content-Type: text/markdown",
    "License-File: LICENSE",
    "Requires-Dist: charset-normalizer<4,>=2",
    "Requires-Dist: idna<4,>=2.5",
    "Requires-Dist: urllib3<3,>=1.21.1",
    "Requires-Dist: certifi>=2017.4.17",
    "Provides-Extra: socks",
    'Requires-Dist: PySocks!=1.5.7,>=1.5.6; extra == "socks"',
    "",
    "# Requests",
    "",
    "name: not-requests",
    "Requires-Dist: not-a-dependency (this body line is never parsed)",
]


def write_distribution(
    site_dir: Path, dir_name: str, lines: Iterable[str], metadata_name: Optional[str] = "METADATA"
) -> Path:
    """Create `<site_dir>/<dir_name>/METADATA` with the given lines."""
    dist_dir = site_dir / dir_name
    dist_dir.mkdir(parents=True, exist_ok=True)
    if metadata_name:
        (dist_dir / metadata_name).write_text("\n".join(lines) + "\n", encoding="utf-8")
    return dist_dir


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep config files and SITE_DEPTREE_* variables of the host out of tests."""
    for key in list(os.environ):
        if key.startswith("SITE_DEPTREE_") or key == "VIRTUAL_ENV":
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Scratch directory separate from the cwd used for config discovery."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return scratch


@pytest.fixture
def site_packages(tmp_path):
    """A small site-packages directory with one missing optional dependency."""
    site_dir = tmp_path / "site-packages"
    site_dir.mkdir()

    write_distribution(site_dir, "requests-2.32.3.dist-info", REQUESTS_METADATA)
    write_distribution(
        site_dir,
        "certifi-2024.8.30.dist-info",
        ["Metadata-Version: 2.1", "Name: certifi", "Version: 2024.8.30"],
    )
    write_distribution(
        site_dir,
        "urllib3-2.2.3.dist-info",
        [
            "Metadata-Version: 2.3",
            "Name: urllib3",
            "Version: 2.2.3",
            "Requires-Dist: brotli>=1.0.9; (platform_python_implementation == 'CPython') and extra == 'brotli'",
        ],
    )
    write_distribution(
        site_dir,
        "idna-3.10.dist-info",
        ["Metadata-Version: 2.1", "Name: idna", "Version: 3.10"],
    )
    write_distribution(
        site_dir,
        "charset_normalizer-3.4.0.dist-info",
        ["Metadata-Version: 2.1", "Name: charset-normalizer", "Version: 3.4.0"],
    )
    write_distribution(
        site_dir,
        "click-8.1.7.dist-info",
        ["Metadata-Version: 2.1", "Name: click", "Version: 8.1.7"],
    )

    # Package code and legacy metadata dirs are not distributions
    (site_dir / "requests").mkdir()
    (site_dir / "requests" / "__init__.py").write_text("")
    write_distribution(site_dir, "legacy.egg-info", ["Name: legacy", "Version: 1.0"], "PKG-INFO")
    write_distribution(site_dir, "empty-0.1.dist-info", [], metadata_name=None)

    return site_dir
