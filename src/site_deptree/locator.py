"""
Discovery of the active Python environment.

Finds the interpreter (preferring an activated virtualenv) and asks it
for its site-packages directories.
"""

import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .cli_config import get_config
from .error_handling import ErrorCategory, LocatorError, get_error_handler

SITE_PACKAGES_SCRIPT = "import site; print('\\n'.join(site.getsitepackages()))"


def _run_command_safely(command: List[str], timeout_seconds: int) -> Tuple[str, str, int]:
    """
    Run a command with a timeout.

    Returns:
        Tuple of (stdout, stderr, return_code)
    """
    if not command or not isinstance(command[0], str):
        raise LocatorError("Invalid command")

    safe_command = [str(arg) for arg in command]

    try:
        completed = subprocess.run(
            safe_command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired:
        get_error_handler().warning(
            ErrorCategory.LOCATOR,
            f"Command timed out after {timeout_seconds}s",
            "locator",
            "_run_command_safely",
            details={"command": safe_command[0]},
        )
        raise LocatorError(f"Command timed out: {safe_command[0]}")
    except OSError as e:
        get_error_handler().error(
            ErrorCategory.LOCATOR,
            f"Command execution failed: {e}",
            "locator",
            "_run_command_safely",
            exception=e,
            details={"command": safe_command[0]},
        )
        raise LocatorError(f"Command failed: {e}")

    stdout = completed.stdout.decode("utf-8", errors="replace") if completed.stdout else ""
    stderr = completed.stderr.decode("utf-8", errors="replace") if completed.stderr else ""
    return stdout, stderr, completed.returncode


def _virtualenv_interpreter() -> Optional[str]:
    venv = os.environ.get("VIRTUAL_ENV")
    if not venv:
        return None
    if sys.platform == "win32":
        return str(Path(venv) / "Scripts" / "python.exe")
    return str(Path(venv) / "bin" / "python3")


def get_python_interpreter_loc() -> str:
    """
    Locate the Python interpreter of the current environment.

    Raises:
        LocatorError: If no interpreter can be found
    """
    interpreter = _virtualenv_interpreter()
    if interpreter:
        return interpreter

    for candidate in get_config().locator.interpreter_names:
        found = shutil.which(candidate)
        if found:
            return found

    raise LocatorError(
        "No <python3> or <python> alias is set in your env. Please check your local settings"
    )


def get_site_packages_loc(interpreter: str) -> List[Path]:
    """
    Ask the interpreter for its site-packages directories.

    Returns:
        List[Path]: Existing site-packages directories, in interpreter order

    Raises:
        LocatorError: If the interpreter fails or reports no usable directory
    """
    stdout, stderr, return_code = _run_command_safely(
        [interpreter, "-c", SITE_PACKAGES_SCRIPT],
        get_config().locator.timeout_seconds,
    )
    if return_code != 0:
        raise LocatorError(
            f"Can not find python site-packages location: {stderr.strip() or return_code}"
        )

    locations = [Path(line.strip()) for line in stdout.splitlines() if line.strip()]
    existing = [location for location in locations if location.is_dir()]
    if not existing:
        raise LocatorError(f"No existing site-packages directory reported by {interpreter}")
    return existing


def get_python_dependencies_loc() -> List[Path]:
    """Return the site-packages directories to scan, honouring config overrides."""
    configured = get_config().scan.site_packages
    if configured:
        return [Path(p) for p in configured]
    return get_site_packages_loc(get_python_interpreter_loc())
