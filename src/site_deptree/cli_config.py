"""
Configuration management for site-deptree.

Settings come from defaults, an optional JSON/YAML/TOML config file and
SITE_DEPTREE_* environment variables, in increasing order of precedence.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
import yaml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class ScanConfig:
    """Where and how installed distributions are read."""

    fail_fast: bool = True
    site_packages: List[str] = field(default_factory=list)
    metadata_dir_suffix: str = ".dist-info"
    metadata_file_name: str = "METADATA"
    description_sentinel: str = "Description-Content-Type"


@dataclass
class RenderConfig:
    """Tree output settings."""

    indent: int = 4
    not_installed_marker: str = "Not-installed"
    cycle_marker: str = "(cycle)"


@dataclass
class LocatorConfig:
    """Interpreter discovery settings."""

    interpreter_names: List[str] = field(default_factory=lambda: ["python3", "python"])
    timeout_seconds: int = 30


@dataclass
class LoggingConfig:
    """Logging and error handling configuration."""

    log_level: str = "WARNING"
    enable_json: bool = False
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not config.scan.metadata_dir_suffix:
        errors.append("scan.metadata_dir_suffix must not be empty")
    if not config.scan.metadata_file_name:
        errors.append("scan.metadata_file_name must not be empty")
    if not config.scan.description_sentinel:
        errors.append("scan.description_sentinel must not be empty")

    if config.render.indent <= 0:
        errors.append("render.indent must be positive")
    if not config.render.not_installed_marker:
        errors.append("render.not_installed_marker must not be empty")

    if not config.locator.interpreter_names:
        errors.append("locator.interpreter_names must not be empty")
    if config.locator.timeout_seconds <= 0:
        errors.append("locator.timeout_seconds must be positive")

    if config.logging.log_level.upper() not in LOG_LEVELS:
        errors.append(f"logging.log_level must be one of {', '.join(LOG_LEVELS)}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON, YAML or TOML file."""
    if not config_path.exists():
        return None

    suffix = config_path.suffix.lower()
    try:
        with open(config_path, encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif suffix == ".toml":
                return toml.load(f)
            elif suffix == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            f"Can not load config file: {e}",
            "cli_config",
            "load_config_file",
            exception=e,
            details={"config_path": str(config_path)},
        )
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".site-deptree.json",
        Path.cwd() / ".site-deptree.yaml",
        Path.cwd() / ".site-deptree.yml",
        Path.cwd() / ".site-deptree.toml",
        Path.home() / ".config" / "site-deptree" / "config.json",
        Path.home() / ".config" / "site-deptree" / "config.yaml",
        Path.home() / ".config" / "site-deptree" / "config.toml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Load SITE_DEPTREE_* environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_int(key: str, default: Optional[int] = None) -> Optional[int]:
        try:
            return int(os.environ[key]) if key in os.environ else default
        except ValueError:
            console.print(f"⚠️  Invalid integer value for {key}, using default", style="yellow")
            return default

    config.scan.fail_fast = get_env_bool("SITE_DEPTREE_FAIL_FAST", config.scan.fail_fast)
    if site_packages := os.environ.get("SITE_DEPTREE_SITE_PACKAGES"):
        config.scan.site_packages = [p for p in site_packages.split(os.pathsep) if p]

    if indent := get_env_int("SITE_DEPTREE_INDENT"):
        config.render.indent = indent

    if timeout := get_env_int("SITE_DEPTREE_LOCATOR_TIMEOUT"):
        config.locator.timeout_seconds = timeout

    if log_level := os.environ.get("SITE_DEPTREE_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()
    config.logging.enable_json = get_env_bool(
        "SITE_DEPTREE_LOG_JSON", config.logging.enable_json
    )


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def _restore_invalid_defaults(config: ComprehensiveConfig) -> None:
    defaults = ComprehensiveConfig()
    if config.render.indent <= 0:
        config.render.indent = defaults.render.indent
    if not config.render.not_installed_marker:
        config.render.not_installed_marker = defaults.render.not_installed_marker
    if config.locator.timeout_seconds <= 0:
        config.locator.timeout_seconds = defaults.locator.timeout_seconds
    if not config.locator.interpreter_names:
        config.locator.interpreter_names = defaults.locator.interpreter_names
    if config.logging.log_level.upper() not in LOG_LEVELS:
        config.logging.log_level = defaults.logging.log_level
    for key in ["metadata_dir_suffix", "metadata_file_name", "description_sentinel"]:
        if not getattr(config.scan, key):
            setattr(config.scan, key, getattr(defaults.scan, key))


def load_config() -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            for section_name in ["scan", "render", "locator", "logging"]:
                if section_name in file_config:
                    apply_config_section(
                        getattr(config, section_name),
                        file_config[section_name],
                        section_name,
                    )

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        _restore_invalid_defaults(config)

    _global_config = config
    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None
