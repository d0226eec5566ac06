import logging
import sys

import click
from rich.console import Console

from .cli_config import load_config
from .dag import get_dep_dag_from_env
from .error_handling import LocatorError, setup_error_handling
from .locator import get_python_dependencies_loc
from .reporting import TreeRenderer
from .structured_logging import configure_logging

error_console = Console(stderr=True)


@click.command(add_help_option=False)
def cli():
    """
    Print the dependency tree of the active Python environment.

    Takes no arguments. Settings are read from .site-deptree.{json,yaml,toml}
    and SITE_DEPTREE_* environment variables.
    """
    try:
        config = load_config()
        setup_error_handling(
            log_level=getattr(logging, config.logging.log_level.upper(), logging.WARNING)
        )
        configure_logging(
            config.logging.log_level,
            enable_json=config.logging.enable_json,
            log_format=config.logging.log_format,
        )

        env_paths = get_python_dependencies_loc()
        dag = get_dep_dag_from_env(*env_paths)

        for line in TreeRenderer(dag).render_all():
            click.echo(line)

    except KeyboardInterrupt:
        error_console.print("\n⚠️  Interrupted by user", style="yellow")
        sys.exit(130)
    except LocatorError as e:
        error_console.print(
            f"❌ Can not locate python environment: {e}", style="red", markup=False
        )
        sys.exit(1)
    except ValueError as e:
        error_console.print(
            f"❌ Problem parsing installed distributions: {e}", style="red", markup=False
        )
        sys.exit(1)


if __name__ == "__main__":
    cli()
