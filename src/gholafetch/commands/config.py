"""Config commands -- view and write the client configuration file.

Provides the ``gholafetch config`` sub-command group.  The file holds a
:class:`~gholafetch.models.ClientConfig`; environment variables still
override it at load time.
"""

from __future__ import annotations

from typing import Optional

import typer

from gholafetch.exceptions import GholaError
from gholafetch.output import get_output


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration (file plus environment overrides).

    Example::

        gholafetch config show
        gholafetch --json config show
    """
    from gholafetch.config import config_path, load_config

    output = get_output()
    try:
        config = load_config()
    except GholaError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    output.info(f"Config file: {config_path()}")
    output.format_response(config.model_dump(mode="json"))


@config_app.command("init")
def config_init(
    base_url: str = typer.Option("", "--base-url", "-b", help="Default base URL."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0, help="Default timeout in seconds."
    ),
    cache: str = typer.Option("none", "--cache", help="Cache backend: none, memory or disk."),
    max_capacity: Optional[int] = typer.Option(
        None, "--max-capacity", min=1, help="Maximum cached responses."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a new configuration file.

    Raises:
        typer.Exit: With code 2 if the file exists and ``--force`` was not
            given, or the values fail validation.

    Example::

        gholafetch config init --base-url https://api.example.com --cache memory
    """
    from pydantic import ValidationError

    from gholafetch.config import config_path, save_config
    from gholafetch.exit_codes import EXIT_INVALID_USAGE
    from gholafetch.models import ClientConfig

    output = get_output()
    path = config_path()
    if path.exists() and not force:
        output.error(f"{path} already exists (use --force to overwrite)")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    try:
        config = ClientConfig.model_validate(
            {
                "base_url": base_url,
                "timeout": timeout,
                "cache": {"backend": cache.lower(), "max_capacity": max_capacity},
            }
        )
    except ValidationError as exc:
        output.error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    written = save_config(config, path)
    output.info(f"Wrote {written}")
