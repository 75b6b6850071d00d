"""Typer application and CLI entry point for spec2postman.

Each pipeline entry point is exposed as a command:

* ``spec2postman resolve URL...`` -- show the spec URL guessed for docs URLs.
* ``spec2postman fetch URL...`` -- run the fetch-by-url pipeline and print
  the result envelope.
* ``spec2postman parse FILE`` -- run the fetch-by-text pipeline on a local
  file or ``-`` for stdin.
* ``spec2postman generate URL`` -- write a Postman-ready document to disk.
* ``spec2postman config ...`` -- view and modify the global configuration.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from spec2postman import __version__
from spec2postman.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="spec2postman",
    help="Turn OpenAPI/Swagger docs URLs into Postman-ready documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from spec2postman.commands.config import config_app  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"spec2postman {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route library log records to stderr through Rich when verbose."""
    from rich.logging import RichHandler

    from spec2postman.output import get_output

    root = logging.getLogger("spec2postman")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    if verbose:
        handler = RichHandler(
            console=get_output().stderr_console,
            show_path=False,
            markup=False,
        )
        root.addHandler(handler)
        root.setLevel(logging.DEBUG)
    else:
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Fetch timeout in seconds."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~spec2postman.output.OutputManager` and
    stores shared options in ``ctx.obj``.
    """
    from spec2postman.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["timeout"] = timeout
    ctx.obj["output_file"] = output_file


def _build_pipeline(ctx: typer.Context):  # noqa: ANN202
    """Create a :class:`~spec2postman.pipeline.SpecPipeline` from effective config."""
    from spec2postman.config import resolve_config
    from spec2postman.pipeline import SpecPipeline

    obj = ctx.obj or {}
    config = resolve_config(cli_timeout=obj.get("timeout"))
    return SpecPipeline(config), config


def _report_failure(payload: dict[str, Any]) -> None:
    from spec2postman.output import error

    err = payload["error"]
    error(f"{err['code']}: {err['message']}")


@app.command("resolve")
def resolve_command(
    urls: list[str] = typer.Argument(help="Docs URLs to resolve."),
) -> None:
    """Show the OpenAPI document URL guessed for each docs URL.

    Example::

        spec2postman resolve https://petstore3.swagger.io/api/v3/docs
    """
    from spec2postman.fetch import resolve
    from spec2postman.output import print_table

    print_table(
        ["input", "resolved"],
        [[url, resolve(url)] for url in urls],
        title="Resolved spec URLs",
    )


@app.command("fetch")
def fetch_command(
    ctx: typer.Context,
    urls: list[str] = typer.Argument(help="Docs or spec URLs to fetch."),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Rate-limit identity for these requests."
    ),
) -> None:
    """Fetch, validate, and rewrite the OpenAPI document behind each URL.

    Prints one result envelope per URL (a list when several are given).
    Exits with the category code of the last failure, if any.

    Example::

        spec2postman fetch https://petstore3.swagger.io/api/v3/docs --json
    """
    from spec2postman.config import resolve_client_identifier
    from spec2postman.exceptions import exit_code_for
    from spec2postman.output import debug, format_response

    pipeline, config = _build_pipeline(ctx)
    identifier = resolve_client_identifier(client_id, config)

    payloads = []
    exit_code = 0
    for url in urls:
        debug(f"Fetching {url} as {identifier}")
        result = pipeline.fetch_by_url(url, identifier=identifier)
        payload = result.to_payload()
        if not result.ok:
            _report_failure(payload)
            exit_code = exit_code_for(payload["error"]["code"])
        payloads.append(payload)

    format_response(payloads[0] if len(payloads) == 1 else payloads)
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("parse")
def parse_command(
    ctx: typer.Context,
    source: str = typer.Argument(help="Spec file path, or '-' for stdin."),
) -> None:
    """Parse and validate a local OpenAPI/Swagger document.

    Example::

        spec2postman parse openapi.yaml
        cat openapi.json | spec2postman parse -
    """
    from spec2postman.exceptions import exit_code_for
    from spec2postman.exit_codes import EXIT_INVALID_INPUT
    from spec2postman.output import error, format_response

    if source == "-":
        content = sys.stdin.read()
    else:
        path = Path(source)
        if not path.is_file():
            error(f"Spec file not found: {source}")
            raise typer.Exit(code=EXIT_INVALID_INPUT)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            error(f"Failed to read spec file {source}: {exc}")
            raise typer.Exit(code=EXIT_INVALID_INPUT) from None

    pipeline, _ = _build_pipeline(ctx)
    result = pipeline.fetch_by_text(content)
    payload = result.to_payload()
    format_response(payload)
    if not result.ok:
        _report_failure(payload)
        raise typer.Exit(code=exit_code_for(payload["error"]["code"]))


@app.command("generate")
def generate_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Docs or spec URL."),
    filename: str = typer.Option(
        "postman_collection", "--filename", help="File name, without .json."
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar="SPEC2POSTMAN_TOKEN",
        help="Bearer token to scaffold into the document.",
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Rate-limit identity for this request."
    ),
) -> None:
    """Write a Postman-ready document for URL to <filename>.json.

    With the global ``-o`` option the document is written there instead.

    Example::

        spec2postman generate https://petstore3.swagger.io/api/v3/docs --token "$TOKEN"
    """
    from spec2postman.config import resolve_client_identifier
    from spec2postman.exceptions import exit_code_for
    from spec2postman.output import format_response, success, suggest

    pipeline, config = _build_pipeline(ctx)
    identifier = resolve_client_identifier(client_id, config)
    result = pipeline.generate_collection(
        url, filename=filename, authorization=token, identifier=identifier
    )
    payload = result.to_payload()
    if not result.ok:
        _report_failure(payload)
        raise typer.Exit(code=exit_code_for(payload["error"]["code"]))

    obj = ctx.obj or {}
    if obj.get("output_file"):
        format_response(result.data)
        success(f"Wrote {obj['output_file']} ({payload['meta']['size']} bytes)")
    else:
        from spec2postman.output import OutputManager

        target = Path.cwd() / payload["meta"]["filename"]
        OutputManager(output_file=str(target), quiet=True).format_response(result.data)
        success(f"Wrote {target} ({payload['meta']['size']} bytes)")
    suggest("Import it in Postman via File > Import")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from spec2postman.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``spec2postman`` console script.

    :class:`~spec2postman.exceptions.Spec2PostmanError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from spec2postman.exceptions import Spec2PostmanError
        from spec2postman.output import error

        if isinstance(exc, Spec2PostmanError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
