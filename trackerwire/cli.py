"""Command-line interface for trackerwire.

Developer tooling for checking status mappings and replaying webhook
deliveries without running an adapter.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from trackerwire.config.backend_config import parse_platform
from trackerwire.status.mapper import StatusMapper, as_canonical
from trackerwire.utils.console import (
    print_error,
    print_info,
    print_plain,
    print_success,
    print_warning,
    show_version,
)
from trackerwire.utils.errors import ConfigValidationError, ExitCode, TrackerWireError
from trackerwire.utils.logging import setup_logging
from trackerwire.webhooks.normalizers import create_normalizer
from trackerwire.webhooks.verifier import WebhookVerifier

app = typer.Typer(
    name="trackerwire",
    help="Inspect status normalization and webhook handling for tracker backends.",
    add_completion=False,
    no_args_is_help=True,
)
status_app = typer.Typer(help="Status normalization commands.", no_args_is_help=True)
webhook_app = typer.Typer(help="Webhook verification and parsing commands.", no_args_is_help=True)
app.add_typer(status_app, name="status")
app.add_typer(webhook_app, name="webhook")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        show_version()
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version information",
        ),
    ] = None,
) -> None:
    """trackerwire - one request/response model for project-management backends."""
    setup_logging()


def _load_mappings(path: Path) -> dict[str, Any]:
    """Read a status mapping file (YAML or JSON)."""
    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Cannot parse status mapping file {path}: {e}") from e
    if not isinstance(loaded, dict):
        raise ConfigValidationError(
            f"Status mapping file {path} must contain a mapping, got {type(loaded).__name__}"
        )
    return loaded


def _parse_headers(raw_headers: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


@status_app.command("normalize")
def normalize_status(
    token: Annotated[str, typer.Argument(help="Backend status token, e.g. 'In Review'")],
    mapping: Annotated[
        Path | None,
        typer.Option(
            "--mapping",
            "-m",
            exists=True,
            dir_okay=False,
            readable=True,
            help="YAML or JSON file with custom status mappings",
        ),
    ] = None,
    context: Annotated[
        str | None,
        typer.Option("--context", "-c", help="Project or board key selecting scoped mappings"),
    ] = None,
    adapter: Annotated[
        str,
        typer.Option("--adapter", "-a", help="Backend the token comes from"),
    ] = "jira",
) -> None:
    """Print the canonical status for TOKEN."""
    try:
        mapper = StatusMapper(adapter, _load_mappings(mapping) if mapping else None)
        result = mapper.normalize(token, context=context)
    except TrackerWireError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e

    canonical = as_canonical(result)
    if canonical is None:
        print_warning(f"'{token}' has no canonical status, fallback token: {result}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    print_plain(canonical.value)


@webhook_app.command("verify")
def verify_webhook(
    body_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="Raw request body"),
    ],
    signature: Annotated[
        str,
        typer.Option("--signature", "-s", help="X-Hub-Signature-256 header value"),
    ],
    secret: Annotated[
        str,
        typer.Option(
            "--secret",
            envvar="TRACKERWIRE_WEBHOOK_SECRET",
            help="Shared webhook secret",
        ),
    ],
) -> None:
    """Check a webhook signature against the exact bytes of BODY_FILE."""
    verifier = WebhookVerifier(secret)
    if not verifier.verify(body_file.read_bytes(), signature):
        print_error("Signature does not match")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    print_success("Signature is valid")


@webhook_app.command("parse")
def parse_webhook(
    platform: Annotated[str, typer.Argument(help="Backend that sent the webhook, e.g. 'jira'")],
    body_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="Raw request body"),
    ],
    header: Annotated[
        list[str] | None,
        typer.Option("--header", "-H", help="Request header as 'Name: value' (repeatable)"),
    ] = None,
    include_raw: Annotated[
        bool,
        typer.Option("--raw", help="Include the raw payload in the output"),
    ] = False,
) -> None:
    """Normalize a webhook payload and print the event as JSON."""
    try:
        resolved = parse_platform(platform, context="webhook parse")
    except TrackerWireError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e

    normalizer = create_normalizer(resolved)
    if normalizer is None:
        print_error(f"{resolved.value} does not send webhooks")
        raise typer.Exit(ExitCode.CONFIGURATION_ERROR)

    event = normalizer.parse(body_file.read_bytes(), _parse_headers(header or []))
    if event is None:
        print_warning("Payload did not produce an event")
        print_info("Check the event header and the payload's event discriminator")
        return
    typer.echo(json.dumps(event.to_dict(include_raw=include_raw), indent=2, default=str))


if __name__ == "__main__":
    app()
