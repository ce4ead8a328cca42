"""shipform CLI: stage rules, quotes and validation from the terminal.

Runs the same rule functions the HTTP API serves, in-process, and starts
the API server.

Usage:
    shipform countries                         List the country table
    shipform classify Kuwait Iraq              Derive the shipment type
    shipform rules options --data '{...}'      Resolve one stage's rules
    shipform quote --service gulf_standard ... Price a shipment
    shipform validate --data '{...}'           Run complete validation
    shipform serve                             Start the HTTP API
"""

import json
import logging
import os
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from shipform import __version__
from shipform.cli.config import ShipFormConfig, load_config, load_config_or_default
from shipform.cli.output import (
    format_classification,
    format_countries,
    format_quote,
    format_rules,
    format_validation,
)
from shipform.errors import DomainError, ShipFormError, format_error
from shipform.services.country_classifier import classify, list_countries
from shipform.services.fee_schedule import PickupMethod
from shipform.services.rate_calculator import RateCalculationInput, calculate_rate
from shipform.services.shipment_validator import validate_complete, validate_draft
from shipform.services.stage_rules import resolve_stage

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="shipform",
    help="Shipment form rules, rate quotes and validation",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Configuration management")

app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)

# --- Global state ---
_config_path: str | None = None


def _get_config() -> ShipFormConfig:
    try:
        return load_config_or_default(config_path=_config_path)
    except FileNotFoundError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1) from None


def _parse_form(data: str) -> dict[str, Any]:
    """Parse a --data JSON object."""
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON: {e}", param_hint="--data") from None
    if not isinstance(parsed, dict):
        raise typer.BadParameter("Form data must be a JSON object", param_hint="--data")
    return parsed


def _domain_exit(exc: DomainError) -> typer.Exit:
    """Print a domain error with its code; the caller raises the result."""
    err_console.print(format_error(ShipFormError.from_domain(exc)), markup=False)
    return typer.Exit(1)


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to shipform.yaml config file"
    ),
):
    """shipform: staged shipment form rule engine."""
    global _config_path
    _config_path = config
    cfg = _get_config()
    logging.basicConfig(
        level=cfg.server.log_level.upper(),
        format="%(levelname)s:%(name)s:%(message)s",
    )


# --- Version ---


@app.command()
def version():
    """Show shipform version."""
    console.print(f"[bold]shipform[/bold] v{__version__}")


# --- Config commands ---


@config_app.command("show")
def config_show():
    """Display resolved configuration."""
    cfg = load_config(config_path=_config_path)
    if cfg is None:
        console.print("[yellow]No config file found; showing defaults.[/yellow]")
        console.print("Searched: ./shipform.yaml, ~/.shipform/config.yaml")
        cfg = load_config_or_default()

    console.print("[bold]Server:[/bold]")
    console.print(f"  host: {cfg.server.host}")
    console.print(f"  port: {cfg.server.port}")
    console.print(f"  log_level: {cfg.server.log_level}")
    console.print(f"  reload: {cfg.server.reload}")

    console.print("\n[bold]Database:[/bold]")
    url = cfg.database.resolved_url() or os.environ.get("DATABASE_URL") or "(default)"
    console.print(f"  url: {url}", markup=False)


# --- Rule commands ---


@app.command()
def countries(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List the supported countries."""
    typer.echo(format_countries(list_countries(), as_json=json_output))


@app.command("classify")
def classify_cmd(
    sender: str = typer.Argument(help="Sender country name"),
    receiver: str = typer.Argument(help="Receiver country name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Derive the shipment type for a sender/receiver pair."""
    shipment_type = classify(sender, receiver)
    typer.echo(
        format_classification(sender, receiver, shipment_type.value, as_json=json_output)
    )


@app.command()
def rules(
    stage: str = typer.Argument(help="sender, receiver, package, service or options"),
    data: str = typer.Option("{}", "--data", "-d", help="Form data as a JSON object"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Resolve the field rules for one form stage."""
    form = _parse_form(data)
    try:
        rule_set = resolve_stage(stage, form)
    except DomainError as e:
        raise _domain_exit(e) from None
    typer.echo(format_rules(rule_set, as_json=json_output))


@app.command()
def quote(
    service: str = typer.Option(..., "--service", "-s", help="Service id"),
    weight: float = typer.Option(..., "--weight", "-w", help="Weight in kg"),
    sender_country: str = typer.Option(..., "--from", help="Sender country"),
    receiver_country: str = typer.Option(..., "--to", help="Receiver country"),
    pickup: PickupMethod = typer.Option(
        PickupMethod.HOME, "--pickup", help="home or postal_office"
    ),
    signature: bool = typer.Option(False, "--signature", help="Signature on delivery"),
    liquid: bool = typer.Option(False, "--liquid", help="Contains liquid"),
    insurance: bool = typer.Option(False, "--insurance", help="Add insurance"),
    packaging: bool = typer.Option(False, "--packaging", help="Special packaging"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Price a shipment with the fee schedule."""
    rate_input = RateCalculationInput(
        service_id=service,
        weight=weight,
        sender_country=sender_country,
        receiver_country=receiver_country,
        pickup_method=pickup,
        signature_required=signature,
        contains_liquid=liquid,
        insurance=insurance,
        packaging=packaging,
    )
    try:
        result = calculate_rate(rate_input)
    except DomainError as e:
        raise _domain_exit(e) from None
    _log.debug("Quoted %s at %.2f", service, result.total_price)
    typer.echo(format_quote(result, as_json=json_output))


@app.command()
def validate(
    data: str = typer.Option(..., "--data", "-d", help="Form data as a JSON object"),
    draft: bool = typer.Option(False, "--draft", help="Draft-mode checks only"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Validate form data. Exits 1 when there are errors."""
    form = _parse_form(data)
    result = validate_draft(form) if draft else validate_complete(form)
    typer.echo(format_validation(result, as_json=json_output))
    if not result.is_valid:
        raise typer.Exit(1)


# --- Server ---


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: Optional[bool] = typer.Option(None, "--reload/--no-reload", help="Auto-reload"),
):
    """Start the HTTP API with uvicorn."""
    import uvicorn

    cfg = _get_config()
    database_url = cfg.database.resolved_url()
    if database_url:
        # Read by shipform.db.connection at import time.
        os.environ["DATABASE_URL"] = database_url

    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port
    console.print(f"Starting shipform API on http://{bind_host}:{bind_port}")
    uvicorn.run(
        "shipform.api.main:app",
        host=bind_host,
        port=bind_port,
        log_level=cfg.server.log_level,
        reload=cfg.server.reload if reload is None else reload,
    )


if __name__ == "__main__":
    app()
