"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich table output (default) and machine-parseable
JSON output (--json flag). All formatting goes through these functions
so the CLI commands stay clean.
"""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shipform.services.country_classifier import Country
from shipform.services.rate_calculator import RateQuote
from shipform.services.shipment_validator import ValidationResult
from shipform.services.stage_rules import CardRuleSet

console = Console()

# Shipment type color map
TYPE_COLORS = {
    "Domestic": "green",
    "IntraGulf": "cyan",
    "International": "magenta",
}


def _render(renderable: Any) -> str:
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def format_price(amount: float | None) -> str:
    """Format a dollar amount.

    Args:
        amount: Amount in dollars, or None.

    Returns:
        Formatted string like "$12.50" or "-" for None.
    """
    if amount is None:
        return "-"
    return f"${amount:,.2f}"


def format_countries(countries: list[Country], as_json: bool = False) -> str:
    """Format the country table as a Rich table or JSON.

    Args:
        countries: Countries in display order.
        as_json: If True, return JSON string instead of Rich table.

    Returns:
        Formatted string output.
    """
    if as_json:
        return json.dumps(
            [{"name": c.name, "code": c.code, "is_gulf": c.is_gulf} for c in countries],
            indent=2,
        )

    table = Table(title="Countries")
    table.add_column("Name", style="white")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Gulf", justify="center")
    for country in countries:
        table.add_row(country.name, country.code, "yes" if country.is_gulf else "")
    return _render(table)


def format_classification(
    sender: str, receiver: str, shipment_type: str, as_json: bool = False
) -> str:
    """Format a country-pair classification."""
    if as_json:
        return json.dumps(
            {
                "sender_country": sender,
                "receiver_country": receiver,
                "shipment_type": shipment_type,
            },
            indent=2,
        )
    color = TYPE_COLORS.get(shipment_type, "white")
    return _render(f"{sender} → {receiver}: [bold {color}]{shipment_type}[/bold {color}]")


def format_rules(rules: CardRuleSet, as_json: bool = False) -> str:
    """Format a stage's resolved field rules as a Rich table or JSON.

    Args:
        rules: Resolved rule set for one stage.
        as_json: If True, return the serialized rule set.

    Returns:
        Formatted string output.
    """
    if as_json:
        return json.dumps(rules.to_dict(), indent=2)

    state = "[green]enabled[/green]" if rules.enabled else "[dim]disabled[/dim]"
    table = Table(title=f"{rules.title} ({state})", show_lines=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Required", justify="center")
    table.add_column("Visible", justify="center")
    table.add_column("Constraints")

    for name, rule in rules.fields.items():
        v = rule.validation
        constraints = []
        if v.min is not None:
            constraints.append(f"min {v.min:g}")
        if v.max is not None:
            constraints.append(f"max {v.max:g}")
        if v.min_length is not None:
            constraints.append(f"len ≥ {v.min_length}")
        if rule.allowed_values is not None:
            constraints.append("allowed: " + ", ".join(rule.allowed_values))
        if rule.disabled:
            constraints.append("locked")
        table.add_row(
            name,
            rule.type.value,
            "yes" if rule.required else "",
            "yes" if rule.visible else "no",
            "; ".join(constraints),
        )

    parts: list[Any] = [table]
    for field_name, message in rules.validation_errors.items():
        parts.append(f"[bold red]{field_name}:[/bold red] {message}")
    return "".join(_render(p) for p in parts)


def format_quote(quote: RateQuote, as_json: bool = False) -> str:
    """Format a rate quote as a Rich panel or JSON.

    Args:
        quote: Quote from calculate_rate().
        as_json: If True, return JSON string instead of a panel.

    Returns:
        Formatted string output.
    """
    if as_json:
        return json.dumps(quote.to_dict(), indent=2)

    b = quote.breakdown
    color = TYPE_COLORS.get(quote.shipment_type.value, "white")
    lines = [
        f"[bold]Service:[/bold]    {quote.service.name} ({quote.service.id})",
        f"[bold]Type:[/bold]       [{color}]{quote.shipment_type.value}[/{color}]",
        f"[bold]Delivery:[/bold]   {quote.service.delivery_days} day(s)",
        "",
        f"[bold]Base:[/bold]       {format_price(b.base_cost)}",
        f"[bold]Signature:[/bold]  {format_price(b.signature_cost)}",
        f"[bold]Insurance:[/bold]  {format_price(b.insurance_cost)}",
        f"[bold]Packaging:[/bold]  {format_price(b.packaging_cost)}",
        f"[bold]Liquid:[/bold]     {format_price(b.liquid_cost)}",
        "",
        f"[bold green]Total:[/bold green]      {format_price(quote.total_price)}",
    ]
    return _render(Panel("\n".join(lines), title="Rate Quote", border_style="cyan"))


def format_validation(result: ValidationResult, as_json: bool = False) -> str:
    """Format a validation result as a Rich table or JSON."""
    if as_json:
        return json.dumps(result.to_dict(), indent=2)

    if result.is_valid:
        return _render("[bold green]Valid[/bold green]")

    table = Table(title=f"{len(result.errors)} validation error(s)")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Message", style="red")
    for field_name, message in sorted(result.errors.items()):
        table.add_row(field_name, message)
    return _render(table)
