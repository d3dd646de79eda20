#!/usr/bin/env python
"""
Link a new test form to an old one through common items.

Both forms are YAML item banks. Anchor items are matched by name; by
default every item name present in both banks is an anchor.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gpcm_analysis.irt.bank import load_item_bank, select_items
from gpcm_analysis.irt.config import LinkingConfig, QuadratureConfig
from gpcm_analysis.irt.enums import LinkingCriterion, LinkingMethod
from gpcm_analysis.irt.linking import link_forms, transform_items

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


@app.command()
def main(
    old_bank: Path = typer.Argument(..., help="YAML bank for the old form"),
    new_bank: Path = typer.Argument(..., help="YAML bank for the new form"),
    method: LinkingMethod = typer.Option(
        LinkingMethod.STOCKING_LORD, "-m", "--method", help="Linking method"
    ),
    criterion: LinkingCriterion = typer.Option(
        LinkingCriterion.SYMMETRIC,
        "-c",
        "--criterion",
        help="Criterion direction for characteristic curve methods",
    ),
    anchors: list[str] | None = typer.Option(
        None,
        "-a",
        "--anchor",
        help="Anchor item name (repeatable). Defaults to all common names.",
    ),
    n_points: int = typer.Option(
        41, "-q", "--quadrature-points", help="Number of quadrature points"
    ),
    rescale: bool = typer.Option(
        False,
        "--rescale",
        help="Print all new form items on the old form scale",
    ),
) -> None:
    """Estimate linking coefficients from anchor items."""

    try:
        old_items = load_item_bank(old_bank)
        new_items = load_item_bank(new_bank)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading item bank: {e}[/red]")
        raise typer.Exit(1) from e

    if not anchors:
        new_names = {item.name for item in new_items}
        anchors = [item.name for item in old_items if item.name in new_names]
    if not anchors:
        console.print("[red]No common items between the two forms[/red]")
        raise typer.Exit(1)

    config = LinkingConfig(
        method=method,
        criterion=criterion,
        quadrature=QuadratureConfig(n_points=n_points),
    )

    console.print(
        Panel(
            f"[bold]Link Forms[/bold]\n\n"
            f"Old form: [cyan]{old_bank}[/cyan]\n"
            f"New form: [cyan]{new_bank}[/cyan]\n"
            f"Anchors: [cyan]{len(anchors)}[/cyan]\n"
            f"Method: [cyan]{method.value}[/cyan]",
            title="Configuration",
        )
    )

    try:
        result = link_forms(
            select_items(old_items, anchors),
            select_items(new_items, anchors),
            config,
        )
    except (KeyError, ValueError) as e:
        console.print(f"[red]Linking failed: {e}[/red]")
        raise typer.Exit(1) from e

    coefficients = result.coefficients
    status = "converged" if result.converged else "[yellow]not converged"
    console.print(
        f"  intercept = {coefficients.intercept:.6f}\n"
        f"  slope     = {coefficients.slope:.6f}\n"
        f"  {status} ({result.n_iterations} iterations)"
    )

    if rescale:
        transform_items(new_items, coefficients)
        table = Table(title="New form on old scale")
        table.add_column("Item")
        table.add_column("a", justify="right")
        table.add_column("Steps", justify="right")
        for item in new_items:
            table.add_row(
                item.name,
                f"{item.discrimination:.4f}",
                ", ".join(f"{b:.4f}" for b in item.steps[1:]),
            )
        console.print(table)


if __name__ == "__main__":
    app()
