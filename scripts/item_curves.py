#!/usr/bin/env python
"""
Print category probabilities, expected score, and information for one GPCM
item over a grid of ability values.
"""

from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gpcm_analysis.irt.bank import load_item_bank, select_items

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


@app.command()
def main(
    bank_path: Path = typer.Argument(..., help="Path to YAML item bank"),
    item_name: str = typer.Argument(..., help="Name of the item to plot"),
    theta_min: float = typer.Option(-4.0, "--min", help="Lowest theta"),
    theta_max: float = typer.Option(4.0, "--max", help="Highest theta"),
    n_points: int = typer.Option(
        9, "-n", "--n-points", help="Number of theta grid points"
    ),
) -> None:
    """Tabulate the response curves of one item from an item bank."""

    if n_points < 2 or theta_max <= theta_min:
        console.print("[red]Need n_points >= 2 and max > min[/red]")
        raise typer.Exit(1)

    try:
        items = load_item_bank(bank_path)
        (item,) = select_items(items, [item_name])
    except (FileNotFoundError, KeyError, ValueError) as e:
        console.print(f"[red]Error loading item bank: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            f"[bold]{item_name}[/bold]\n\n"
            f"Bank: [cyan]{bank_path}[/cyan]\n"
            f"Categories: [cyan]{item.n_categories}[/cyan]\n"
            f"Scaling constant: [cyan]{item.scaling_constant}[/cyan]\n\n"
            f"{item}",
            title="Item",
        )
    )

    theta = np.linspace(theta_min, theta_max, n_points)
    probs = item.probability_matrix(theta)
    information = item.item_information(theta)

    table = Table(title="Item curves")
    table.add_column("theta", justify="right")
    for k in range(item.n_categories):
        table.add_column(f"P({k})", justify="right")
    table.add_column("E[score]", justify="right")
    table.add_column("Info", justify="right")

    for i, t in enumerate(theta):
        table.add_row(
            f"{t:.2f}",
            *(f"{p:.4f}" for p in probs[i]),
            f"{item.expected_value(float(t)):.4f}",
            f"{information[i]:.4f}",
        )
    console.print(table)


if __name__ == "__main__":
    app()
