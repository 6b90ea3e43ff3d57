"""CLI commands for subgroup accounts."""

from __future__ import annotations

import click

from foodcoop.infrastructure.bootstrap import Container


@click.command("balance")
@click.option("--group", "subgroup_id", required=True, help="Subgroup ID.")
@click.pass_obj
def ledger_balance(container: Container, subgroup_id: str) -> None:
    """Show the account balance of a subgroup."""
    balance = container.show_balance().handle(subgroup_id)
    click.echo(f"Subgroup {subgroup_id}: {balance}")
