from pathlib import Path

import click

from foodcoop.infrastructure.bootstrap import Container
from foodcoop.infrastructure.cli.ledger_commands import ledger_balance
from foodcoop.infrastructure.cli.order_commands import (
    order_close,
    order_confirm_units,
    order_create,
    order_finish,
    order_invoice,
    order_profit,
    order_request,
    order_show,
    order_sum,
    order_update,
)
from foodcoop.infrastructure.config import ConfigError, load_config
from foodcoop.infrastructure.logging_setup import configure_logging


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="YAML configuration file.",
)
@click.option("--verbose", is_flag=True, default=False, help="Log at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Foodcoop — group purchasing orders"""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ConfigError) as exc:
        raise click.ClickException(str(exc))
    configure_logging("DEBUG" if verbose else config.log_level.value)
    ctx.obj = Container(config)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def ledger() -> None:
    """Inspect subgroup accounts."""


# Register subcommands
order.add_command(order_close)
order.add_command(order_confirm_units)
order.add_command(order_create)
order.add_command(order_finish)
order.add_command(order_invoice)
order.add_command(order_profit)
order.add_command(order_request)
order.add_command(order_show)
order.add_command(order_sum)
order.add_command(order_update)
ledger.add_command(ledger_balance)
