"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from foodcoop.application.dto import OrderDTO
from foodcoop.domain.exceptions import DomainException, OrderedArticlesWouldBeDropped
from foodcoop.domain.model.order import SumKind
from foodcoop.infrastructure.bootstrap import Container


def _parse_ids(raw: str) -> list[str]:
    """Parse '1,2,3' into ['1', '2', '3']."""
    ids = [part.strip() for part in raw.split(",") if part.strip()]
    if not ids:
        raise click.BadParameter("Expected a comma separated list of article IDs.")
    return ids


def _parse_units(raw: str) -> dict[str, int]:
    """Parse '1:6,2:12' into {article_id: units}."""
    result: dict[str, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ArticleID:Units'."
            )
        article_id, units_str = pair.rsplit(":", 1)
        try:
            units = int(units_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid units '{units_str}' for article '{article_id}'."
            )
        result[article_id.strip()] = units
    return result


def _utc(value: datetime | None) -> datetime | None:
    """CLI dates are entered in UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _fail(exc: DomainException) -> click.ClickException:
    if isinstance(exc, OrderedArticlesWouldBeDropped):
        return click.ClickException(
            f"{exc}\nRe-run with --ignore-warnings to discard those requests."
        )
    return click.ClickException(str(exc))


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  {dto.name}  (state={dto.state})")
    click.echo(f"Starts:   {dto.starts}")
    click.echo(f"Ends:     {dto.ends or '-'}")
    click.echo()
    click.echo(f"  {'Article':<24} {'Qty':>5} {'Tol':>5} {'Units':>6} {'Price':>10}")
    click.echo(f"  {'-'*54}")
    for line in dto.lines:
        click.echo(
            f"  {line.article_name:<24} {line.quantity:>5} {line.tolerance:>5} "
            f"{line.units:>6} {line.fc_price or '-':>10}"
        )
    click.echo(f"  {'-'*54}")

    if dto.subgroups:
        click.echo()
        for subgroup in dto.subgroups:
            click.echo(f"  Subgroup {subgroup.subgroup_id:<16} {subgroup.price:>12}")

    if dto.invoice_amount is not None:
        click.echo(f"Invoice:  {dto.invoice_amount}")
    if dto.foodcoop_result is not None:
        click.echo(f"Result:   {dto.foodcoop_result}")
    for comment in dto.comments:
        click.echo(f"# {comment}")


@click.command("create")
@click.option("--supplier-id", required=True, type=int, help="Supplier ID (0 = stock).")
@click.option("--supplier-name", default=None, help="Supplier name.")
@click.option("--articles", required=True, help="Article IDs as '1,2,3'.")
@click.option("--starts", type=click.DateTime(), default=None)
@click.option("--ends", type=click.DateTime(), default=None)
@click.option("--user", default=None, help="Acting user.")
@click.pass_obj
def order_create(
    container: Container,
    supplier_id: int,
    supplier_name: str | None,
    articles: str,
    starts: datetime | None,
    ends: datetime | None,
    user: str | None,
) -> None:
    """Open a new order."""
    try:
        dto = container.create_order().handle(
            supplier_id=supplier_id,
            supplier_name=supplier_name,
            article_ids=_parse_ids(articles),
            actor=user,
            starts=_utc(starts),
            ends=_utc(ends),
        )
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{dto.id} created  (state={dto.state})")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(container: Container, order_id: int) -> None:
    """Show details of an existing order."""
    try:
        dto = container.show_order().handle(order_id)
    except DomainException as exc:
        raise _fail(exc)

    _display_order(dto)


@click.command("update")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to edit.")
@click.option("--articles", default=None, help="New selection as '1,2,3'.")
@click.option("--starts", type=click.DateTime(), default=None)
@click.option("--ends", type=click.DateTime(), default=None)
@click.option("--user", default=None, help="Acting user.")
@click.option("--ignore-warnings", is_flag=True, default=False,
              help="Drop deselected articles even if members ordered them.")
@click.pass_obj
def order_update(
    container: Container,
    order_id: int,
    articles: str | None,
    starts: datetime | None,
    ends: datetime | None,
    user: str | None,
    ignore_warnings: bool,
) -> None:
    """Edit the window or article selection of an open order."""
    try:
        dto = container.update_order().handle(
            order_id,
            actor=user,
            article_ids=_parse_ids(articles) if articles else None,
            starts=_utc(starts),
            ends=_utc(ends),
            ignore_warnings=ignore_warnings,
        )
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{dto.id} updated.")


@click.command("request")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--group", "subgroup_id", required=True, help="Subgroup ID.")
@click.option("--article", "article_id", required=True, help="Article ID.")
@click.option("--quantity", required=True, type=int)
@click.option("--tolerance", default=0, type=int)
@click.option("--user", default=None, help="Acting user.")
@click.pass_obj
def order_request(
    container: Container,
    order_id: int,
    subgroup_id: str,
    article_id: str,
    quantity: int,
    tolerance: int,
    user: str | None,
) -> None:
    """Place or change a subgroup's request (0/0 withdraws it)."""
    try:
        container.place_request().handle(
            order_id, subgroup_id, article_id, quantity, tolerance, actor=user
        )
    except DomainException as exc:
        raise _fail(exc)

    click.echo(
        f"Subgroup {subgroup_id} requests {quantity} (+{tolerance}) of article {article_id}."
    )


@click.command("confirm-units")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--items", "items_str", required=True, help="Units as 'ArticleID:Units,...'.")
@click.pass_obj
def order_confirm_units(container: Container, order_id: int, items_str: str) -> None:
    """Record units the supplier (or the stock) can deliver."""
    try:
        container.confirm_units().handle(order_id, _parse_units(items_str))
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{order_id}: confirmed units recorded.")


@click.command("invoice")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--net-amount", required=True, help="Invoice net amount.")
@click.option("--number", default=None, help="Invoice number.")
@click.pass_obj
def order_invoice(
    container: Container, order_id: int, net_amount: str, number: str | None
) -> None:
    """Attach the supplier invoice."""
    try:
        container.attach_invoice().handle(order_id, net_amount, number)
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Invoice attached to order #{order_id}.")


@click.command("close")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to close.")
@click.option("--articles", default=None, help="Final selection as '1,2,3'.")
@click.option("--user", default=None, help="Acting user.")
@click.option("--ignore-warnings", is_flag=True, default=False,
              help="Drop deselected articles even if members ordered them.")
@click.pass_obj
def order_close(
    container: Container,
    order_id: int,
    articles: str | None,
    user: str | None,
    ignore_warnings: bool,
) -> None:
    """Close an open order (freezes prices, settles results)."""
    try:
        container.lifecycle().close(
            order_id,
            user,
            ignore_warnings=ignore_warnings,
            article_ids=_parse_ids(articles) if articles else None,
        )
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{order_id} closed. Prices frozen, results settled.")


@click.command("finish")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to finish.")
@click.option("--user", default=None, help="Acting user.")
@click.option("--direct", is_flag=True, default=False,
              help="Finish without charging accounts or adjusting stock.")
@click.pass_obj
def order_finish(
    container: Container, order_id: int, user: str | None, direct: bool
) -> None:
    """Finish a closed order (charges subgroup accounts)."""
    lifecycle = container.lifecycle()
    try:
        if direct:
            lifecycle.finish_direct(order_id, user)
        else:
            lifecycle.finish(order_id, user)
    except DomainException as exc:
        raise _fail(exc)

    if direct:
        click.echo(f"Order #{order_id} finished directly.")
    else:
        click.echo(f"Order #{order_id} finished. Accounts charged.")


@click.command("sum")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in SumKind]),
    default=SumKind.GROSS.value,
    show_default=True,
)
@click.pass_obj
def order_sum(container: Container, order_id: int, kind: str) -> None:
    """Show an aggregate value of the order."""
    try:
        total = container.lifecycle().sum(order_id, SumKind(kind))
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{order_id} {kind}: {total}")


@click.command("profit")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--without-markup", is_flag=True, default=False)
@click.pass_obj
def order_profit(container: Container, order_id: int, without_markup: bool) -> None:
    """Show the foodcoop result (requires an invoice)."""
    try:
        profit = container.lifecycle().profit(order_id, exclude_markup=without_markup)
    except DomainException as exc:
        raise _fail(exc)

    if profit is None:
        click.echo(f"Order #{order_id}: no invoice attached, profit unavailable.")
    else:
        click.echo(f"Order #{order_id} profit: {profit}")
