"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from foodcoop.application.attach_invoice import AttachInvoiceHandler
from foodcoop.application.confirm_units import ConfirmUnitsHandler
from foodcoop.application.create_order import CreateOrderHandler
from foodcoop.application.order_lifecycle import OrderLifecycle
from foodcoop.application.place_request import PlaceRequestHandler
from foodcoop.application.show_balance import ShowBalanceHandler
from foodcoop.application.show_order import ShowOrderHandler
from foodcoop.application.update_order import UpdateOrderHandler
from foodcoop.domain.service.result_allocator import policy_named
from foodcoop.infrastructure.config import AppConfig
from foodcoop.infrastructure.notifications import OutboxNotificationDispatcher
from foodcoop.infrastructure.persistence.json_price_catalog import JsonPriceCatalog
from foodcoop.infrastructure.persistence.json_unit_of_work import JsonUnitOfWork
from foodcoop.infrastructure.schedule import WeeklySchedule


class Container:
    """Builds handlers for one configuration."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        data_dir = config.data_dir
        self.uow = JsonUnitOfWork(data_dir)
        self.prices = JsonPriceCatalog(data_dir / "articles.json")
        self.notifier = OutboxNotificationDispatcher(data_dir / "notifications.json")
        self.schedule = (
            WeeklySchedule(config.order_schedule) if config.order_schedule else None
        )

    def lifecycle(self) -> OrderLifecycle:
        return OrderLifecycle(
            self.uow,
            self.prices,
            self.notifier,
            self.uow.stats,
            markup=self.config.price_markup,
            policy=policy_named(self.config.allocation_policy.value),
        )

    def create_order(self) -> CreateOrderHandler:
        return CreateOrderHandler(
            self.uow,
            self.prices,
            self.schedule,
            stock_order_name=self.config.stock_order_name,
        )

    def update_order(self) -> UpdateOrderHandler:
        return UpdateOrderHandler(self.uow, self.prices)

    def place_request(self) -> PlaceRequestHandler:
        return PlaceRequestHandler(self.uow)

    def confirm_units(self) -> ConfirmUnitsHandler:
        return ConfirmUnitsHandler(self.uow)

    def attach_invoice(self) -> AttachInvoiceHandler:
        return AttachInvoiceHandler(self.uow)

    def show_order(self) -> ShowOrderHandler:
        return ShowOrderHandler(self.uow)

    def show_balance(self) -> ShowBalanceHandler:
        return ShowBalanceHandler(self.uow)
