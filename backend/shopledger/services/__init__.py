# Overview: Per-application service container; every consumer receives its dependencies explicitly.

from __future__ import annotations

import os
from dataclasses import dataclass

from flask import Flask, current_app

from shopledger.time_utils import shop_zone
from .category_registry import CategoryRegistry
from .inventory_service import InventoryStore
from .ledger_service import LedgerStore
from .quick_entry import QuickEntryController
from .session_service import AppSession, AuthChannel, LocalFlagStore

EXTENSION_KEY = "shopledger"


@dataclass
class ShopServices:
    session: AppSession
    auth_channel: AuthChannel
    categories: CategoryRegistry
    ledger: LedgerStore
    inventory: InventoryStore
    quick_entry: QuickEntryController

    def close(self) -> None:
        """Stop following remote session notifications."""
        self.session.detach()

    def reset_views(self) -> None:
        """Drop in-memory views so the next read reloads from the backend."""
        self.categories._items = None
        self.ledger._items = None


def build_services(app: Flask) -> ShopServices:
    logger = app.logger
    flags_path = app.config["LOCAL_FLAGS_FILE"]
    if not os.path.isabs(flags_path):
        flags_path = os.path.join(app.instance_path, flags_path)

    session = AppSession(LocalFlagStore(flags_path), logger)
    channel = AuthChannel()
    session.start(channel)

    ledger = LedgerStore(session, logger, zone=shop_zone(app.config["SHOP_TIMEZONE"]))
    services = ShopServices(
        session=session,
        auth_channel=channel,
        categories=CategoryRegistry(logger),
        ledger=ledger,
        inventory=InventoryStore(ledger, logger),
        quick_entry=QuickEntryController(
            ledger, logger, banner_seconds=app.config["STATUS_BANNER_SECONDS"]
        ),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> ShopServices:
    return current_app.extensions[EXTENSION_KEY]
