"""Application wiring for the entitlement engine."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from ..entitlements import (
    EntitlementConfig,
    EntitlementEngine,
    InMemorySubscriptionStore,
    JsonFileSubscriptionStore,
    PostgresSubscriptionStore,
    StoreKind,
    SubscriptionStore,
    load_entitlement_config,
)


logger = logging.getLogger("entitlements")


def build_subscription_store(config: EntitlementConfig) -> SubscriptionStore:
    """Instantiate the store backend selected by ``config``."""

    if config.store_kind == StoreKind.MEMORY:
        logger.warning("Using in-memory subscription store; records will not survive restarts")
        return InMemorySubscriptionStore()
    if config.store_kind == StoreKind.POSTGRES:
        store = PostgresSubscriptionStore(dsn=config.database_url, table_name=config.table_name)
        if config.create_schema:
            store.ensure_schema()
        logger.info("Using PostgreSQL subscription store table=%s", config.table_name)
        return store
    logger.info("Using JSON subscription store path=%s", config.store_path)
    return JsonFileSubscriptionStore(config.store_path)


def build_entitlement_engine(config: Optional[EntitlementConfig] = None) -> EntitlementEngine:
    resolved = config or load_entitlement_config()
    return EntitlementEngine(build_subscription_store(resolved))


@lru_cache(maxsize=1)
def get_entitlement_engine() -> EntitlementEngine:
    return build_entitlement_engine()


__all__ = ["build_entitlement_engine", "build_subscription_store", "get_entitlement_engine"]
