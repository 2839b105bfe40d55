"""Configuration for selecting and locating the subscription store."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional
import os


class StoreKind(str, Enum):
    """Supported subscription store backends."""

    MEMORY = "memory"
    JSON = "json"
    POSTGRES = "postgres"


@dataclass(frozen=True)
class EntitlementConfig:
    """Settings used to build the process-wide entitlement engine."""

    store_kind: StoreKind
    store_path: str
    table_name: str
    database_url: Optional[str]
    create_schema: bool


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_store_kind(value: Optional[str]) -> StoreKind:
    raw = (value or StoreKind.JSON.value).strip().lower() or StoreKind.JSON.value
    try:
        return StoreKind(raw)
    except ValueError as exc:
        raise ValueError(f"Unsupported SUBSCRIPTION_STORE value {value!r}") from exc


def load_entitlement_config(env: Optional[Mapping[str, str]] = None) -> EntitlementConfig:
    """Load :class:`EntitlementConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    store_kind = _to_store_kind(env_mapping.get("SUBSCRIPTION_STORE"))
    store_path = env_mapping.get("SUBSCRIPTION_STORE_PATH") or "data/subscriptions.json"
    table_name = env_mapping.get("SUBSCRIPTION_TABLE") or "entitlement_subscriptions"
    database_url = env_mapping.get("DATABASE_URL") or None
    create_schema = _to_bool(env_mapping.get("SUBSCRIPTION_CREATE_SCHEMA"), default=False)

    if store_kind == StoreKind.POSTGRES and not database_url:
        raise ValueError("DATABASE_URL is required when SUBSCRIPTION_STORE=postgres")

    return EntitlementConfig(
        store_kind=store_kind,
        store_path=store_path,
        table_name=table_name,
        database_url=database_url,
        create_schema=create_schema,
    )
