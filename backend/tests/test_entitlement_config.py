from __future__ import annotations

import pytest

from backend.app.entitlements import (
    InMemorySubscriptionStore,
    JsonFileSubscriptionStore,
    PostgresSubscriptionStore,
    StoreKind,
    load_entitlement_config,
)
from backend.app.services import subscriptions as subscriptions_service


def test_defaults_to_json_store():
    config = load_entitlement_config({})

    assert config.store_kind == StoreKind.JSON
    assert config.store_path == "data/subscriptions.json"
    assert config.table_name == "entitlement_subscriptions"
    assert config.database_url is None
    assert config.create_schema is False


def test_reads_overrides_from_environment():
    config = load_entitlement_config(
        {
            "SUBSCRIPTION_STORE": " Postgres ",
            "DATABASE_URL": "postgresql://localhost/app",
            "SUBSCRIPTION_TABLE": "subs",
            "SUBSCRIPTION_CREATE_SCHEMA": "yes",
        }
    )

    assert config.store_kind == StoreKind.POSTGRES
    assert config.database_url == "postgresql://localhost/app"
    assert config.table_name == "subs"
    assert config.create_schema is True


def test_rejects_unknown_store_kind():
    with pytest.raises(ValueError):
        load_entitlement_config({"SUBSCRIPTION_STORE": "redis"})


def test_postgres_requires_database_url():
    with pytest.raises(ValueError):
        load_entitlement_config({"SUBSCRIPTION_STORE": "postgres"})


def test_build_store_for_each_kind(tmp_path):
    memory = subscriptions_service.build_subscription_store(
        load_entitlement_config({"SUBSCRIPTION_STORE": "memory"})
    )
    json_store = subscriptions_service.build_subscription_store(
        load_entitlement_config({"SUBSCRIPTION_STORE_PATH": str(tmp_path / "subs.json")})
    )
    postgres = subscriptions_service.build_subscription_store(
        load_entitlement_config(
            {"SUBSCRIPTION_STORE": "postgres", "DATABASE_URL": "postgresql://localhost/app"}
        )
    )

    assert isinstance(memory, InMemorySubscriptionStore)
    assert isinstance(json_store, JsonFileSubscriptionStore)
    assert json_store.path == tmp_path / "subs.json"
    assert isinstance(postgres, PostgresSubscriptionStore)


def test_build_entitlement_engine_uses_config(tmp_path):
    config = load_entitlement_config({"SUBSCRIPTION_STORE_PATH": str(tmp_path / "subs.json")})
    engine = subscriptions_service.build_entitlement_engine(config)

    engine.get_subscription("user-1")

    assert (tmp_path / "subs.json").exists()
