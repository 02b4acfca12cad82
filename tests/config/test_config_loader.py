"""
Tests for billing configuration loading and the config -> kernel bridges.

Covers:
- Loader (parse_configuration and section parsers) -- YAML dict parsing
- End-to-end (get_active_config) -- shipped defaults and a custom file
- Bridges -- metering, lookback and acting identity reaching the kernel
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone

import pytest
import yaml

from billing_config import get_active_config
from billing_config.bridges import (
    build_ledger_store,
    build_metering,
    build_overage_engine,
    logging_level,
    lookback_years,
)
from billing_config.loader import (
    KNOWN_RESOURCES,
    compute_checksum,
    parse_active_balance,
    parse_configuration,
    parse_logging,
    parse_metering,
)
from billing_config.schema import BillingConfiguration, MeteringDef
from billing_kernel.domain.account import AccountRecord
from billing_kernel.domain.catalog import PackageDefinitionLimit, ResourceKind
from billing_kernel.services.ledger_store import LedgerStore
from billing_kernel.services.overage_engine import DEFAULT_METERING, LineKind
from tests.fakes import (
    InMemoryAccounts,
    InMemoryCatalog,
    InMemoryLedger,
    InMemoryUsage,
    eur,
    make_definition,
    make_entry,
    make_package,
    usd,
)


def _minimal(**overrides):
    data = {"config_id": "test", "version": 3}
    data.update(overrides)
    return data


def _metering(labels=None, order=None):
    """A complete metering list with selected labels overridden."""
    labels = labels or {}
    kinds = order or list(ResourceKind)
    return [
        {"resource": kind.value, "label": labels.get(kind.value, kind.label)}
        for kind in kinds
    ]


# =========================================================================
# 1. Loader -- section parsing
# =========================================================================


class TestParseMetering:
    def test_known_resources_match_resource_kinds(self):
        assert KNOWN_RESOURCES == {kind.value for kind in ResourceKind}

    def test_order_preserved(self):
        order = list(reversed(ResourceKind))
        parsed = parse_metering(_metering({"user-account-count": "Users"}, order))
        assert [m.resource for m in parsed] == [kind.value for kind in order]
        assert parsed[0] == MeteringDef("user-account-count", "Users")

    def test_empty_list_allowed(self):
        assert parse_metering([]) == ()

    def test_partial_list_rejected(self):
        with pytest.raises(ValueError, match="missing resources") as exc_info:
            parse_metering([{"resource": "web-server-count", "label": "Servers"}])
        assert "mailbox-count" in str(exc_info.value)
        assert "web-server-count" not in str(exc_info.value)

    def test_unknown_resource(self):
        with pytest.raises(ValueError, match="Unknown metered resource"):
            parse_metering([{"resource": "disk-quota", "label": "Disk"}])

    def test_duplicate_resource(self):
        item = {"resource": "mailbox-count", "label": "Mailboxes"}
        with pytest.raises(ValueError, match="twice"):
            parse_metering([item, item])

    def test_missing_label(self):
        with pytest.raises(KeyError):
            parse_metering([{"resource": "mailbox-count"}])


class TestParseSections:
    def test_lookback_default(self):
        assert parse_active_balance({}).lookback_years == 1

    @pytest.mark.parametrize("years", [0, -1, "2", True, 1.5])
    def test_lookback_rejected(self, years):
        with pytest.raises(ValueError):
            parse_active_balance({"lookback_years": years})

    def test_logging_level_normalized(self):
        assert parse_logging({"level": "debug"}).level == "DEBUG"

    def test_logging_level_unknown(self):
        with pytest.raises(ValueError):
            parse_logging({"level": "chatty"})


class TestParseConfiguration:
    def test_minimal_uses_defaults(self):
        config = parse_configuration(_minimal())
        assert config.config_id == "test"
        assert config.version == 3
        assert config.metering == ()
        assert config.engine.acting_identity == "billing"
        assert config.database.url == "sqlite:///:memory:"
        assert config.logging.level == "INFO"

    @pytest.mark.parametrize("missing", ["config_id", "version"])
    def test_required_keys(self, missing):
        data = _minimal()
        del data[missing]
        with pytest.raises(KeyError):
            parse_configuration(data)

    def test_configuration_is_frozen(self):
        config = parse_configuration(_minimal())
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.version = 4

    def test_checksum_deterministic(self):
        first = parse_configuration(_minimal(engine={"acting_identity": "cron"}))
        second = parse_configuration(_minimal(engine={"acting_identity": "cron"}))
        assert first.checksum == second.checksum == compute_checksum(
            _minimal(engine={"acting_identity": "cron"})
        )

    def test_checksum_tracks_content(self):
        assert compute_checksum(_minimal()) != compute_checksum(_minimal(version=4))

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


# =========================================================================
# 2. End-to-end -- get_active_config
# =========================================================================


class TestGetActiveConfig:
    def test_shipped_defaults(self):
        config = get_active_config()
        assert config.config_id == "billing-default"
        assert config.version == 1
        assert config.active_balance.lookback_years == 1
        assert [m.resource for m in config.metering] == [kind.value for kind in ResourceKind]
        assert config.metering[0].label == "HTTP Servers"
        assert len(config.checksum) == 64

    def test_trace_logged(self, captured_logs):
        config = get_active_config()
        trace = next(r for r in captured_logs() if r["message"] == "BILLING_CONFIG_TRACE")
        assert trace["logger"] == "billing_kernel.config"
        assert trace["trace_type"] == "BILLING_CONFIG_TRACE"
        assert trace["config_id"] == "billing-default"
        assert trace["checksum"] == config.checksum
        assert trace["metered_resource_count"] == 7

    def test_custom_file(self, tmp_path):
        path = tmp_path / "billing.yaml"
        path.write_text(
            yaml.safe_dump(
                _minimal(
                    active_balance={"lookback_years": 2},
                    metering=_metering({"web-site-count": "Sites"}),
                    engine={"acting_identity": "cron"},
                )
            )
        )
        config = get_active_config(path)
        assert config.config_id == "test"
        assert config.active_balance.lookback_years == 2
        assert config.engine.acting_identity == "cron"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_empty_file_missing_keys(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(KeyError):
            get_active_config(path)


# =========================================================================
# 3. Bridges -- configuration reaching the kernel
# =========================================================================


class TestBridges:
    @pytest.fixture
    def config(self) -> BillingConfiguration:
        return parse_configuration(
            _minimal(
                active_balance={"lookback_years": 3},
                metering=_metering({"web-site-count": "Sites"}),
                engine={"acting_identity": "cron"},
                logging={"level": "warning"},
            )
        )

    def test_metering(self, config):
        metering = build_metering(config)
        assert [m.resource for m in metering] == list(ResourceKind)
        sites = next(m for m in metering if m.resource is ResourceKind.WEB_SITE_COUNT)
        assert sites.label == "Sites"

    def test_empty_metering_falls_back_to_catalog(self):
        assert build_metering(parse_configuration(_minimal())) == DEFAULT_METERING

    def test_scalars(self, config):
        assert lookback_years(config) == 3
        assert logging_level(config) == logging.WARNING

    def test_overage_engine(self, config, deterministic_clock):
        catalog = InMemoryCatalog(
            definitions=[make_definition(1)],
            limits=[
                PackageDefinitionLimit(
                    1, ResourceKind.WEB_SITE_COUNT, 1, 10, usd("2.00"), "extra-site"
                )
            ],
            packages=[make_package("acme-web", "acme", 1)],
        )
        usage = InMemoryUsage({("acme-web", ResourceKind.WEB_SITE_COUNT): 3})
        engine = build_overage_engine(
            config, catalog, InMemoryAccounts(AccountRecord("acme")), usage, deterministic_clock
        )

        lines = engine.billing_lines()

        overage = next(line for line in lines if line.kind is LineKind.OVERAGE)
        assert overage.description == "Additional Sites (1 included with package, have 3)"
        assert all(line.created_by == "cron" for line in lines)

    def test_ledger_store_lookback(self, config, deterministic_clock):
        canceled = datetime(2020, 1, 1, tzinfo=timezone.utc)
        touched = datetime(2018, 6, 1, tzinfo=timezone.utc)
        ledger = InMemoryLedger(
            [
                make_entry(1, eur("5.00"), time=touched),
                make_entry(2, eur("-5.00"), time=touched),
            ]
        )
        accounts = InMemoryAccounts(AccountRecord("acme", canceled_at=canceled))

        configured = build_ledger_store(config, ledger, accounts, clock=deterministic_clock)
        default = LedgerStore(ledger, accounts, clock=deterministic_clock)

        assert "EUR" in configured.active_balance("acme")
        assert "EUR" not in default.active_balance("acme")
