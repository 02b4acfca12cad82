"""
Tests for the rate catalog domain (``billing_kernel.domain.catalog``) and
billing-account resolution (``billing_kernel.domain.account``).
"""

import pytest

from billing_kernel.domain.account import AccountRecord, billing_account_of
from billing_kernel.domain.catalog import (
    UNBOUNDED,
    MonthlyCharge,
    PackageDefinition,
    PackageDefinitionLimit,
    RateCatalog,
    ResourceKind,
)
from billing_kernel.exceptions import (
    AccountNotFoundError,
    DefinitionNotFoundError,
    InvalidLimitError,
    InvalidQuantityError,
    PackageNotFoundError,
    ValidationError,
)
from tests.fakes import T0, make_definition, make_package, usd


class TestResourceKind:
    def test_billing_order(self):
        assert [kind.value for kind in ResourceKind] == [
            "web-server-count",
            "ip-address-count",
            "java-vm-count",
            "mysql-replica-count",
            "mailbox-count",
            "web-site-count",
            "user-account-count",
        ]

    def test_labels(self):
        assert ResourceKind.WEB_SERVER_COUNT.label == "HTTP Servers"
        assert ResourceKind.MAILBOX_COUNT.label == "Email Inboxes"
        assert ResourceKind.USER_ACCOUNT_COUNT.label == "Shell Accounts"


class TestPackageDefinition:
    def test_setup_fee_requires_type(self):
        with pytest.raises(ValidationError):
            PackageDefinition(
                definition_id=1,
                account_owner="root",
                category="hosting",
                name="x",
                version="1",
                display="x",
                description="",
                monthly_rate=usd("1.00"),
                monthly_rate_type="hosting",
                setup_fee=usd("5.00"),
            )

    def test_defaults(self):
        definition = make_definition()
        assert definition.active
        assert not definition.approved
        assert definition.setup_fee is None


class TestPackageDefinitionLimit:
    def test_defaults_are_unbounded(self):
        limit = PackageDefinitionLimit(1, ResourceKind.WEB_SITE_COUNT)
        assert limit.soft_limit is UNBOUNDED
        assert limit.hard_limit is UNBOUNDED
        assert limit.is_soft_unbounded

    def test_resource_coerced_from_string(self):
        limit = PackageDefinitionLimit(1, "mailbox-count", 5, 10)
        assert limit.resource is ResourceKind.MAILBOX_COUNT

    def test_unknown_resource_rejected(self):
        with pytest.raises(InvalidLimitError):
            PackageDefinitionLimit(1, "disk-space", 5, 10)

    def test_negative_limit_rejected(self):
        with pytest.raises(InvalidLimitError):
            PackageDefinitionLimit(1, ResourceKind.MAILBOX_COUNT, -1, 10)

    def test_soft_above_hard_rejected(self):
        with pytest.raises(InvalidLimitError):
            PackageDefinitionLimit(1, ResourceKind.MAILBOX_COUNT, 11, 10)

    def test_bool_limit_rejected(self):
        with pytest.raises(InvalidLimitError):
            PackageDefinitionLimit(1, ResourceKind.MAILBOX_COUNT, True, 10)

    def test_unbounded_soft_with_bounded_hard_allowed(self):
        limit = PackageDefinitionLimit(1, ResourceKind.MAILBOX_COUNT, UNBOUNDED, 10)
        assert limit.hard_limit == 10


class TestMonthlyCharge:
    def test_non_integer_quantity_rejected(self):
        with pytest.raises(InvalidQuantityError):
            MonthlyCharge(1, "acme", "acme-web", "backup", None, "1", usd("2.00"), T0, "admin")


class TestRateCatalog:
    @pytest.fixture
    def rate_catalog(self):
        return RateCatalog(
            definitions=[make_definition(1), make_definition(2, name="Dedicated")],
            limits=[
                PackageDefinitionLimit(1, ResourceKind.WEB_SITE_COUNT, 5, 10),
                PackageDefinitionLimit(1, ResourceKind.MAILBOX_COUNT, 20, 50),
            ],
            packages=[
                make_package("acme-web", definition_id=1),
                make_package("acme-mail", definition_id=1),
            ],
        )

    def test_resolve(self, rate_catalog):
        limit = rate_catalog.resolve(1, ResourceKind.MAILBOX_COUNT)
        assert limit.soft_limit == 20

    def test_resolve_missing_is_none(self, rate_catalog):
        assert rate_catalog.resolve(1, ResourceKind.JAVA_VM_COUNT) is None
        assert rate_catalog.resolve(2, ResourceKind.MAILBOX_COUNT) is None

    def test_definition_lookup(self, rate_catalog):
        assert rate_catalog.definition(2).name == "Dedicated"
        with pytest.raises(DefinitionNotFoundError):
            rate_catalog.definition(99)

    def test_package_lookup(self, rate_catalog):
        assert rate_catalog.package("acme-web").definition_id == 1
        with pytest.raises(PackageNotFoundError):
            rate_catalog.package("missing")

    def test_limits_for(self, rate_catalog):
        assert len(rate_catalog.limits_for(1)) == 2
        assert rate_catalog.limits_for(2) == ()

    def test_cannot_remove_used_definition(self, rate_catalog):
        reasons = rate_catalog.cannot_remove_reasons(1)
        assert len(reasons) == 1
        assert reasons[0].reason == "Used by 2 packages"
        assert set(reasons[0].packages) == {"acme-web", "acme-mail"}

    def test_unused_definition_removable(self, rate_catalog):
        assert rate_catalog.cannot_remove_reasons(2) == []

    def test_cannot_remove_unknown_definition(self, rate_catalog):
        with pytest.raises(DefinitionNotFoundError):
            rate_catalog.cannot_remove_reasons(99)


class TestBillingAccount:
    def _lookup(self, *records):
        by_name = {r.name: r for r in records}
        return by_name.get

    def test_self_billed(self):
        lookup = self._lookup(AccountRecord("acme"))
        assert billing_account_of("acme", lookup).name == "acme"

    def test_walks_bill_parent_chain(self):
        lookup = self._lookup(
            AccountRecord("reseller"),
            AccountRecord("client", parent="reseller", bill_parent=True),
            AccountRecord("sub", parent="client", bill_parent=True),
        )
        assert billing_account_of("sub", lookup).name == "reseller"

    def test_stops_at_account_not_billing_parent(self):
        lookup = self._lookup(
            AccountRecord("reseller"),
            AccountRecord("client", parent="reseller"),
        )
        assert billing_account_of("client", lookup).name == "client"

    def test_missing_account(self):
        with pytest.raises(AccountNotFoundError):
            billing_account_of("ghost", self._lookup())

    def test_missing_parent(self):
        lookup = self._lookup(AccountRecord("client", parent="gone", bill_parent=True))
        with pytest.raises(AccountNotFoundError) as exc_info:
            billing_account_of("client", lookup)
        assert exc_info.value.account == "gone"

    def test_cycle_rejected(self):
        lookup = self._lookup(
            AccountRecord("a", parent="b", bill_parent=True),
            AccountRecord("b", parent="a", bill_parent=True),
        )
        with pytest.raises(ValidationError):
            billing_account_of("a", lookup)

    def test_bill_parent_without_parent_rejected(self):
        with pytest.raises(ValidationError):
            AccountRecord("orphan", bill_parent=True)
