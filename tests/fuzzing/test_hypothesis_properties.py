"""
Hypothesis-based properties of money arithmetic and ledger aggregates.

Boundaries fuzzed here:
- MoneyValue.multiply: half-up rounding against Decimal for any quantity
- Addition: commutative, associative, scale of the result
- Monies: totals independent of the order values arrive in
- LedgerStore: running balance after the last entry equals the total
- SearchFilter: a state filter partitions the ledger

Boundaries not fuzzed here (covered by explicit tests):
- Currency validation and scale errors (tests/unit/test_money.py)
- Overage configuration errors (tests/services/test_overage_engine.py)
"""

from decimal import ROUND_HALF_UP, Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from billing_kernel.domain.ledger_entry import ConfirmationState
from billing_kernel.domain.search import SearchFilter
from billing_kernel.domain.values import Monies, MoneyValue
from billing_kernel.services.ledger_store import LedgerStore
from tests.fakes import InMemoryLedger, make_entry

CURRENCIES = ("USD", "EUR", "JPY")

unscaled_values = st.integers(min_value=-10**12, max_value=10**12)
scales = st.integers(min_value=0, max_value=4)
quantities = st.integers(min_value=-10**6, max_value=10**6)
states = st.sampled_from(list(ConfirmationState))


@st.composite
def money(draw, currency=None):
    return MoneyValue(
        currency or draw(st.sampled_from(CURRENCIES)),
        draw(unscaled_values),
        draw(scales),
    )


@st.composite
def ledger_rows(draw):
    """(rate, quantity, state) triples in one currency."""
    return draw(
        st.lists(
            st.tuples(money("USD"), st.integers(min_value=0, max_value=5000), states),
            min_size=1,
            max_size=20,
        )
    )


class TestMultiply:
    @given(value=money(), quantity=quantities)
    def test_matches_decimal_half_up(self, value, quantity):
        exact = Decimal(value.unscaled) * quantity / 1000
        expected = exact.copy_abs().quantize(Decimal(1), rounding=ROUND_HALF_UP)
        if exact < 0:
            expected = -expected

        result = value.multiply(quantity)

        assert result.unscaled == int(expected)
        assert result.scale == value.scale
        assert result.currency == value.currency

    @given(value=money())
    def test_one_unit_is_identity(self, value):
        assert value.multiply(1000) == value


class TestAddition:
    @given(a=money("USD"), b=money("USD"))
    def test_commutative(self, a, b):
        assert a + b == b + a

    @given(a=money("USD"), b=money("USD"), c=money("USD"))
    def test_associative(self, a, b, c):
        assert (a + b) + c == a + (b + c)

    @given(a=money("EUR"), b=money("EUR"))
    def test_result_scale_and_value(self, a, b):
        total = a + b
        assert total.scale == max(a.scale, b.scale)
        assert total.value == a.value + b.value

    @given(a=money("USD"))
    def test_subtract_self_is_zero(self, a):
        assert (a - a).is_zero


class TestMonies:
    @given(values=st.lists(money(), max_size=15), data=st.data())
    def test_order_independent(self, values, data):
        shuffled = data.draw(st.permutations(values))
        assert Monies(values) == Monies(shuffled)

    @given(values=st.lists(money(), max_size=15))
    def test_one_amount_per_currency(self, values):
        totals = Monies(values)
        assert set(totals) == {v.currency for v in values}
        for currency, amount in totals.items():
            expected = sum(
                (v.value for v in values if v.currency == currency), Decimal(0)
            )
            assert amount.value == expected


class TestLedgerAggregates:
    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
    @given(rows=ledger_rows())
    def test_last_running_balance_is_total(self, rows):
        entries = [
            make_entry(i, rate, quantity=quantity, state=state)
            for i, (rate, quantity, state) in enumerate(rows, start=1)
        ]
        store = LedgerStore(InMemoryLedger(entries))

        assert store.running_balance(len(entries)) == store.total_balance("acme")

    @settings(max_examples=50)
    @given(rows=ledger_rows())
    def test_total_excludes_only_failed(self, rows):
        entries = [
            make_entry(i, rate, quantity=quantity, state=state)
            for i, (rate, quantity, state) in enumerate(rows, start=1)
        ]
        store = LedgerStore(InMemoryLedger(entries))

        expected = Monies(e.amount for e in entries if not e.is_failed)
        assert store.total_balance("acme") == expected

    @settings(max_examples=50)
    @given(rows=ledger_rows())
    def test_state_filters_partition_ledger(self, rows):
        entries = [
            make_entry(i, rate, quantity=quantity, state=state)
            for i, (rate, quantity, state) in enumerate(rows, start=1)
        ]
        store = LedgerStore(InMemoryLedger(entries))

        found = []
        for state in ConfirmationState:
            found.extend(e.entry_id for e in store.search(SearchFilter(state=state)))

        assert sorted(found) == [e.entry_id for e in entries]
