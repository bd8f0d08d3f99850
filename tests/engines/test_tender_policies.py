"""
Till Tender Engine — Method Policy Test Suite
===============================================
Tests for: cash, card, loyalty, gift card and store credit policies.

Tests verify:
- Effective contribution per method
- Card is capped at the remaining balance, cash is not
- Loyalty floor/ceiling point accounting
- Rejections are returned, never raised
"""

import pytest

from till.core.primitives.money import Money
from till.core.primitives.party import CustomerContext, LoyaltySettings


def usd(amount):
    return Money(amount=amount, currency="USD")


def make_session(total=10000, customer=None, loyalty=None):
    from till.engines.tender.services import open_session
    return open_session(usd(total), customer, loyalty)


def make_customer(points=0, balance=0):
    return CustomerContext(
        available_loyalty_points=points,
        outstanding_balance=usd(balance),
        customer_id="cust-001",
    )


def make_loyalty(point_value=1, min_redeem=0, per_dollar=1):
    return LoyaltySettings(
        points_per_dollar=per_dollar,
        point_value_in_cents=point_value,
        min_redeem_points=min_redeem,
    )


# ══════════════════════════════════════════════════════════════
# CASH
# ══════════════════════════════════════════════════════════════

class TestCashPolicy:

    def test_keeps_full_amount_when_overpaying(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import cash_policy
        session = make_session(10000)
        outcome = cash_policy(
            TenderRequest(PaymentMethod.CASH, usd(12000)), usd(10000), session,
        )
        assert outcome.is_accepted
        assert outcome.value.amount == usd(12000)

    def test_partial_cash(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import cash_policy
        session = make_session(10000)
        outcome = cash_policy(
            TenderRequest(PaymentMethod.CASH, usd(4000)), usd(10000), session,
        )
        assert outcome.value.amount == usd(4000)

    @pytest.mark.parametrize("amount", [None, 0, -100])
    def test_non_positive_rejected(self, amount):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import cash_policy
        raw = usd(amount) if amount is not None else None
        outcome = cash_policy(
            TenderRequest(PaymentMethod.CASH, raw), usd(10000), make_session(),
        )
        assert outcome.code == "INVALID_AMOUNT"


# ══════════════════════════════════════════════════════════════
# CARD
# ══════════════════════════════════════════════════════════════

class TestCardPolicy:

    @pytest.mark.parametrize("raw", [10000, 10001, 50000, 10 ** 12])
    def test_never_exceeds_remaining(self, raw):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import card_policy
        outcome = card_policy(
            TenderRequest(PaymentMethod.CARD, usd(raw)), usd(10000), make_session(),
        )
        assert outcome.value.amount == usd(10000)

    def test_below_remaining_is_kept(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import card_policy
        outcome = card_policy(
            TenderRequest(PaymentMethod.CARD, usd(2500)), usd(10000), make_session(),
        )
        assert outcome.value.amount == usd(2500)

    def test_missing_amount_defaults_to_remaining(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import card_policy
        outcome = card_policy(
            TenderRequest(PaymentMethod.CARD), usd(7300), make_session(),
        )
        assert outcome.value.amount == usd(7300)

    def test_nothing_left_to_charge(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import card_policy
        outcome = card_policy(
            TenderRequest(PaymentMethod.CARD), usd(0), make_session(),
        )
        assert outcome.code == "INVALID_AMOUNT"

    def test_reference_is_carried(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        from till.engines.tender.policies import card_policy
        outcome = card_policy(
            TenderRequest(PaymentMethod.CARD, usd(100), reference="  AUTH-778  "),
            usd(10000),
            make_session(),
        )
        assert outcome.value.reference == "AUTH-778"


# ══════════════════════════════════════════════════════════════
# LOYALTY
# ══════════════════════════════════════════════════════════════

class TestLoyaltyPolicy:

    def test_value_capped_at_remaining(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            100, make_customer(points=500), make_loyalty(point_value=1, min_redeem=100),
        )
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=150)
        assert outcome.is_accepted
        assert outcome.value.amount == usd(100)
        assert outcome.value.reference == "100 points"
        assert session.remaining_due() == usd(0)

    def test_below_minimum_redemption(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            10000, make_customer(points=500), make_loyalty(min_redeem=100),
        )
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=99)
        assert outcome.code == "BELOW_MINIMUM_REDEMPTION"
        assert session.lines == ()

    def test_requested_points_clamped_to_balance(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            10000, make_customer(points=120), make_loyalty(min_redeem=100),
        )
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=500)
        assert outcome.value.amount == usd(120)
        assert outcome.value.reference == "120 points"

    def test_clamp_can_fall_below_minimum(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            10000, make_customer(points=80), make_loyalty(min_redeem=100),
        )
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=150)
        assert outcome.code == "BELOW_MINIMUM_REDEMPTION"

    def test_points_already_used_reduce_availability(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            10000, make_customer(points=250), make_loyalty(min_redeem=100),
        )
        first = session.add_line(PaymentMethod.LOYALTY, requested_points=200)
        assert first.value.amount == usd(200)
        second = session.add_line(PaymentMethod.LOYALTY, requested_points=100)
        assert second.code == "BELOW_MINIMUM_REDEMPTION"

    def test_reference_ceil_usage_floor(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            100, make_customer(points=1000), make_loyalty(point_value=3),
        )
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=40)
        assert outcome.value.amount == usd(100)
        assert outcome.value.reference == "34 points"
        assert session.points_used_in_session() == 33

    def test_negative_request_clamped_to_zero(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(
            10000, make_customer(points=500), make_loyalty(min_redeem=10),
        )
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=-50)
        assert outcome.code == "BELOW_MINIMUM_REDEMPTION"

    def test_zero_points_without_minimum(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(points=500), make_loyalty())
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=0)
        assert outcome.code == "INVALID_AMOUNT"

    def test_requires_customer(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, None, make_loyalty())
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=100)
        assert outcome.code == "CUSTOMER_REQUIRED"

    def test_requires_program(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(points=500), None)
        outcome = session.add_line(PaymentMethod.LOYALTY, requested_points=100)
        assert outcome.code == "LOYALTY_NOT_CONFIGURED"


# ══════════════════════════════════════════════════════════════
# GIFT CARD
# ══════════════════════════════════════════════════════════════

class TestGiftCardPolicy:

    @pytest.mark.parametrize("reference", [None, "", "   "])
    def test_missing_reference(self, reference):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000)
        outcome = session.add_line(PaymentMethod.GIFT_CARD, usd(500), reference)
        assert outcome.code == "MISSING_REFERENCE"
        assert session.lines == ()
        assert session.remaining_due() == usd(10000)

    def test_reference_checked_before_amount(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000)
        outcome = session.add_line(PaymentMethod.GIFT_CARD, usd(0), "")
        assert outcome.code == "MISSING_REFERENCE"

    @pytest.mark.parametrize("amount", [None, 0, -1])
    def test_invalid_amount(self, amount):
        from till.engines.tender.commands import PaymentMethod
        raw = usd(amount) if amount is not None else None
        outcome = make_session().add_line(PaymentMethod.GIFT_CARD, raw, "GC-1001")
        assert outcome.code == "INVALID_AMOUNT"

    def test_capped_at_remaining(self):
        from till.engines.tender.commands import PaymentMethod
        outcome = make_session(10000).add_line(
            PaymentMethod.GIFT_CARD, usd(25000), "GC-1001",
        )
        assert outcome.value.amount == usd(10000)
        assert outcome.value.reference == "GC-1001"


# ══════════════════════════════════════════════════════════════
# STORE CREDIT
# ══════════════════════════════════════════════════════════════

class TestStoreCreditPolicy:

    def test_default_spends_available_credit(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(balance=-3000))
        outcome = session.add_line(PaymentMethod.STORE_CREDIT)
        assert outcome.value.amount == usd(3000)
        assert session.remaining_due() == usd(7000)

    def test_default_capped_at_remaining(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(2000, make_customer(balance=-3000))
        outcome = session.add_line(PaymentMethod.STORE_CREDIT)
        assert outcome.value.amount == usd(2000)

    def test_raw_capped_at_credit(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(balance=-3000))
        outcome = session.add_line(PaymentMethod.STORE_CREDIT, usd(5000))
        assert outcome.value.amount == usd(3000)

    def test_partial_credit(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(balance=-3000))
        outcome = session.add_line(PaymentMethod.STORE_CREDIT, usd(1000))
        assert outcome.value.amount == usd(1000)

    def test_no_credit_available(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(balance=500))
        outcome = session.add_line(PaymentMethod.STORE_CREDIT)
        assert outcome.code == "INVALID_AMOUNT"

    def test_non_positive_raw(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000, make_customer(balance=-3000))
        outcome = session.add_line(PaymentMethod.STORE_CREDIT, usd(-10))
        assert outcome.code == "INVALID_AMOUNT"

    def test_requires_customer(self):
        from till.engines.tender.commands import PaymentMethod
        outcome = make_session(10000).add_line(PaymentMethod.STORE_CREDIT, usd(100))
        assert outcome.code == "CUSTOMER_REQUIRED"


# ══════════════════════════════════════════════════════════════
# DISPATCH
# ══════════════════════════════════════════════════════════════

class TestPolicyDispatch:

    def test_every_method_has_a_policy(self):
        from till.engines.tender.commands import PaymentMethod
        from till.engines.tender.policies import METHOD_POLICIES
        assert set(METHOD_POLICIES) == set(PaymentMethod)

    def test_currency_mismatch_rejected(self):
        from till.engines.tender.commands import PaymentMethod
        session = make_session(10000)
        outcome = session.add_line(
            PaymentMethod.CASH, Money(amount=5000, currency="EUR"),
        )
        assert outcome.code == "INVALID_AMOUNT"
        assert outcome.reason.policy_name == "currency_guard"

    def test_method_names_accepted(self):
        session = make_session(10000)
        assert session.add_line("cash", usd(100)).is_accepted
        assert session.add_line("Gift_Card", usd(100), "GC-9").is_accepted

    def test_unknown_method(self):
        session = make_session(10000)
        outcome = session.add_line("cheque", usd(100))
        assert outcome.code == "UNKNOWN_METHOD"
        assert session.lines == ()

    def test_request_type_errors(self):
        from till.engines.tender.commands import PaymentMethod, TenderRequest
        with pytest.raises(TypeError, match="Money.parse"):
            TenderRequest(PaymentMethod.CASH, 60.0)
        with pytest.raises(TypeError, match="requested_points"):
            TenderRequest(PaymentMethod.LOYALTY, requested_points="100")
        with pytest.raises(ValueError, match="PaymentMethod"):
            TenderRequest("CASH")
