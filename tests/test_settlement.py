"""Tests for the settlement components in isolation."""

import pytest
from eth_account import Account

from pmm_rfq.errors import (
    AlreadyInvalidated,
    BadSignature,
    ConfidenceCapExceeded,
    MakerAmountExceeded,
    ReentrantCall,
    SettlementTooSmall,
    TakerAmountExceeded,
    ZeroAmount,
)
from pmm_rfq.ledger import Ledger, LedgerSmartAccountValidator, SmartWallet
from pmm_rfq.order import Order, compact_signature
from pmm_rfq.order.ecdsa import pack_compact
from pmm_rfq.order.utils import ZERO_ADDRESS
from pmm_rfq.settlement import (
    AMOUNT_MASK,
    AllowanceRoute,
    DirectRoute,
    FillRequest,
    InvalidatorBitmap,
    IS_VALID_SIGNATURE_65_BYTES,
    MAKER_AMOUNT_FLAG,
    ReentrancyGuard,
    SIGNER_SMART_CONTRACT_HINT,
    SignatureRoute,
    SignatureVerifier,
    UNWRAP_WETH_FLAG,
    WitnessSignatureRoute,
    apply_confidence_decay,
    check_confidence_cap,
    check_settlement_ratio,
    compute_fill_amounts,
    confidence_cut,
    is_decay_enabled,
    select_maker_route,
)

# Test wallet (DO NOT use in production)
TEST_PRIVATE_KEY = "0x" + "ab" * 32
TEST_ACCOUNT = Account.from_key(TEST_PRIVATE_KEY)
TEST_ADDRESS = TEST_ACCOUNT.address

DIGEST = b"\x42" * 32
E18 = 10**18


def make_order(**overrides) -> Order:
    fields = {
        "rfq_id": 1,
        "expiry": 2_000_000_000,
        "maker_asset": "0x" + "11" * 20,
        "taker_asset": "0x" + "22" * 20,
        "maker_address": TEST_ADDRESS,
        "maker_amount": 100 * E18,
        "taker_amount": 50 * E18,
    }
    fields.update(overrides)
    return Order(**fields)


def sign_digest(private_key: str = TEST_PRIVATE_KEY, digest: bytes = DIGEST) -> bytes:
    signed = Account.unsafe_sign_hash(digest, private_key)
    return signed.r.to_bytes(32, "big") + signed.s.to_bytes(32, "big") + bytes([signed.v])


class StaticValidator:
    """SmartAccountValidator with a fixed answer that records its calls."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.calls = []

    def is_valid_signature(self, account, digest, signature):
        self.calls.append((account, digest, signature))
        return self.answer


class TestFillRequest:
    """Tests for flags_and_amount packing."""

    def test_decode_flags(self):
        """Test that each flag decodes to its field."""
        request = FillRequest.decode(
            MAKER_AMOUNT_FLAG
            | SIGNER_SMART_CONTRACT_HINT
            | IS_VALID_SIGNATURE_65_BYTES
            | UNWRAP_WETH_FLAG
            | 12345
        )
        assert request == FillRequest(
            amount=12345,
            maker_denominated=True,
            smart_account_hint=True,
            require_65_bytes=True,
            unwrap=True,
        )

    def test_zero_is_full_fill(self):
        """Test that zero decodes to an unflagged full fill."""
        assert FillRequest.decode(0) == FillRequest()

    def test_encode(self):
        """Test encoding sets the flag bits above the amount."""
        assert FillRequest(amount=7, unwrap=True).encode() == UNWRAP_WETH_FLAG | 7

    def test_encode_amount_too_wide(self):
        """Test that an amount overlapping the flag bits is refused."""
        with pytest.raises(ValueError, match="Invalid amount"):
            FillRequest(amount=AMOUNT_MASK + 1).encode()


class TestFillAmounts:
    """Tests for fill amount derivation."""

    def test_full_fill(self):
        """Test that a zero amount fills the whole quote."""
        assert compute_fill_amounts(make_order(), FillRequest()) == (100 * E18, 50 * E18)

    def test_maker_denominated_rounds_taker_up(self):
        """Test that the derived taker amount rounds up."""
        order = make_order(maker_amount=10, taker_amount=3)
        request = FillRequest(amount=7, maker_denominated=True)
        # 7 * 3 / 10 = 2.1
        assert compute_fill_amounts(order, request) == (7, 3)

    def test_taker_denominated_rounds_maker_down(self):
        """Test that the derived maker amount rounds down."""
        order = make_order(maker_amount=10, taker_amount=3)
        # 2 * 10 / 3 = 6.67
        assert compute_fill_amounts(order, FillRequest(amount=2)) == (6, 2)

    def test_maker_amount_exceeded(self):
        """Test a maker-denominated amount above the quote."""
        with pytest.raises(MakerAmountExceeded):
            compute_fill_amounts(
                make_order(), FillRequest(amount=100 * E18 + 1, maker_denominated=True)
            )

    def test_taker_amount_exceeded(self):
        """Test a taker-denominated amount above the quote."""
        with pytest.raises(TakerAmountExceeded):
            compute_fill_amounts(make_order(), FillRequest(amount=50 * E18 + 1))

    def test_zero_derived_amount(self):
        """Test that a fill rounding to zero on one side is rejected."""
        order = make_order(maker_amount=1, taker_amount=10)
        with pytest.raises(ZeroAmount):
            compute_fill_amounts(order, FillRequest(amount=5))

    def test_zero_quote(self):
        """Test that a full fill of an empty quote is rejected."""
        with pytest.raises(ZeroAmount):
            compute_fill_amounts(make_order(maker_amount=0), FillRequest())


class TestSettlementRatio:
    """Tests for the minimum settlement ratio."""

    def test_exactly_sixty_percent(self):
        """Test that exactly 60% of both sides passes."""
        check_settlement_ratio(make_order(), 60 * E18, 30 * E18)

    def test_below_sixty_percent(self):
        """Test that one side below 60% fails."""
        with pytest.raises(SettlementTooSmall):
            check_settlement_ratio(make_order(), 60 * E18, 30 * E18 - 1)

    def test_custom_ratio(self):
        """Test a configured ratio."""
        check_settlement_ratio(make_order(), 10 * E18, 5 * E18, min_ratio_pct=10)
        with pytest.raises(SettlementTooSmall):
            check_settlement_ratio(make_order(), 10 * E18, 5 * E18, min_ratio_pct=11)


class TestConfidence:
    """Tests for confidence decay."""

    def decaying_order(self, **overrides):
        fields = {"confidence_t": 1000, "confidence_weight": 1000, "confidence_cap": 500_000}
        fields.update(overrides)
        return make_order(**fields)

    def test_documented_example(self):
        """Test the 0.1%/s example: 50 seconds in, 5% off."""
        order = self.decaying_order()
        assert confidence_cut(order, 1050) == 50_000
        assert apply_confidence_decay(order, 100 * E18, 1050) == 95 * E18

    def test_no_decay_until_start(self):
        """Test that nothing decays at or before confidence_t."""
        order = self.decaying_order()
        assert apply_confidence_decay(order, 100 * E18, 1000) == 100 * E18
        assert apply_confidence_decay(order, 100 * E18, 10) == 100 * E18

    def test_saturates_at_cap(self):
        """Test that the cut never exceeds the cap."""
        order = self.decaying_order(confidence_cap=100_000)
        assert confidence_cut(order, 1_000_000) == 100_000
        assert apply_confidence_decay(order, 100 * E18, 1_000_000) == 90 * E18

    def test_monotone(self):
        """Test that the decayed amount never increases over time."""
        order = self.decaying_order(confidence_weight=7)
        amounts = [apply_confidence_decay(order, 123_456_789, t) for t in range(900, 200_000, 997)]
        assert amounts == sorted(amounts, reverse=True)

    @pytest.mark.parametrize("field", ["confidence_t", "confidence_weight", "confidence_cap"])
    def test_disabled_by_any_zero(self, field):
        """Test that any zero parameter disables decay."""
        order = self.decaying_order(**{field: 0})
        assert is_decay_enabled(order) is False
        assert apply_confidence_decay(order, 100 * E18, 10**9) == 100 * E18

    def test_cap_ceiling(self):
        """Test the cap ceiling check."""
        check_confidence_cap(self.decaying_order(confidence_cap=500_000))
        with pytest.raises(ConfidenceCapExceeded):
            check_confidence_cap(self.decaying_order(confidence_cap=500_001))

    def test_cap_ceiling_gated(self):
        """Test that the ceiling applies only when time and weight are set."""
        check_confidence_cap(self.decaying_order(confidence_t=0, confidence_cap=10**6))
        check_confidence_cap(self.decaying_order(confidence_weight=0, confidence_cap=10**6))

    def test_custom_ceiling(self):
        """Test a configured ceiling."""
        with pytest.raises(ConfidenceCapExceeded):
            check_confidence_cap(self.decaying_order(confidence_cap=100_001), max_cap=100_000)


class TestInvalidatorBitmap:
    """Tests for the per-maker replay bitmap."""

    @pytest.fixture
    def bitmap(self):
        return InvalidatorBitmap(Ledger().bitmap("protocol"))

    def test_locate(self):
        """Test slot and bit derivation."""
        assert InvalidatorBitmap.locate(7) == (0, 1 << 7)
        assert InvalidatorBitmap.locate(256) == (1, 1)
        assert InvalidatorBitmap.locate(300) == (1, 1 << 44)
        assert InvalidatorBitmap.locate((1 << 64) + 5) == (0, 1 << 5)

    def test_invalidate_once(self, bitmap):
        """Test that a bit can be set exactly once."""
        bitmap.invalidate(TEST_ADDRESS, 7)
        assert bitmap.is_used(TEST_ADDRESS, 7)
        assert bitmap.word(TEST_ADDRESS, 0) == 1 << 7
        with pytest.raises(AlreadyInvalidated):
            bitmap.invalidate(TEST_ADDRESS, 7)

    def test_makers_are_independent(self, bitmap):
        """Test that makers do not share bits."""
        bitmap.invalidate(TEST_ADDRESS, 7)
        assert not bitmap.is_used(ZERO_ADDRESS, 7)
        bitmap.invalidate(ZERO_ADDRESS, 7)

    def test_neighbouring_bits(self, bitmap):
        """Test that setting one bit leaves the rest of the word alone."""
        bitmap.invalidate(TEST_ADDRESS, 1)
        bitmap.invalidate(TEST_ADDRESS, 255)
        assert bitmap.word(TEST_ADDRESS, 0) == (1 << 255) | (1 << 1)
        assert not bitmap.is_used(TEST_ADDRESS, 2)


class TestSignatureVerifier:
    """Tests for maker signature verification."""

    def test_eoa_signature(self):
        """Test plain-key recovery."""
        validator = StaticValidator(False)
        SignatureVerifier(validator).verify(1, TEST_ADDRESS, DIGEST, sign_digest())
        assert validator.calls == []

    def test_wrong_signer_without_contract(self):
        """Test that a wrong key is rejected when ERC-1271 also says no."""
        verifier = SignatureVerifier(StaticValidator(False))
        with pytest.raises(BadSignature):
            verifier.verify(1, TEST_ADDRESS, DIGEST, sign_digest("0x" + "cd" * 32))

    def test_falls_back_to_erc1271(self):
        """Test the ERC-1271 fallback for any signature length."""
        validator = StaticValidator(True)
        SignatureVerifier(validator).verify(1, TEST_ADDRESS, DIGEST, b"\x01" * 130)
        assert validator.calls == [(TEST_ADDRESS, DIGEST, b"\x01" * 130)]

    def test_zero_signer(self):
        """Test that a zero-address signer is always rejected."""
        verifier = SignatureVerifier(StaticValidator(True))
        with pytest.raises(BadSignature):
            verifier.verify(1, ZERO_ADDRESS, DIGEST, b"\x00" * 65)

    def test_compact(self):
        """Test plain-key recovery from (r, vs)."""
        r, vs = compact_signature(sign_digest())
        SignatureVerifier(StaticValidator(False)).verify_compact(1, TEST_ADDRESS, DIGEST, r, vs)

    def test_compact_hint_64_bytes(self):
        """Test that the hint passes r||vs to ERC-1271."""
        r, vs = compact_signature(sign_digest())
        validator = StaticValidator(True)
        SignatureVerifier(validator).verify_compact(
            1, TEST_ADDRESS, DIGEST, r, vs, smart_account_hint=True
        )
        assert validator.calls[0][2] == pack_compact(r, vs)

    def test_compact_hint_65_bytes(self):
        """Test that the 65-byte flag passes r||s||v to ERC-1271."""
        signature = sign_digest()
        r, vs = compact_signature(signature)
        validator = StaticValidator(True)
        SignatureVerifier(validator).verify_compact(
            1, TEST_ADDRESS, DIGEST, r, vs, smart_account_hint=True, require_65_bytes=True
        )
        assert validator.calls[0][2] == signature

    def test_compact_hint_rejected(self):
        """Test that the hint does not fall back to recovery."""
        r, vs = compact_signature(sign_digest())
        verifier = SignatureVerifier(StaticValidator(False))
        with pytest.raises(BadSignature):
            verifier.verify_compact(1, TEST_ADDRESS, DIGEST, r, vs, smart_account_hint=True)

    def test_smart_wallet_on_ledger(self):
        """Test ERC-1271 through a wallet deployed on the ledger."""
        ledger = Ledger()
        wallet = SmartWallet(ledger, "0x" + "44" * 20, owner=TEST_ADDRESS)
        verifier = SignatureVerifier(LedgerSmartAccountValidator(ledger))

        verifier.verify(1, wallet.address, DIGEST, sign_digest())
        with pytest.raises(BadSignature):
            verifier.verify(1, wallet.address, DIGEST, sign_digest("0x" + "cd" * 32))


class TestMakerRoute:
    """Tests for maker route selection."""

    def test_direct(self):
        """Test that orders without Permit2 use the direct route."""
        assert select_maker_route(make_order(permit2_signature=b"\x01")) == DirectRoute()

    def test_allowance(self):
        """Test that Permit2 without a signature uses the standing allowance."""
        assert select_maker_route(make_order(use_permit2=True)) == AllowanceRoute()

    def test_signature(self):
        """Test that a Permit2 signature without a witness type is a plain signature transfer."""
        order = make_order(use_permit2=True, permit2_signature=b"\x01" * 65)
        assert select_maker_route(order) == SignatureRoute(b"\x01" * 65)

    def test_witness(self):
        """Test that a witness type selects the witness transfer."""
        order = make_order(
            use_permit2=True,
            permit2_signature=b"\x01" * 65,
            permit2_witness=b"\x02" * 32,
            permit2_witness_type="W witness)",
        )
        assert select_maker_route(order) == WitnessSignatureRoute(
            b"\x01" * 65, b"\x02" * 32, "W witness)"
        )


class TestReentrancyGuard:
    """Tests for the call-exclusion guard."""

    def test_nested_enter(self):
        """Test that a nested enter raises and the guard is released afterwards."""
        guard = ReentrancyGuard()
        with guard.enter():
            assert guard.entered
            with pytest.raises(ReentrantCall):
                with guard.enter():
                    pass
        assert not guard.entered

    def test_released_on_error(self):
        """Test that an exception inside the guard releases it."""
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard.enter():
                raise RuntimeError("boom")
        assert not guard.entered


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
