"""Shared fixtures: an in-memory ledger with the protocol and two tokens deployed."""

import pytest
from eth_account import Account

from pmm_rfq.ledger import Erc20Token, Ledger
from pmm_rfq.order import Order, sign_order_rfq
from pmm_rfq.order.utils import UINT256_MAX
from pmm_rfq.settlement import PmmProtocol

# Test wallets (DO NOT use in production)
MAKER_KEY = "0x" + "ab" * 32
TAKER_KEY = "0x" + "cd" * 32
MAKER = Account.from_key(MAKER_KEY)
TAKER = Account.from_key(TAKER_KEY)

CHAIN_ID = 42161
NOW = 1_700_000_000

MAKER_TOKEN_ADDRESS = "0x" + "11" * 20
TAKER_TOKEN_ADDRESS = "0x" + "22" * 20

INITIAL_BALANCE = 1_000 * 10**18


@pytest.fixture
def ledger():
    return Ledger(chain_id=CHAIN_ID, timestamp=NOW)


@pytest.fixture
def protocol(ledger):
    return PmmProtocol.deploy_on_ledger(ledger)


@pytest.fixture
def weth(ledger, protocol):
    return ledger.code_at(protocol.config.weth_address)


@pytest.fixture
def permit2(ledger, protocol):
    return ledger.code_at(protocol.config.permit2_address)


@pytest.fixture
def maker_token(ledger, protocol):
    token = Erc20Token(ledger, MAKER_TOKEN_ADDRESS, name="Maker Token", symbol="MKR")
    token.mint(MAKER.address, INITIAL_BALANCE)
    token.approve(MAKER.address, protocol.address, UINT256_MAX)
    return token


@pytest.fixture
def taker_token(ledger, protocol):
    token = Erc20Token(ledger, TAKER_TOKEN_ADDRESS, name="Taker Token", symbol="TKR")
    token.mint(TAKER.address, INITIAL_BALANCE)
    token.approve(TAKER.address, protocol.address, UINT256_MAX)
    return token


@pytest.fixture
def make_order(maker_token, taker_token):
    """Factory for a 100 MKR -> 50 TKR order signed by MAKER."""

    def _make(**overrides):
        fields = {
            "rfq_id": 1,
            "expiry": NOW + 90,
            "maker_asset": maker_token.address,
            "taker_asset": taker_token.address,
            "maker_address": MAKER.address,
            "maker_amount": 100 * 10**18,
            "taker_amount": 50 * 10**18,
        }
        fields.update(overrides)
        return Order(**fields)

    return _make


@pytest.fixture
def sign(protocol):
    """Sign an order for the deployed protocol."""

    def _sign(order, private_key=MAKER_KEY):
        return sign_order_rfq(private_key, protocol.address, CHAIN_ID, order)

    return _sign
