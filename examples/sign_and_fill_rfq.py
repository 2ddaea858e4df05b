"""Sign and settle RFQ orders on an in-memory ledger.

This example walks through the maker and taker sides of an RFQ trade:
- The maker signs an order (direct allowance, Permit2 signature, and a
  decaying quote)
- The taker fills it fully or partially
- The ledger shows what each side received

Prerequisites:
1. pip install pmm-rfq
2. Optionally set MAKER_PRIVATE_KEY / TAKER_PRIVATE_KEY and PMM_* settings
   in a .env file

Usage:
    python sign_and_fill_rfq.py
"""

import logging
import os
import time

from dotenv import load_dotenv

load_dotenv()


def main():
    # Import here to show what's needed
    from pmm_rfq import Order, PmmProtocol, load_config_from_env, sign_order_rfq
    from pmm_rfq.errors import PmmError
    from pmm_rfq.ledger import Erc20Token, Ledger
    from pmm_rfq.order import (
        PermitTransferFrom,
        TokenPermissions,
        format_amount,
        sign_permit2,
    )
    from pmm_rfq.order.utils import UINT256_MAX
    from pmm_rfq.settlement import FillRequest
    from eth_account import Account

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Test keys by default (DO NOT use in production)
    MAKER_PRIVATE_KEY = os.environ.get("MAKER_PRIVATE_KEY", "0x" + "ab" * 32)
    TAKER_PRIVATE_KEY = os.environ.get("TAKER_PRIVATE_KEY", "0x" + "cd" * 32)
    maker = Account.from_key(MAKER_PRIVATE_KEY).address
    taker = Account.from_key(TAKER_PRIVATE_KEY).address

    print("=" * 60)
    print("  PMM RFQ: SIGN AND FILL")
    print("=" * 60)

    now = int(time.time())
    ledger = Ledger(chain_id=42161, timestamp=now)
    protocol = PmmProtocol.deploy_on_ledger(ledger, load_config_from_env())
    chain_id = protocol.config.chain_id

    usdc = Erc20Token(ledger, "0x" + "11" * 20, name="USD Coin", symbol="USDC", decimals=6)
    arb = Erc20Token(ledger, "0x" + "22" * 20, name="Arbitrum", symbol="ARB")
    usdc.mint(maker, 10_000 * 10**6)
    arb.mint(taker, 10_000 * 10**18)
    usdc.approve(maker, protocol.address, UINT256_MAX)
    arb.approve(taker, protocol.address, UINT256_MAX)

    print(f"\n[1] Protocol deployed at {protocol.address} (chain {chain_id})")
    print(f"    Maker: {maker}")
    print(f"    Taker: {taker}")

    try:
        # Direct allowance, partial fill
        order = Order(
            rfq_id=1,
            expiry=now + 90,
            maker_asset=usdc.address,
            taker_asset=arb.address,
            maker_address=maker,
            maker_amount=1_000 * 10**6,
            taker_amount=1_250 * 10**18,
        )
        signature = sign_order_rfq(MAKER_PRIVATE_KEY, protocol.address, chain_id, order)
        flags = FillRequest(amount=1_000 * 10**18).encode()
        result = protocol.fill_order_rfq(order, signature, flags, sender=taker)

        print("\n[2] Partial fill (direct allowance):")
        print(f"    Taker paid:     {format_amount(result.taker_amount)} ARB")
        print(f"    Taker received: {format_amount(result.maker_amount, 6)} USDC")

        # Permit2 signature transfer bound to the order
        permit2 = ledger.code_at(protocol.config.permit2_address)
        usdc.approve(maker, permit2.address, UINT256_MAX)
        expiry = now + 90
        permit = PermitTransferFrom(
            permitted=TokenPermissions(usdc.address, 500 * 10**6), nonce=2, deadline=expiry
        )
        permit2_signature = sign_permit2(
            MAKER_PRIVATE_KEY, permit, protocol.address, permit2.domain_separator()
        )
        order = Order(
            rfq_id=2,
            expiry=expiry,
            maker_asset=usdc.address,
            taker_asset=arb.address,
            maker_address=maker,
            maker_amount=500 * 10**6,
            taker_amount=625 * 10**18,
            use_permit2=True,
            permit2_signature=permit2_signature,
        )
        signature = sign_order_rfq(MAKER_PRIVATE_KEY, protocol.address, chain_id, order)
        result = protocol.fill_order_rfq(order, signature, 0, sender=taker)

        print("\n[3] Full fill (Permit2 signature transfer):")
        print(f"    Taker received: {format_amount(result.maker_amount, 6)} USDC")

        # Decaying quote filled 30 seconds after decay starts
        order = Order(
            rfq_id=3,
            expiry=now + 600,
            maker_asset=usdc.address,
            taker_asset=arb.address,
            maker_address=maker,
            maker_amount=100 * 10**6,
            taker_amount=125 * 10**18,
            confidence_t=now + 60,
            confidence_weight=1_000,  # 0.1% per second
            confidence_cap=50_000,  # 5% at most
        )
        signature = sign_order_rfq(MAKER_PRIVATE_KEY, protocol.address, chain_id, order)
        ledger.warp(now + 90)
        result = protocol.fill_order_rfq(order, signature, 0, sender=taker)

        print("\n[4] Full fill of a decaying quote:")
        print(f"    Quoted:   {format_amount(order.maker_amount, 6)} USDC")
        print(f"    Received: {format_amount(result.maker_amount, 6)} USDC")

        print("\n" + "=" * 60)
        print(f"  Maker USDC: {format_amount(usdc.balance_of(maker), 6)}")
        print(f"  Maker ARB:  {format_amount(arb.balance_of(maker))}")
        print(f"  Taker USDC: {format_amount(usdc.balance_of(taker), 6)}")
        print(f"  Taker ARB:  {format_amount(arb.balance_of(taker))}")
        print("=" * 60)

    except PmmError as e:
        print(f"\nSettlement failed: {e}")
        raise


if __name__ == "__main__":
    main()
