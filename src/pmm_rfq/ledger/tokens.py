"""Fake ERC-20 tokens living on a ``Ledger``.

Every mutating method takes the caller (``msg.sender``) as its first
argument. ``Erc20Token`` follows OpenZeppelin semantics: it reverts on
failure and returns ``True`` on success. ``NoReturnToken`` returns nothing
(USDT style) and ``FalseReturnToken`` returns ``False`` instead of reverting,
so the SafeERC20-style transfer service can be exercised against both
non-standard conventions.
"""

from typing import Optional

from eth_utils import to_checksum_address

from ..order.ecdsa import recover
from ..order.erc20_permit import erc20_permit_domain_separator, hash_erc20_permit
from ..order.hashing import hash_typed_data
from ..order.utils import UINT256_MAX, same_address
from .state import ExecutionReverted, Ledger


class Erc20Token:
    """OpenZeppelin-style ERC-20 with EIP-2612 permit."""

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        name: str = "Token",
        symbol: str = "TKN",
        decimals: int = 18,
    ):
        self.ledger = ledger
        self.address = to_checksum_address(address)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        ledger.deploy(self.address, self)

    # --- Views ---

    def balance_of(self, holder: str) -> int:
        return self.ledger.state.balances.get((self.address, to_checksum_address(holder)), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (self.address, to_checksum_address(owner), to_checksum_address(spender))
        return self.ledger.state.allowances.get(key, 0)

    def nonces(self, owner: str) -> int:
        return self.ledger.state.permit_nonces.get((self.address, to_checksum_address(owner)), 0)

    def domain_separator(self) -> bytes:
        return erc20_permit_domain_separator(self.name, self.address, self.ledger.chain_id)

    # --- Mutations ---

    def mint(self, to: str, amount: int) -> None:
        self._set_balance(to, self.balance_of(to) + amount)

    def burn(self, holder: str, amount: int) -> None:
        balance = self.balance_of(holder)
        if balance < amount:
            raise ExecutionReverted("ERC20: burn amount exceeds balance")
        self._set_balance(holder, balance - amount)

    def transfer(self, sender: str, to: str, amount: int) -> Optional[bool]:
        if not self._move(sender, to, amount):
            return self._fail("ERC20: transfer amount exceeds balance")
        return self._ok()

    def approve(self, owner: str, spender: str, amount: int) -> Optional[bool]:
        self._set_allowance(owner, spender, amount)
        return self._ok()

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> Optional[bool]:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            return self._fail("ERC20: insufficient allowance")
        if self.balance_of(owner) < amount:
            return self._fail("ERC20: transfer amount exceeds balance")
        if allowed != UINT256_MAX:
            self._set_allowance(owner, spender, allowed - amount)
        self._move(owner, to, amount)
        return self._ok()

    def permit(
        self,
        caller: str,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        v: int,
        r: bytes,
        s: bytes,
    ) -> None:
        """EIP-2612 ``permit``; anyone may submit the owner's signature."""
        if self.ledger.timestamp > deadline:
            raise ExecutionReverted("ERC20Permit: expired deadline")
        nonce = self.nonces(owner)
        digest = hash_typed_data(
            self.domain_separator(),
            hash_erc20_permit(owner, spender, value, nonce, deadline),
        )
        signer = recover(digest, v, int.from_bytes(r, "big"), int.from_bytes(s, "big"))
        if not same_address(signer, owner):
            raise ExecutionReverted("ERC20Permit: invalid signature")
        self.ledger.state.permit_nonces[(self.address, to_checksum_address(owner))] = nonce + 1
        self._set_allowance(owner, spender, value)

    # --- Internals ---

    def _ok(self) -> Optional[bool]:
        return True

    def _fail(self, reason: str) -> Optional[bool]:
        raise ExecutionReverted(reason)

    def _move(self, sender: str, to: str, amount: int) -> bool:
        balance = self.balance_of(sender)
        if balance < amount:
            return False
        self._set_balance(sender, balance - amount)
        self._set_balance(to, self.balance_of(to) + amount)
        return True

    def _set_balance(self, holder: str, amount: int) -> None:
        self.ledger.state.balances[(self.address, to_checksum_address(holder))] = amount

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        key = (self.address, to_checksum_address(owner), to_checksum_address(spender))
        self.ledger.state.allowances[key] = amount


class NoReturnToken(Erc20Token):
    """Reverts on failure but returns no data on success (USDT style)."""

    def _ok(self) -> Optional[bool]:
        return None


class FalseReturnToken(Erc20Token):
    """Returns ``False`` instead of reverting on failure."""

    def _fail(self, reason: str) -> Optional[bool]:
        return False


class WrappedNative(Erc20Token):
    """WETH9: native value in through ``deposit``, out through ``withdraw``."""

    def __init__(self, ledger: Ledger, address: str, name: str = "Wrapped Ether",
                 symbol: str = "WETH"):
        super().__init__(ledger, address, name=name, symbol=symbol, decimals=18)

    def deposit(self, sender: str, value: int) -> None:
        self.ledger.attach_value(sender, self.address, value)
        self.mint(sender, value)

    def withdraw(self, sender: str, amount: int) -> None:
        self.burn(sender, amount)
        self.ledger.send_native(self.address, sender, amount)

    def receive_native(self, sender: str, amount: int, gas_limit: Optional[int]) -> None:
        self.mint(sender, amount)
