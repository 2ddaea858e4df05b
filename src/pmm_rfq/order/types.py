"""RFQ order types.

User-facing types for order signing and settlement.
"""

from dataclasses import dataclass
from typing import Any, Dict

from eth_utils import is_address, to_bytes, to_checksum_address

from .utils import UINT256_MAX


@dataclass(frozen=True)
class Order:
    """An RFQ order quoted and signed by a maker.

    The order is immutable: any field change produces a different order hash
    and invalidates the maker signature.
    """

    rfq_id: int
    """Order id. The low 64 bits key the replay bitmap; all bits are signed."""

    expiry: int
    """Unix timestamp (seconds) after which the order can no longer be filled."""

    maker_asset: str
    """Asset the maker pays."""

    taker_asset: str
    """Asset the taker pays."""

    maker_address: str
    """Signer of the order and source of the maker leg (EOA or smart account)."""

    maker_amount: int
    """Quoted full-size maker amount, raw token units."""

    taker_amount: int
    """Quoted full-size taker amount, raw token units."""

    use_permit2: bool = False
    """Move the maker leg through Permit2 instead of a direct allowance."""

    confidence_t: int = 0
    """Timestamp after which the maker amount starts to decay."""

    confidence_weight: int = 0
    """Decay per elapsed second, in parts per million."""

    confidence_cap: int = 0
    """Maximum decay, in parts per million."""

    permit2_signature: bytes = b""
    """Inline Permit2 signature. Empty means use the standing Permit2 allowance."""

    permit2_witness: bytes = bytes(32)
    """Witness hash bound into the Permit2 signature."""

    permit2_witness_type: str = ""
    """Witness type string. Empty means the Permit2 signature has no witness."""

    def __post_init__(self):
        for name in ("maker_asset", "taker_asset", "maker_address"):
            value = getattr(self, name)
            if not is_address(value):
                raise ValueError(f"Invalid {name}: {value}")
            object.__setattr__(self, name, to_checksum_address(value))

        for name in (
            "rfq_id",
            "expiry",
            "maker_amount",
            "taker_amount",
            "confidence_t",
            "confidence_weight",
            "confidence_cap",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Invalid {name}: {value!r}. Must be an integer")
            if value < 0 or value > UINT256_MAX:
                raise ValueError(f"Invalid {name}: {value}. Must fit in uint256")

        if len(self.permit2_witness) != 32:
            raise ValueError(
                f"Invalid permit2_witness length: {len(self.permit2_witness)}. Must be 32 bytes"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """Build an order from the camelCase JSON shape used by maker tooling.

        Numeric fields may be ints or decimal strings; byte fields may be
        ``0x`` hex strings.
        """
        return cls(
            rfq_id=int(data["rfqId"]),
            expiry=int(data["expiry"]),
            maker_asset=data["makerAsset"],
            taker_asset=data["takerAsset"],
            maker_address=data["makerAddress"],
            maker_amount=int(data["makerAmount"]),
            taker_amount=int(data["takerAmount"]),
            use_permit2=bool(data.get("usePermit2", False)),
            confidence_t=int(data.get("confidenceT", 0)),
            confidence_weight=int(data.get("confidenceWeight", 0)),
            confidence_cap=int(data.get("confidenceCap", 0)),
            permit2_signature=_as_bytes(data.get("permit2Signature", b"")),
            permit2_witness=_as_bytes(data.get("permit2Witness", bytes(32))),
            permit2_witness_type=data.get("permit2WitnessType", ""),
        )

    def to_message(self) -> Dict[str, Any]:
        """Return the EIP-712 message for this order."""
        return {
            "rfqId": self.rfq_id,
            "expiry": self.expiry,
            "makerAsset": self.maker_asset,
            "takerAsset": self.taker_asset,
            "makerAddress": self.maker_address,
            "makerAmount": self.maker_amount,
            "takerAmount": self.taker_amount,
            "usePermit2": self.use_permit2,
            "confidenceT": self.confidence_t,
            "confidenceWeight": self.confidence_weight,
            "confidenceCap": self.confidence_cap,
            "permit2Signature": self.permit2_signature,
            "permit2Witness": self.permit2_witness,
            "permit2WitnessType": self.permit2_witness_type,
        }


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


# EIP-712 types for RFQ orders
ORDER_RFQ_TYPES = {
    "OrderRFQ": [
        {"name": "rfqId", "type": "uint256"},
        {"name": "expiry", "type": "uint256"},
        {"name": "makerAsset", "type": "address"},
        {"name": "takerAsset", "type": "address"},
        {"name": "makerAddress", "type": "address"},
        {"name": "makerAmount", "type": "uint256"},
        {"name": "takerAmount", "type": "uint256"},
        {"name": "usePermit2", "type": "bool"},
        {"name": "confidenceT", "type": "uint256"},
        {"name": "confidenceWeight", "type": "uint256"},
        {"name": "confidenceCap", "type": "uint256"},
        {"name": "permit2Signature", "type": "bytes"},
        {"name": "permit2Witness", "type": "bytes32"},
        {"name": "permit2WitnessType", "type": "string"},
    ],
}
