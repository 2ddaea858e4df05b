"""Per-maker replay bitmap.

Each maker owns a sparse array of 256-bit words. An order id maps to
``slot = id64 >> 8`` and ``bit = id64 & 0xff`` where ``id64`` is the low
64 bits of ``rfq_id``. A bit goes from 0 to 1 on the first fill or on
cancellation and never goes back.
"""

from typing import Tuple

from ..errors import AlreadyInvalidated
from ..order.utils import UINT64_MASK
from .interfaces import BitmapStore


class InvalidatorBitmap:
    def __init__(self, store: BitmapStore):
        self.store = store

    @staticmethod
    def locate(rfq_id: int) -> Tuple[int, int]:
        """Return ``(slot, mask)`` for an order id."""
        id64 = rfq_id & UINT64_MASK
        return id64 >> 8, 1 << (id64 & 0xFF)

    def invalidate(self, maker: str, rfq_id: int) -> None:
        """Mark ``(maker, rfq_id)`` used.

        Raises:
            AlreadyInvalidated: If the bit is already set
        """
        slot, mask = self.locate(rfq_id)
        word = self.store.load_word(maker, slot)
        if word & mask:
            raise AlreadyInvalidated(rfq_id, maker=maker)
        self.store.store_word(maker, slot, word | mask)

    def is_used(self, maker: str, rfq_id: int) -> bool:
        slot, mask = self.locate(rfq_id)
        return bool(self.store.load_word(maker, slot) & mask)

    def word(self, maker: str, slot: int) -> int:
        return self.store.load_word(maker, slot)
