"""Confidence decay of the maker amount.

After ``confidence_t`` the maker amount shrinks linearly by
``confidence_weight`` parts per million per second, saturating at
``confidence_cap``. The taker amount is never touched. Decay is active only
when all three parameters are non-zero.
"""

from ..errors import ConfidenceCapExceeded
from ..order.types import Order
from ..order.utils import PPM

# Largest confidence_cap accepted while decay is configured (ppm)
MAX_CONFIDENCE_CAP = 500_000


def is_decay_enabled(order: Order) -> bool:
    return order.confidence_t > 0 and order.confidence_weight > 0 and order.confidence_cap > 0


def check_confidence_cap(order: Order, max_cap: int = MAX_CONFIDENCE_CAP) -> None:
    """Reject a cap above ``max_cap`` when decay is configured.

    Only ``confidence_t`` and ``confidence_weight`` gate the check; an order
    with decay switched off may carry any cap.

    Raises:
        ConfidenceCapExceeded: If the cap is above the ceiling
    """
    if order.confidence_t > 0 and order.confidence_weight > 0 and order.confidence_cap > max_cap:
        raise ConfidenceCapExceeded(order.rfq_id, cap=order.confidence_cap, max_cap=max_cap)


def confidence_cut(order: Order, now: int) -> int:
    """Return the decay to apply at ``now``, in parts per million."""
    if not is_decay_enabled(order) or now <= order.confidence_t:
        return 0
    elapsed = now - order.confidence_t
    return min(elapsed * order.confidence_weight, order.confidence_cap)


def apply_confidence_decay(order: Order, maker_amount: int, now: int) -> int:
    """Return ``maker_amount`` reduced by the decay in force at ``now``."""
    cut = confidence_cut(order, now)
    if cut == 0:
        return maker_amount
    return maker_amount - maker_amount * cut // PPM
