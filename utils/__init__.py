"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, parse_iso, from_timestamp
from utils.user_context import (
    peek_current_user_id,
    set_current_user_id,
    clear_current_user_id,
)
from utils.money import (
    parse_amount,
    quantize,
    compute_total,
    format_amount,
    from_minor_units,
    amounts_equal,
)
