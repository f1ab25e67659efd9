from .common import (
    apply_exchange_rate,
    build_series,
    pick_description,
    to_decimal,
    to_millis,
)
from .exchange_rate import to_usd_rate

__all__ = [
    "apply_exchange_rate",
    "build_series",
    "pick_description",
    "to_decimal",
    "to_millis",
    "to_usd_rate",
]
