"""Builders turning raw form input into document data."""

from .base_data import build_base_data, parse_vehicle_details, coerce_amount, coerce_deadline_days
from .fallback import compose_fallback, placeholder

__all__ = [
    "build_base_data",
    "parse_vehicle_details",
    "coerce_amount",
    "coerce_deadline_days",
    "compose_fallback",
    "placeholder",
]
