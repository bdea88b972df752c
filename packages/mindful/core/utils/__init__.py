"""Shared utilities for mindful."""

from mindful.core.utils.json import read_json, write_json
from mindful.core.utils.math import clamp, round_half_up, snap_to_step
from mindful.core.utils.time import iso_timestamp, local_date, parse_timestamp

__all__ = [
    "clamp",
    "iso_timestamp",
    "local_date",
    "parse_timestamp",
    "read_json",
    "round_half_up",
    "snap_to_step",
    "write_json",
]
