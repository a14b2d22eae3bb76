"""Scoring module: transparency tally and endpoint plots."""

from avalanche_mc.scoring.transparency import (
    TransparencyTally,
    clopper_pearson_interval,
    last_endpoint_pass_flags,
    transparency_from_store,
)

__all__ = [
    "TransparencyTally",
    "clopper_pearson_interval",
    "last_endpoint_pass_flags",
    "transparency_from_store",
]
