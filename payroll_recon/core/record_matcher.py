# payroll_recon/core/record_matcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from payroll_recon.core.feed_parser import Row

logger = logging.getLogger(__name__)

INSTALLS_ORDER_KEY = "Order Id"
WHITE_GLOVE_ORDER_KEY = "Order Number"


@dataclass(frozen=True)
class MatchedRecord:
    """An installs row joined to its white glove row."""

    install: Row
    white_glove: Row

    def combined(self) -> dict:
        return {**self.install, "matched": self.white_glove}


def _key(row: Row, field: str) -> str:
    return (row.get(field) or "").strip()


def match_records(
    installs: Sequence[Row],
    white_glove: Sequence[Row],
    *,
    installs_key: str = INSTALLS_ORDER_KEY,
    white_glove_key: str = WHITE_GLOVE_ORDER_KEY,
) -> list[MatchedRecord]:
    """
    Inner join on order id, in installs order.

    White glove rows are indexed by their key; a repeated key keeps the last row.
    Installs rows with a blank key or no counterpart are dropped without a report.
    """
    index: dict[str, Row] = {}
    for row in white_glove:
        k = _key(row, white_glove_key)
        if k:
            index[k] = row

    matched: list[MatchedRecord] = []
    for row in installs:
        k = _key(row, installs_key)
        if not k:
            continue
        wg = index.get(k)
        if wg is not None:
            matched.append(MatchedRecord(install=row, white_glove=wg))

    logger.info("Matched %s of %s install rows against %s white glove orders", len(matched), len(installs), len(index))
    return matched
