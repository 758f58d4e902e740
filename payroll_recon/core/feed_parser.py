# payroll_recon/core/feed_parser.py
"""
Delimited-text feed parsing, independent of business meaning.

Every cell stays a string. Short rows are padded with "" so each row maps every
header label. Rows the csv module cannot read are reported in `errors` rather
than dropped, and the caller decides whether to abort.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Optional

from payroll_recon.core.config import settings
from payroll_recon.core.errors import InputError

logger = logging.getLogger(__name__)

Row = dict[str, str]


@dataclass
class FeedParseError:
    line: int
    message: str


@dataclass
class ParsedFeed:
    header: list[str]
    rows: list[Row] = field(default_factory=list)
    errors: list[FeedParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def decode_feed(raw: bytes, encoding: Optional[str] = None) -> str:
    enc = encoding or settings.FEED_ENCODING
    try:
        return raw.decode(enc)
    except (UnicodeDecodeError, LookupError) as e:
        raise InputError(f"Feed is not valid {enc} text: {e}") from e


def _header_labels(cells: list[str]) -> list[str]:
    labels: list[str] = []
    seen: dict[str, int] = {}
    for i, cell in enumerate(cells):
        label = cell.strip() or f"column_{i + 1}"
        # later duplicates get a suffix instead of overwriting the first column
        if label in seen:
            seen[label] += 1
            label = f"{label}_{seen[label]}"
        else:
            seen[label] = 1
        labels.append(label)
    return labels


def parse_feed(
    text: str,
    *,
    has_header: bool = True,
    delimiter: Optional[str] = None,
) -> ParsedFeed:
    """
    Parse delimited text into ordered header -> value mappings.

    Without a header row, columns are labelled column_1, column_2, ...
    Blank lines are skipped. Cells beyond the header width are discarded.
    """
    delim = delimiter or settings.FEED_DELIMITER
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delim)

    header: Optional[list[str]] = None
    result = ParsedFeed(header=[])

    while True:
        line_no = reader.line_num + 1
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            logger.warning("Feed line %s unreadable: %s", line_no, e)
            result.errors.append(FeedParseError(line=line_no, message=str(e)))
            continue

        if not cells or all(not c.strip() for c in cells):
            continue

        if header is None:
            if has_header:
                header = _header_labels(cells)
                result.header = header
                continue
            header = [f"column_{i + 1}" for i in range(len(cells))]
            result.header = header

        if len(cells) > len(header) and not has_header:
            # headerless feeds grow their label set with the widest row seen
            header.extend(f"column_{i + 1}" for i in range(len(header), len(cells)))

        padded = cells + [""] * (len(header) - len(cells))
        result.rows.append(dict(zip(header, padded)))

    logger.info(
        "Parsed feed: %s columns, %s rows, %s errors",
        len(result.header), len(result.rows), len(result.errors),
    )
    return result


def require_feed(parsed: ParsedFeed, label: str) -> list[Row]:
    """Rows of a feed that parsed cleanly and carries data; InputError otherwise."""
    if parsed.errors:
        first = parsed.errors[0]
        raise InputError(
            f"{label}: {len(parsed.errors)} unreadable line(s), first at line {first.line}: {first.message}"
        )
    if not parsed.header:
        raise InputError(f"{label}: file is empty")
    return parsed.rows


def read_feed(
    raw: bytes,
    *,
    encoding: Optional[str] = None,
    delimiter: Optional[str] = None,
    has_header: bool = True,
) -> ParsedFeed:
    """Decode an uploaded file and parse it."""
    if not raw:
        raise InputError("Feed file is empty")
    return parse_feed(decode_feed(raw, encoding), has_header=has_header, delimiter=delimiter)
