# tests/test_feed_parser.py
from __future__ import annotations

import pytest

from payroll_recon.core.errors import InputError
from payroll_recon.core.feed_parser import decode_feed, parse_feed, read_feed, require_feed


def test_rows_map_header_labels_to_string_cells():
    parsed = parse_feed("Order Id,Plan Name,Payout\nX1,100M,$50\nX2,1G,\"$1,050.00\"\n")

    assert parsed.ok
    assert parsed.header == ["Order Id", "Plan Name", "Payout"]
    assert parsed.rows == [
        {"Order Id": "X1", "Plan Name": "100M", "Payout": "$50"},
        {"Order Id": "X2", "Plan Name": "1G", "Payout": "$1,050.00"},
    ]


def test_blank_lines_are_skipped_and_short_rows_padded():
    parsed = parse_feed("a,b,c\n\n1\n , , \n4,5,6\n")

    assert parsed.rows == [
        {"a": "1", "b": "", "c": ""},
        {"a": "4", "b": "5", "c": "6"},
    ]


def test_headerless_feed_uses_positional_labels():
    parsed = parse_feed("X1,100M\nX2,1G,extra\n", has_header=False)

    assert parsed.header == ["column_1", "column_2", "column_3"]
    assert parsed.rows[0] == {"column_1": "X1", "column_2": "100M"}
    assert parsed.rows[1] == {"column_1": "X2", "column_2": "1G", "column_3": "extra"}


def test_duplicate_and_blank_header_labels_stay_distinct():
    parsed = parse_feed("Notes,,Notes\n1,2,3\n")

    assert parsed.header == ["Notes", "column_2", "Notes_2"]
    assert parsed.rows == [{"Notes": "1", "column_2": "2", "Notes_2": "3"}]


def test_custom_delimiter():
    parsed = parse_feed("Order Id;Plan Name\nX1;100M\n", delimiter=";")
    assert parsed.rows == [{"Order Id": "X1", "Plan Name": "100M"}]


def test_unreadable_line_is_reported_not_dropped():
    huge = "x" * 200_000  # past the csv module field size limit
    parsed = parse_feed(f"a,b\n1,2\n{huge},3\n4,5\n")

    assert not parsed.ok
    assert len(parsed.errors) == 1
    assert parsed.errors[0].line == 3

    with pytest.raises(InputError) as exc:
        require_feed(parsed, "Installs file")
    assert "Installs file" in exc.value.message


def test_require_feed_rejects_empty_text():
    with pytest.raises(InputError):
        require_feed(parse_feed(""), "White glove file")


def test_require_feed_accepts_header_only_file():
    assert require_feed(parse_feed("Order Id,Plan Name\n"), "Installs file") == []


def test_decode_strips_bom_and_rejects_bad_bytes():
    assert decode_feed("\ufeffOrder Id\nX1\n".encode("utf-8")) == "Order Id\nX1\n"

    with pytest.raises(InputError):
        decode_feed(b"\xff\xfe\xfa", "utf-8")


def test_read_feed_from_bytes():
    parsed = read_feed("Order Id,Plan Name\r\nX1,100M\r\n".encode("utf-8"))
    assert parsed.rows == [{"Order Id": "X1", "Plan Name": "100M"}]

    with pytest.raises(InputError):
        read_feed(b"")
