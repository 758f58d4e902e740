# tests/test_record_matcher.py
from __future__ import annotations

from payroll_recon.core.record_matcher import match_records


def installs(*order_ids):
    return [{"Order Id": oid, "Plan Name": "100M"} for oid in order_ids]


def test_inner_join_keeps_installs_order():
    wg = [{"Order Number": "B", "Agent Seller Information": "b"}, {"Order Number": "A", "Agent Seller Information": "a"}]

    matched = match_records(installs("A", "B"), wg)

    assert [m.install["Order Id"] for m in matched] == ["A", "B"]
    assert [m.white_glove["Agent Seller Information"] for m in matched] == ["a", "b"]


def test_blank_and_unknown_keys_are_dropped():
    wg = [{"Order Number": "A"}, {"Order Number": ""}]

    matched = match_records(installs("A", "", "  ", "Z"), wg)

    assert [m.install["Order Id"] for m in matched] == ["A"]


def test_repeated_white_glove_key_keeps_last_row():
    wg = [
        {"Order Number": "A", "Internet Speed": "100M"},
        {"Order Number": "A", "Internet Speed": "1G"},
    ]

    matched = match_records(installs("A"), wg)

    assert len(matched) == 1
    assert matched[0].white_glove["Internet Speed"] == "1G"


def test_keys_are_compared_trimmed():
    matched = match_records([{"Order Id": " A "}], [{"Order Number": "A"}])
    assert len(matched) == 1


def test_combined_nests_the_white_glove_row():
    matched = match_records(installs("A"), [{"Order Number": "A", "Internet Speed": "1G"}])
    combined = matched[0].combined()

    assert combined["Order Id"] == "A"
    assert combined["matched"]["Internet Speed"] == "1G"
