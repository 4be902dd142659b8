from __future__ import annotations

import json

import pytest

from synapse_battery.exceptions import MalformedPayloadError, NoRecordFoundError
from synapse_battery.protocol import find_last_record, parse_devices, scan_log

from conftest import device, record_line


def test_last_record_wins():
    text = (
        record_line("2025-01-01 10:00:00.000", [device("A", 50, charging=True)])
        + "[2025-01-01 10:00:01.000] [info] unrelated line\n"
        + record_line("2025-01-01 10:00:02.000", [device("A", 60)])
    )
    timestamp, devices = scan_log(text)
    assert timestamp == "2025-01-01 10:00:02.000"
    assert devices[0]["powerStatus"]["level"] == 60


@pytest.mark.parametrize("keyword", ["connectingDeviceData", "mapDevices", "SYNAPSE_DEVICES_SET"])
def test_all_record_keywords_are_recognised(keyword):
    record = find_last_record(record_line("ts", [device("A")], keyword=keyword))
    assert record is not None
    assert record.timestamp == "ts"


def test_payload_may_span_lines():
    payload = json.dumps([device("A", 42)], indent=2)
    text = f"[t1] [info] SYNAPSE_DEVICES_SET {payload}\n[t2] [info] done\n"
    timestamp, devices = scan_log(text)
    assert timestamp == "t1"
    assert devices[0]["serialNumber"] == "A"


def test_nested_arrays_and_brackets_in_strings():
    raw = device("A", 70, name={"en": "Mouse [v2]"}, features=[["dpi", 800], []])
    timestamp, devices = scan_log(record_line("t", [raw]) + "[t9] trailing ] text\n")
    assert devices[0]["features"] == [["dpi", 800], []]
    assert devices[0]["name"]["en"] == "Mouse [v2]"


def test_unterminated_tail_falls_back_to_previous_record():
    text = record_line("t1", [device("A", 10)]) + '[t2] [info] mapDevices [{"serialNumber": "A", "hasB'
    record = find_last_record(text)
    assert record is not None
    assert record.timestamp == "t1"


def test_marker_must_start_the_line():
    text = "  [t1] mapDevices [1]\nsomething [t2] mapDevices [2]\n"
    assert find_last_record(text) is None


def test_no_record_found():
    assert find_last_record("[t] [info] nothing here\n") is None
    with pytest.raises(NoRecordFoundError):
        scan_log("")


def test_malformed_payload_is_reported():
    with pytest.raises(MalformedPayloadError):
        scan_log("[t1] [info] mapDevices [{'serialNumber': 'A'}]\n")


def test_devices_object_is_normalised():
    assert parse_devices('{"devices": [{"serialNumber": "A"}]}') == [{"serialNumber": "A"}]


@pytest.mark.parametrize("payload", ['{"other": []}', '"text"', "42", "null", '{"devices": 3}'])
def test_other_shapes_yield_empty_list(payload):
    assert parse_devices(payload) == []


def test_non_object_entries_are_dropped():
    assert parse_devices('[1, "x", {"serialNumber": "A"}, null]') == [{"serialNumber": "A"}]


def test_deeply_nested_payload_is_malformed():
    deep = "[" * 5000 + "]" * 5000
    with pytest.raises(MalformedPayloadError):
        parse_devices(deep)
    with pytest.raises(MalformedPayloadError):
        scan_log(f"[t1] [info] mapDevices {deep}\n")
