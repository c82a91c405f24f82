import pytest

from core.scan_result import INACTIVE_AGE, ScanResult
from core.tid import TidDescriptor, XtidDescriptor

from fakes import TAG_A, TAG_B

TID = TidDescriptor(xtid=True, security=False, file=False, mdid=1, tmid=0x105)
OTHER_TID = TidDescriptor(xtid=False, security=False, file=False, mdid=6, tmid=0x80A)
XTID = XtidDescriptor(False, True, True, True, 3)


def test_from_tag_id_has_no_details(clock):
    result = ScanResult.from_tag_id(TAG_A, clock)

    assert result.tag_id == TAG_A
    assert result.last_seen == clock.now()
    assert (result.tid, result.xtid_header, result.serial, result.rssi, result.antenna) == (None,) * 5


def test_merge_into_itself_is_unchanged():
    result = ScanResult(TAG_A, tid=TID, xtid_header=XTID, serial=b"\x01", rssi=-50, antenna=2, last_seen=10.0)
    expected = result.copy()

    result.merge(result.copy())

    assert result == expected


def test_merge_keeps_details_missing_from_newer_result():
    first = ScanResult(TAG_A, tid=TID, xtid_header=XTID, serial=b"\x01\x02", rssi=-50, antenna=1, last_seen=10.0)
    second = ScanResult(TAG_A, last_seen=12.0)

    first.merge(second)

    assert first.tid == TID
    assert first.xtid_header == XTID
    assert first.serial == b"\x01\x02"
    assert first.rssi == -50


def test_merge_takes_present_details_from_newer_result():
    first = ScanResult(TAG_A, tid=TID, rssi=-50, last_seen=10.0)
    second = ScanResult(TAG_A, tid=OTHER_TID, rssi=-42, serial=b"\xff", last_seen=11.0)

    first.merge(second)

    assert first.tid == OTHER_TID
    assert first.rssi == -42
    assert first.serial == b"\xff"


def test_merge_always_takes_antenna_and_last_seen():
    first = ScanResult(TAG_A, antenna=3, last_seen=10.0)
    second = ScanResult(TAG_A, antenna=None, last_seen=9.0)

    first.merge(second)

    assert first.antenna is None
    assert first.last_seen == 9.0


def test_merge_rejects_different_tag():
    with pytest.raises(AssertionError):
        ScanResult(TAG_A).merge(ScanResult(TAG_B))


def test_activity_threshold():
    result = ScanResult(TAG_A, last_seen=100.0)

    assert result.is_active(100.0 + INACTIVE_AGE - 0.001)
    assert not result.is_active(100.0 + INACTIVE_AGE)
    assert result.age(103.5) == pytest.approx(3.5)
