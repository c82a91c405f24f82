import logging
import time

import pytest

from core.channel import EventChannel
from core.orchestrator import OrchestratorStatus, RetryPolicy, ScanOrchestrator, ScanSettings
from core.reader import MemoryBank, MultiAntennaFamily, ReaderError, SingleAntennaFamily

from fakes import (
    SERIAL,
    TAG_A,
    TAG_B,
    TID_PLAIN,
    TID_WITH_XTID,
    XTID_HEADER,
    FakeAntennaReader,
    FakeTagInventory,
)


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


@pytest.fixture
def events():
    return EventChannel()


def full_memory(tag_id, tid=TID_WITH_XTID):
    return {
        (tag_id, 0, 2): tid,
        (tag_id, 2, 1): XTID_HEADER,
        (tag_id, 2, 3): SERIAL,
    }


# --- Single antenna ---

def test_single_cycle_publishes_bulk_then_details(events, clock):
    device = FakeTagInventory([TAG_A], memory=full_memory(TAG_A))
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    assert orchestrator.run_cycle() == 0.0

    bulk, detail = events.drain()
    assert bulk.tag_id == TAG_A and bulk.tid is None
    assert detail.tag_id == TAG_A
    assert detail.tid.mdid == 0x001 and detail.tid.tmid == 0x105
    assert detail.xtid_header.serialization == 3
    assert detail.serial == SERIAL
    assert detail.last_seen == clock.now()
    assert device.reads == [
        (TAG_A, MemoryBank.TID, 0, 2),
        (TAG_A, MemoryBank.TID, 2, 1),
        (TAG_A, MemoryBank.TID, 2, 3),
    ]
    assert orchestrator.cycles == 1


def test_single_skips_xtid_header_without_xtid_flag(events, clock):
    device = FakeTagInventory([TAG_A], memory=full_memory(TAG_A, tid=TID_PLAIN))
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    orchestrator.run_cycle()

    detail = events.drain()[-1]
    assert detail.tid.xtid is False
    assert detail.xtid_header is None
    assert (TAG_A, MemoryBank.TID, 2, 1) not in device.reads


def test_single_failed_tid_read_degrades_only_that_field(events, clock, caplog):
    memory = {(TAG_A, 2, 3): SERIAL}
    device = FakeTagInventory([TAG_A, TAG_B], memory={**memory, **full_memory(TAG_B)})
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    with caplog.at_level(logging.WARNING):
        orchestrator.run_cycle()

    results = events.drain()
    assert len(results) == 4
    detail_a, detail_b = results[2], results[3]
    assert detail_a.tid is None and detail_a.xtid_header is None
    assert detail_a.serial == SERIAL
    assert detail_b.tid is not None and detail_b.serial == SERIAL
    assert "TID read failed" in caplog.text


def test_single_undecodable_tid_is_absent(events, clock, caplog):
    memory = full_memory(TAG_A, tid=bytes.fromhex("00000000"))
    device = FakeTagInventory([TAG_A], memory=memory)
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    with caplog.at_level(logging.WARNING):
        orchestrator.run_cycle()

    detail = events.drain()[-1]
    assert detail.tid is None
    assert detail.serial == SERIAL
    assert "TID decode failed" in caplog.text


def test_detailed_scan_can_be_switched_off(events, clock):
    device = FakeTagInventory([TAG_A], memory=full_memory(TAG_A))
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    orchestrator.settings_channel.send(ScanSettings(detailed_scan=False))
    orchestrator.run_cycle()

    assert len(events.drain()) == 1
    assert device.reads == []
    assert orchestrator.settings.detailed_scan is False


def test_settings_kept_when_nothing_sent(events, clock):
    device = FakeTagInventory([TAG_A])
    orchestrator = ScanOrchestrator(
        SingleAntennaFamily(device), events, clock=clock, settings=ScanSettings(detailed_scan=False)
    )

    orchestrator.run_cycle()
    orchestrator.run_cycle()

    assert orchestrator.settings.detailed_scan is False


def test_single_bulk_failure_backs_off_and_recovers(events, clock, caplog):
    device = FakeTagInventory([TAG_A])
    device.inventory_errors = [ReaderError("bad CRC"), OSError("port busy")]
    orchestrator = ScanOrchestrator(
        SingleAntennaFamily(device), events, clock=clock,
        settings=ScanSettings(detailed_scan=False),
        retry=RetryPolicy(initial_s=0.5, factor=2.0, max_s=10.0)
    )

    with caplog.at_level(logging.WARNING):
        assert orchestrator.run_cycle() == 0.5
    assert orchestrator.status is OrchestratorStatus.DEGRADED
    assert orchestrator.last_error == "bad CRC"
    assert "Inventory failed" in caplog.text

    assert orchestrator.run_cycle() == 1.0
    assert orchestrator.cycles == 0

    assert orchestrator.run_cycle() == 0.0
    assert orchestrator.status is OrchestratorStatus.RUNNING
    assert orchestrator.last_error == ""
    assert [r.tag_id for r in events.drain()] == [TAG_A]


def test_retry_policy_is_capped():
    policy = RetryPolicy(initial_s=0.5, factor=2.0, max_s=10.0)

    assert [policy.delay(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]
    assert policy.delay(20) == 10.0


def test_retry_policy_survives_long_outages():
    policy = RetryPolicy(initial_s=0.5, factor=2.0, max_s=10.0)

    assert policy.delay(5000) == 10.0


def test_driver_timeout_is_a_reader_failure(events, clock):
    device = FakeTagInventory([TAG_A])
    device.inventory_errors = [TimeoutError("no reply")]
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    assert orchestrator.run_cycle() == 0.5
    assert orchestrator.status is OrchestratorStatus.DEGRADED


def test_bulk_failures_keep_backing_off_after_hours(events, clock):
    device = FakeTagInventory([TAG_A])
    device.error = ReaderError("unplugged")
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    delays = [orchestrator.run_cycle() for _ in range(1100)]

    assert delays[-1] == 10.0
    assert orchestrator.status is OrchestratorStatus.DEGRADED

    device.error = None
    assert orchestrator.run_cycle() == 0.0
    assert orchestrator.status is OrchestratorStatus.RUNNING


def test_cycle_delay_is_returned(events, clock):
    device = FakeTagInventory([])
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock, cycle_delay_s=0.2)

    assert orchestrator.run_cycle() == 0.2


# --- Multi antenna ---

def test_multi_sweeps_every_antenna_and_details_one(events, clock):
    device = FakeAntennaReader(
        {0: [(TAG_A, -50)], 1: [(TAG_B, -61)], 3: [(TAG_A, -40)]},
        memory={(TAG_A, 0, 2): TID_PLAIN, (TAG_B, 0, 2): TID_WITH_XTID}
    )
    family = MultiAntennaFamily(device, antenna_count=4, session_ms=255)
    orchestrator = ScanOrchestrator(family, events, clock=clock)

    orchestrator.run_cycle()

    results = events.drain()
    assert [(r.tag_id, r.antenna, r.rssi) for r in results[:3]] == [
        (TAG_A, 0, -50), (TAG_B, 1, -61), (TAG_A, 3, -40)
    ]
    detail = results[3]
    assert detail.tag_id == TAG_A
    assert detail.antenna == 0
    assert detail.rssi is None
    assert detail.tid.tmid == 0x80A
    assert len(results) == 4

    assert device.calls[:8] == [
        ("select", 0), ("inventory", 0, 255),
        ("select", 1), ("inventory", 1, 255),
        ("select", 2), ("inventory", 2, 255),
        ("select", 3), ("inventory", 3, 255),
    ]
    assert device.calls[8:] == [("select", 0), ("read", 0, TAG_A, 0, 2)]
    assert orchestrator.rotation == 1


def test_multi_rotation_moves_detail_to_next_antenna(events, clock):
    device = FakeAntennaReader(
        {0: [(TAG_A, -50)], 1: [(TAG_B, -61)]},
        memory={(TAG_A, 0, 2): TID_PLAIN, (TAG_B, 0, 2): TID_WITH_XTID}
    )
    orchestrator = ScanOrchestrator(MultiAntennaFamily(device, antenna_count=2), events, clock=clock)

    orchestrator.run_cycle()
    events.drain()
    orchestrator.run_cycle()

    detail = events.drain()[-1]
    assert detail.tag_id == TAG_B
    assert detail.antenna == 1
    assert detail.tid.xtid is True
    assert orchestrator.rotation == 0


def test_multi_rotation_wraps(events, clock):
    device = FakeAntennaReader()
    orchestrator = ScanOrchestrator(MultiAntennaFamily(device, antenna_count=4), events, clock=clock)

    for _ in range(4):
        orchestrator.run_cycle()

    assert orchestrator.rotation == 0
    assert orchestrator.cycles == 4


def test_multi_failed_antenna_counts_as_no_detections(events, clock, caplog):
    device = FakeAntennaReader(
        {0: [(TAG_A, -50)], 1: [(TAG_B, -61)], 2: [(TAG_B, -70)]},
        failing_antennas={1}
    )
    orchestrator = ScanOrchestrator(
        MultiAntennaFamily(device, antenna_count=3), events, clock=clock,
        settings=ScanSettings(detailed_scan=False)
    )

    with caplog.at_level(logging.WARNING):
        orchestrator.run_cycle()

    assert [(r.tag_id, r.antenna) for r in events.drain()] == [(TAG_A, 0), (TAG_B, 2)]
    assert "antenna 1 failed" in caplog.text
    assert orchestrator.cycles == 1


def test_multi_all_antennas_failing_backs_off(events, clock, caplog):
    device = FakeAntennaReader({0: [(TAG_A, -50)]}, failing_antennas={0, 1})
    orchestrator = ScanOrchestrator(
        MultiAntennaFamily(device, antenna_count=2), events, clock=clock,
        retry=RetryPolicy(initial_s=0.5, factor=2.0, max_s=10.0)
    )

    with caplog.at_level(logging.WARNING):
        assert orchestrator.run_cycle() == 0.5
        assert orchestrator.run_cycle() == 1.0

    assert orchestrator.status is OrchestratorStatus.DEGRADED
    assert orchestrator.last_error == "antenna 1 not connected"
    assert orchestrator.cycles == 0
    assert events.drain() == []

    device.failing_antennas = {1}
    assert orchestrator.run_cycle() == 0.0
    assert orchestrator.status is OrchestratorStatus.RUNNING
    assert orchestrator.last_error == ""
    assert [r.tag_id for r in events.drain()][0] == TAG_A


def test_multi_without_memory_access_skips_details(events, clock, caplog):
    device = FakeAntennaReader({0: [(TAG_A, -50)], 1: [(TAG_B, -61)]})
    family = MultiAntennaFamily(device, antenna_count=2, memory_access=False)
    orchestrator = ScanOrchestrator(family, events, clock=clock)

    with caplog.at_level(logging.WARNING):
        orchestrator.run_cycle()
        orchestrator.run_cycle()

    assert not any(call[0] == "read" for call in device.calls)
    assert len(events.drain()) == 4
    assert caplog.text.count("no tag memory access") == 1
    assert "read failed" not in caplog.text


def test_single_without_memory_access_publishes_bulk_only(events, clock):
    device = FakeTagInventory([TAG_A], memory=full_memory(TAG_A))
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device, memory_access=False), events, clock=clock)

    orchestrator.run_cycle()

    assert len(events.drain()) == 1
    assert device.reads == []


def test_multi_failed_detail_read_publishes_nothing(events, clock):
    device = FakeAntennaReader({0: [(TAG_A, -50)]})
    orchestrator = ScanOrchestrator(MultiAntennaFamily(device, antenna_count=1), events, clock=clock)

    orchestrator.run_cycle()

    assert len(events.drain()) == 1


# --- Loop control ---

def test_consumer_gone_stops_cleanly(events, clock):
    device = FakeTagInventory([TAG_A])
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)
    events.close()

    orchestrator.run()

    assert orchestrator.status is OrchestratorStatus.STOPPED


def test_unexpected_error_fails_loop(events, clock):
    device = FakeTagInventory([TAG_A])
    device.error = RuntimeError("driver bug")
    orchestrator = ScanOrchestrator(SingleAntennaFamily(device), events, clock=clock)

    orchestrator.run()

    assert orchestrator.status is OrchestratorStatus.FAILED
    assert orchestrator.last_error == "driver bug"


def test_stop_ends_background_thread(events):
    device = FakeTagInventory([TAG_A])
    orchestrator = ScanOrchestrator(
        SingleAntennaFamily(device), events, cycle_delay_s=0.01,
        settings=ScanSettings(detailed_scan=False)
    )

    orchestrator.start()
    assert wait_for(lambda: orchestrator.cycles > 0)
    orchestrator.stop(timeout=2.0)

    assert not orchestrator.is_running
    assert orchestrator.status is OrchestratorStatus.STOPPED


def test_stop_interrupts_backoff(events):
    device = FakeTagInventory([TAG_A])
    device.error = ReaderError("no reply")
    orchestrator = ScanOrchestrator(
        SingleAntennaFamily(device), events, retry=RetryPolicy(initial_s=30.0)
    )

    orchestrator.start()
    assert wait_for(lambda: orchestrator.status is OrchestratorStatus.DEGRADED)
    started = time.monotonic()
    orchestrator.stop(timeout=2.0)

    assert time.monotonic() - started < 2.0
    assert not orchestrator.is_running
    assert orchestrator.status is OrchestratorStatus.STOPPED
