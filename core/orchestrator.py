"""
Scan Orchestrator for EPC Explorer.

This module runs the scanning loop on a background thread. Each cycle
does a cheap bulk inventory pass followed by an optional detail pass
that reads TID memory, and publishes every ScanResult on the event
channel without waiting for the consumer.

The multi-antenna detail pass only visits one antenna per cycle, so
detail coverage is traded for throughput.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .channel import ChannelClosed, EventChannel, SettingsChannel
from .clock import Clock, DEFAULT_CLOCK
from .reader import MemoryBank, MultiAntennaFamily, ReaderError, ReaderFamily, SingleAntennaFamily
from .scan_result import ScanResult
from .tid import DecodeError, Gen2TidDecoder, TagDecoder

logger = logging.getLogger(__name__)

# Errors a driver may raise for a single failed command
READER_ERRORS = (ReaderError, OSError)
DECODE_ERRORS = (DecodeError, ValueError)

# (start_word, word_count) within the TID bank
TID_WORDS = (0, 2)
XTID_HEADER_WORDS = (2, 1)
SERIAL_WORDS = (2, 3)


@dataclass
class ScanSettings:
    """Settings the presentation may change while scanning."""
    detailed_scan: bool = True


@dataclass
class RetryPolicy:
    """Exponential backoff after failed bulk inventory calls."""
    initial_s: float = 0.5
    factor: float = 2.0
    max_s: float = 10.0

    def delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        try:
            delay = self.initial_s * self.factor ** max(0, attempt - 1)
        except OverflowError:
            return self.max_s
        return min(self.max_s, delay)


class OrchestratorStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    DEGRADED = "degraded"
    STOPPED = "stopped"
    FAILED = "failed"


class ScanOrchestrator:
    """
    Owns the reader and drives the scan loop.

    No other component may touch the reader family handed to this
    class. Settings arrive through a SettingsChannel polled once per
    cycle; results leave through an EventChannel.
    """

    def __init__(
        self,
        family: ReaderFamily,
        events: EventChannel,
        settings_channel: Optional[SettingsChannel] = None,
        decoder: Optional[TagDecoder] = None,
        clock: Optional[Clock] = None,
        cycle_delay_s: float = 0.0,
        retry: Optional[RetryPolicy] = None,
        settings: Optional[ScanSettings] = None
    ):
        """
        Initialize orchestrator.

        Args:
            family: SingleAntennaFamily or MultiAntennaFamily
            events: Channel receiving every ScanResult
            settings_channel: Channel carrying ScanSettings updates
            decoder: TID decoder (Gen2TidDecoder if None)
            clock: Clock used to stamp results
            cycle_delay_s: Pause between cycles
            retry: Backoff policy for failed bulk inventory calls
            settings: Initial scan settings
        """
        self.family = family
        self.events = events
        self.settings_channel = settings_channel or SettingsChannel()
        self.decoder = decoder or Gen2TidDecoder()
        self.clock = clock or DEFAULT_CLOCK
        self.cycle_delay_s = cycle_delay_s
        self.retry = retry or RetryPolicy()
        self.settings = settings or ScanSettings()

        self.rotation = 0
        self.cycles = 0
        self.last_error = ""

        self._bulk_failures = 0
        self._memory_warned = False
        self._status = OrchestratorStatus.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def status(self) -> OrchestratorStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start scanning on a daemon thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name="scan", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        """Request the loop to stop and wait for it."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Scan thread did not stop within %.1fs", timeout)

    def run(self):
        """Scan until stopped, the consumer goes away, or an unexpected error."""
        self._status = OrchestratorStatus.RUNNING
        logger.info("Scan loop started (%s)", type(self.family).__name__)

        try:
            while not self._stop_event.is_set():
                delay = self.run_cycle()
                if delay > 0:
                    self._stop_event.wait(delay)
        except ChannelClosed:
            logger.info("Event consumer gone, stopping scan loop")
        except Exception as e:
            self.last_error = str(e)
            self._status = OrchestratorStatus.FAILED
            logger.exception("Scan loop failed")
            return

        self._status = OrchestratorStatus.STOPPED
        logger.info("Scan loop stopped after %d cycles", self.cycles)

    def run_cycle(self) -> float:
        """
        Run one scan cycle.

        Returns:
            Seconds to wait before the next cycle
        """
        new_settings = self.settings_channel.poll()
        if new_settings is not None:
            logger.debug("Scan settings changed: %s", new_settings)
            self.settings = new_settings

        if isinstance(self.family, SingleAntennaFamily):
            try:
                tags = self._scan_single()
            except READER_ERRORS as e:
                return self._bulk_failed(e)
            self._bulk_recovered()

            if self._details_enabled():
                for tag in tags:
                    self._publish(self._tag_details(tag))

        elif isinstance(self.family, MultiAntennaFamily):
            try:
                detections = self._scan_multi()
            except READER_ERRORS as e:
                return self._bulk_failed(e)
            self._bulk_recovered()

            if self._details_enabled():
                self._details_multi(detections)

        else:
            raise TypeError(f"Unsupported reader family: {type(self.family).__name__}")

        self.rotation = (self.rotation + 1) % self.family.antenna_count
        self.cycles += 1
        return self.cycle_delay_s

    def _publish(self, result: ScanResult):
        self.events.publish(result)

    def _bulk_failed(self, error: Exception) -> float:
        self._bulk_failures += 1
        delay = self.retry.delay(self._bulk_failures)
        self.last_error = str(error)
        self._status = OrchestratorStatus.DEGRADED
        logger.warning(
            "Inventory failed (attempt %d): %s, retrying in %.1fs",
            self._bulk_failures, error, delay
        )
        return delay

    def _bulk_recovered(self):
        if self._bulk_failures:
            logger.info("Inventory recovered after %d failed attempts", self._bulk_failures)
            self._bulk_failures = 0
            self.last_error = ""
            self._status = OrchestratorStatus.RUNNING

    def _details_enabled(self) -> bool:
        if not self.settings.detailed_scan:
            return False
        if not self.family.memory_access:
            if not self._memory_warned:
                logger.warning("Reader has no tag memory access, skipping detailed scan")
                self._memory_warned = True
            return False
        return True

    # --- Single antenna ---

    def _scan_single(self) -> List[ScanResult]:
        tags = []
        for tag_id in self.family.device.inventory():
            result = ScanResult.from_tag_id(tag_id, self.clock)
            self._publish(result)
            tags.append(result)
        return tags

    def _tag_details(self, tag: ScanResult) -> ScanResult:
        """Read TID, XTID header and serial for one tag."""
        detail = tag.copy()

        data = self._read(tag.tag_id, TID_WORDS, "TID")
        detail.tid = self._decode(self.decoder.decode_tid, data, tag.tag_id, "TID")

        detail.xtid_header = None
        if detail.tid is not None and detail.tid.xtid:
            data = self._read(tag.tag_id, XTID_HEADER_WORDS, "XTID header")
            detail.xtid_header = self._decode(
                self.decoder.decode_xtid_header, data, tag.tag_id, "XTID header"
            )

        detail.serial = self._read(tag.tag_id, SERIAL_WORDS, "serial")
        return detail

    # --- Multi antenna ---

    def _scan_multi(self) -> List[ScanResult]:
        """
        Sweep every antenna with a timed inventory session.

        A failed antenna counts as no detections. When every antenna
        fails, the last error is raised so the sweep backs off.
        """
        device = self.family.device
        results = []
        failures = 0
        last_error = None

        for antenna in range(self.family.antenna_count):
            try:
                device.set_active_antenna(antenna)
                detections = device.realtime_inventory(antenna, self.family.session_ms)
            except READER_ERRORS as e:
                logger.warning("Inventory on antenna %d failed: %s", antenna, e)
                failures += 1
                last_error = e
                continue

            for detection in detections:
                result = ScanResult.from_tag_id(detection.tag_id, self.clock)
                result.rssi = detection.rssi
                result.antenna = detection.antenna
                self._publish(result)
                results.append(result)

        if failures == self.family.antenna_count:
            raise last_error
        return results

    def _details_multi(self, detections: List[ScanResult]):
        """Read TID for tags seen on the antenna at the rotation counter."""
        antenna = self.rotation
        tag_ids = list(dict.fromkeys(r.tag_id for r in detections if r.antenna == antenna))
        if not tag_ids:
            return

        try:
            self.family.device.set_active_antenna(antenna)
        except READER_ERRORS as e:
            logger.warning("Detailed scan on antenna %d failed: %s", antenna, e)
            return

        for tag_id in tag_ids:
            data = self._read(tag_id, TID_WORDS, "TID")
            if data is None:
                continue
            result = ScanResult.from_tag_id(tag_id, self.clock)
            result.antenna = antenna
            result.tid = self._decode(self.decoder.decode_tid, data, tag_id, "TID")
            self._publish(result)

    # --- Helpers ---

    def _read(self, tag_id: bytes, words: tuple, what: str) -> Optional[bytes]:
        start_word, word_count = words
        try:
            data = self.family.device.read_memory(tag_id, MemoryBank.TID, start_word, word_count)
        except READER_ERRORS as e:
            logger.warning("%s read failed for %s: %s", what, tag_id.hex().upper(), e)
            return None

        logger.debug("Read %s for %s: %s", what, tag_id.hex().upper(), bytes(data).hex())
        return bytes(data)

    def _decode(self, decode: Callable, data: Optional[bytes], tag_id: bytes, what: str):
        if data is None:
            return None
        try:
            return decode(data)
        except DECODE_ERRORS as e:
            logger.warning("%s decode failed for %s: %s", what, tag_id.hex().upper(), e)
            return None
