"""
LLRP Reader adapter for EPC Explorer.

This module provides the LLRPReader class which wraps the SLLURP library
for communication with Impinj RFID readers using the LLRP protocol, and
presents it as a multi-antenna reader: a timed inventory session per
antenna returns the tags reported on that antenna port.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from .reader import Detection, MemoryBank, ReaderConnectionError, ReaderError

logger = logging.getLogger(__name__)

# LLRP / SLLURP imports
try:
    from sllurp.llrp import (
        LLRPReaderConfig,
        LLRPReaderClient,
        LLRP_DEFAULT_PORT,
        LLRPReaderState
    )
    from twisted.internet import reactor
    SLLURP_AVAILABLE = True
except ImportError:
    SLLURP_AVAILABLE = False
    LLRP_DEFAULT_PORT = 5084


class LLRPReader:
    """
    Multi-antenna reader over LLRP.

    Antenna indices are 0-based; LLRP antenna ports are 1-based.
    Tag reports arrive on the Twisted reactor thread and are collected
    under a lock while an inventory session is open.
    """

    # No AccessSpec is installed, so TID memory cannot be read
    memory_access = False

    def __init__(self):
        self.connected: bool = False
        self.antennas: List[int] = []

        self._reader_client: Optional[Any] = None
        self._reactor_thread: Optional[threading.Thread] = None
        self._connected_event = threading.Event()
        self._lock = threading.Lock()

        # Port being collected and what was seen on it, keyed by EPC
        self._session_port: Optional[int] = None
        self._session_tags: Dict[bytes, Detection] = {}

    def connect(
        self,
        address: str,
        port: int = LLRP_DEFAULT_PORT,
        antennas: Optional[List[int]] = None,
        power_dbm: float = 26.5,
        mode_identifier: int = 1002,
        session: int = 0,
        search_mode: str = "2",
        timeout_s: float = 10.0
    ):
        """
        Connect to RFID reader and start continuous inventory.

        Args:
            address: Reader IP address or hostname
            port: LLRP TCP port
            antennas: Antenna ports to enable (e.g., [1, 2, 3, 4])
            power_dbm: Transmit power in dBm (10-33)
            mode_identifier: Reader mode (1002=AutoSet DenseRdr, etc.)
            session: RFID session (0=Fast cycle, 2=Extended persist)
            search_mode: Impinj search mode ("2"=Dual Target Continuous)
            timeout_s: Time to wait for the reader to connect

        Raises:
            ReaderConnectionError: If SLLURP is missing or the reader does not connect
        """
        if not SLLURP_AVAILABLE:
            raise ReaderConnectionError("sllurp is not installed")

        if not address:
            raise ReaderConnectionError("No reader address given")

        if antennas is None:
            antennas = [1]
        self.antennas = list(antennas)

        # Calculate power index (10dBm=1, 33dBm=93, step=0.25dBm)
        power_idx = max(1, min(93, int((power_dbm - 10.0) / 0.25) + 1))

        factory_args = {
            "tx_power": power_idx,
            "mode_identifier": mode_identifier,
            "report_every_n_tags": 1,
            "start_inventory": True,
            "tag_content_selector": {
                "EnableROSpecID": False,
                "EnableAntennaID": True,
                "EnablePeakRSSI": True,
                "EnableFirstSeenTimestamp": False,
                "EnableLastSeenTimestamp": True,
                "EnableTagSeenCount": True,
            },
            "impinj_search_mode": str(search_mode),
            "session": session,
            "antennas": antennas,
        }

        self._connected_event.clear()
        try:
            config = LLRPReaderConfig(factory_args)
            self._reader_client = LLRPReaderClient(address, port, config)
            self._reader_client.add_tag_report_callback(self._handle_tag_report)
            self._reader_client.add_state_callback(
                LLRPReaderState.STATE_CONNECTED,
                self._handle_state_change
            )
            self._reader_client.add_state_callback(
                LLRPReaderState.STATE_DISCONNECTED,
                self._handle_state_change
            )

            # Start reactor thread if not running
            if self._reactor_thread is None:
                self._reactor_thread = threading.Thread(
                    target=self._run_reactor,
                    name="llrp-reactor",
                    daemon=True
                )
                self._reactor_thread.start()

            logger.info(
                "Connecting to reader at %s:%d (power %.1f dBm, index %d, antennas %s)",
                address, port, power_dbm, power_idx, antennas
            )
            self._reader_client.connect()
        except Exception as e:
            raise ReaderConnectionError(f"Connection failed: {e}") from e

        if not self._connected_event.wait(timeout_s):
            self.disconnect()
            raise ReaderConnectionError(f"Reader at {address} did not connect within {timeout_s:.0f}s")

    def disconnect(self):
        """Disconnect from reader."""
        if self._reader_client:
            try:
                self._reader_client.disconnect()
            except Exception as e:
                logger.warning("Disconnect error: %s", e)

        self.connected = False

    def set_active_antenna(self, antenna: int):
        """
        Check that an antenna (0-based) is enabled before a session on it.

        Raises:
            ReaderError: If the antenna port was not enabled at connect
        """
        if antenna + 1 not in self.antennas:
            raise ReaderError(f"Antenna {antenna} is not enabled (ports {self.antennas})")

    def realtime_inventory(self, antenna: int, session_ms: int) -> List[Detection]:
        """
        Collect tag reports from one antenna for a session window.

        Args:
            antenna: Antenna index (0-based)
            session_ms: Session length in milliseconds

        Returns:
            One Detection per tag seen, with its strongest RSSI

        Raises:
            ReaderError: If the reader is not connected
        """
        if not self.connected:
            raise ReaderError("Reader not connected")

        with self._lock:
            self._session_tags = {}
            self._session_port = antenna + 1

        time.sleep(session_ms / 1000.0)

        with self._lock:
            detections = list(self._session_tags.values())
            self._session_port = None
            self._session_tags = {}

        if not self.connected:
            raise ReaderError("Reader disconnected during inventory")
        return detections

    def read_memory(self, tag_id: bytes, bank: MemoryBank, start_word: int, word_count: int) -> bytes:
        """Memory access needs an LLRP AccessSpec, which this adapter does not install."""
        raise ReaderError(f"{MemoryBank(bank).name} read not supported over LLRP inventory reports")

    def _run_reactor(self):
        """Run Twisted reactor in background thread."""
        try:
            if not reactor.running:
                reactor.run(installSignalHandlers=False)
        except Exception:
            logger.exception("Reactor error")

    def _handle_state_change(self, reader, state):
        """Handle reader state changes."""
        if state == LLRPReaderState.STATE_CONNECTED:
            self.connected = True
            self._connected_event.set()
            logger.info("Reader connected")
        elif state == LLRPReaderState.STATE_DISCONNECTED:
            self.connected = False
            logger.warning("Reader disconnected")

    def _handle_tag_report(self, reader, tag_reports):
        """Handle incoming tag reports."""
        for tag in tag_reports:
            try:
                detection = self._parse_tag_report(tag)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Tag parse error: %s", e)
                continue

            if detection is None:
                continue

            with self._lock:
                if detection.antenna + 1 != self._session_port:
                    continue
                previous = self._session_tags.get(detection.tag_id)
                if previous is None or detection.rssi > previous.rssi:
                    self._session_tags[detection.tag_id] = detection

    @staticmethod
    def _parse_tag_report(tag: Dict) -> Optional[Detection]:
        """Parse raw tag report into a Detection."""
        epc_raw = tag.get("EPC-96") or tag.get("EPCUnknown") or tag.get("EPC")
        if not epc_raw:
            return None

        # SLLURP reports EPCs as hex text
        if isinstance(epc_raw, bytes):
            try:
                tag_id = bytes.fromhex(epc_raw.decode("ascii"))
            except ValueError:
                tag_id = epc_raw
        else:
            tag_id = bytes.fromhex(str(epc_raw))

        rssi = float(tag.get("ImpinjPeakRSSI", tag.get("PeakRSSI", -90)))
        if rssi < -150:  # Impinj high-res RSSI (x100)
            rssi = rssi / 100.0

        antenna_port = int(tag.get("AntennaID", 1))

        return Detection(
            tag_id=tag_id,
            rssi=int(round(rssi)),
            antenna=antenna_port - 1
        )
