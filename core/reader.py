"""
Reader capability for EPC Explorer.

Physical reader drivers live outside this project. They are consumed
through the narrow protocols below and wrapped into one of a closed set
of reader families, picked once at startup:

- SingleAntennaFamily: bulk inventory() on a single RF port
- MultiAntennaFamily: per-antenna real-time inventory sweeps
"""

import importlib
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, List, Protocol, Union

logger = logging.getLogger(__name__)


class ReaderError(Exception):
    """Base exception for reader errors."""
    pass


class ReaderConnectionError(ReaderError):
    """Raised when connection to reader fails."""
    pass


class MemoryBank(IntEnum):
    """Gen2 memory banks."""
    RESERVED = 0
    EPC = 1
    TID = 2
    USER = 3


@dataclass(frozen=True)
class Detection:
    """A single tag sighting from a real-time inventory round."""
    tag_id: bytes
    rssi: int
    antenna: int


class TagInventory(Protocol):
    """Single-antenna reader capability."""

    def inventory(self) -> List[bytes]:
        ...

    def read_memory(self, tag_id: bytes, bank: MemoryBank, start_word: int, word_count: int) -> bytes:
        ...


class AntennaReader(Protocol):
    """Multi-antenna reader capability."""

    def set_active_antenna(self, antenna: int) -> None:
        ...

    def realtime_inventory(self, antenna: int, session_ms: int) -> List[Detection]:
        ...

    def read_memory(self, tag_id: bytes, bank: MemoryBank, start_word: int, word_count: int) -> bytes:
        ...


@dataclass
class SingleAntennaFamily:
    """Reader with one antenna and a bulk inventory command."""
    device: TagInventory
    memory_access: bool = True

    @property
    def antenna_count(self) -> int:
        return 1


@dataclass
class MultiAntennaFamily:
    """Reader sweeping several antennas with timed inventory sessions."""
    device: AntennaReader
    antenna_count: int = 4
    session_ms: int = 255
    memory_access: bool = True

    def __post_init__(self):
        if self.antenna_count < 1:
            raise ValueError(f"antenna_count must be >= 1, got {self.antenna_count}")


ReaderFamily = Union[SingleAntennaFamily, MultiAntennaFamily]

FAMILIES = ("single", "multi")


def load_driver(path: str) -> Callable[..., Any]:
    """
    Resolve an external driver factory from a "module:attribute" path.

    Raises:
        ReaderConnectionError: If the path cannot be imported
    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ReaderConnectionError(f"Driver must be given as 'module:factory', got {path!r}")

    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ReaderConnectionError(f"Cannot load driver {path!r}: {e}") from e


def open_family(reader_settings) -> ReaderFamily:
    """
    Open the configured reader and wrap it in its family.

    Args:
        reader_settings: config.settings.ReaderSettings

    Returns:
        SingleAntennaFamily or MultiAntennaFamily
    """
    reader_settings.validate()

    if reader_settings.driver == "llrp":
        if reader_settings.family != "multi":
            raise ReaderConnectionError("The LLRP driver only supports the multi-antenna family")

        from .llrp_reader import LLRPReader

        device = LLRPReader()
        device.connect(
            reader_settings.address,
            port=reader_settings.port,
            antennas=list(range(1, reader_settings.antenna_count + 1)),
            power_dbm=reader_settings.power_dbm,
        )
    else:
        factory = load_driver(reader_settings.driver)
        try:
            device = factory(reader_settings.address)
        except Exception as e:
            raise ReaderConnectionError(f"Driver {reader_settings.driver} failed to open {reader_settings.address}: {e}") from e

    # Drivers without TID access declare memory_access = False
    memory_access = getattr(device, "memory_access", True)

    logger.info(
        "Opened %s-antenna reader via %s at %s",
        reader_settings.family, reader_settings.driver, reader_settings.address
    )

    if reader_settings.family == "single":
        return SingleAntennaFamily(device, memory_access=memory_access)
    return MultiAntennaFamily(
        device,
        antenna_count=reader_settings.antenna_count,
        session_ms=reader_settings.session_ms,
        memory_access=memory_access,
    )
