"""
TID decoding for EPC Explorer.

This module defines the decoder capability used by the scan orchestrator
and a default decoder for the EPC Gen2 TID header layout:

    byte 0      allocation class (0xE2)
    bits 8-10   XTID, security and file flags
    bits 11-19  mask designer ID (MDID)
    bits 20-31  tag model number (TMID)
"""

from dataclasses import dataclass
from typing import Protocol


TID_ALLOCATION_CLASS = 0xE2

# GS1 mask designer IDs
MANUFACTURERS = {
    0x001: "Impinj",
    0x002: "Texas Instruments",
    0x003: "Alien Technology",
    0x004: "Intelleflex",
    0x005: "Atmel",
    0x006: "NXP Semiconductors",
    0x007: "STMicroelectronics",
    0x008: "EP Microelectronics",
    0x009: "Motorola",
    0x00A: "Sentech",
    0x00B: "EM Microelectronic",
    0x00C: "Renesas",
    0x00D: "Mstar",
    0x00E: "Tyco International",
    0x00F: "Quanray Electronics",
    0x010: "Fujitsu",
}

# (MDID, TMID) -> chip model
MODELS = {
    (0x001, 0x100): "Monza 4D",
    (0x001, 0x104): "Monza 4U",
    (0x001, 0x105): "Monza 4QT",
    (0x001, 0x10C): "Monza 4E",
    (0x001, 0x160): "Monza R6",
}


class DecodeError(Exception):
    """Raised when tag memory cannot be decoded."""
    pass


@dataclass(frozen=True)
class TidDescriptor:
    """Decoded TID header."""
    xtid: bool
    security: bool
    file: bool
    mdid: int
    tmid: int

    @property
    def mdid_hex(self) -> str:
        return f"0x{self.mdid:03X}"

    @property
    def tmid_hex(self) -> str:
        return f"0x{self.tmid:03X}"

    @property
    def manufacturer(self) -> str:
        """Mask designer name, or the MDID in hex when unknown."""
        return MANUFACTURERS.get(self.mdid, self.mdid_hex)

    @property
    def model(self) -> str:
        """Chip model name, or the TMID in hex when unknown."""
        return MODELS.get((self.mdid, self.tmid), self.tmid_hex)


@dataclass(frozen=True)
class XtidDescriptor:
    """Decoded XTID header word."""
    extended_header: bool
    user_memory_permalock: bool
    blockwrite_blockerase: bool
    optional_command_support: bool
    serialization: int

    @property
    def serial_bits(self) -> int:
        """Length of the serial number announced by the header."""
        if self.serialization == 0:
            return 0
        return 48 + 16 * (self.serialization - 1)


class TagDecoder(Protocol):
    """Decoder capability consumed by the orchestrator."""

    def decode_tid(self, data: bytes) -> TidDescriptor:
        ...

    def decode_xtid_header(self, data: bytes) -> XtidDescriptor:
        ...


class Gen2TidDecoder:
    """
    Default decoder for EPC Gen2 TID memory.

    Both methods raise DecodeError on short or malformed input.
    """

    def decode_tid(self, data: bytes) -> TidDescriptor:
        """
        Decode the first two TID words.

        Args:
            data: At least 4 bytes read from TID word 0

        Returns:
            TidDescriptor
        """
        if len(data) < 4:
            raise DecodeError(f"TID too short: {bytes(data).hex()}")
        if data[0] != TID_ALLOCATION_CLASS:
            raise DecodeError(f"Unsupported TID allocation class 0x{data[0]:02X}")

        return TidDescriptor(
            xtid=bool(data[1] & 0x80),
            security=bool(data[1] & 0x40),
            file=bool(data[1] & 0x20),
            mdid=((data[1] & 0x1F) << 4) | (data[2] >> 4),
            tmid=((data[2] & 0x0F) << 8) | data[3],
        )

    def decode_xtid_header(self, data: bytes) -> XtidDescriptor:
        """Decode the XTID header word (TID word 2)."""
        if len(data) < 2:
            raise DecodeError(f"XTID header too short: {bytes(data).hex()}")

        header = int.from_bytes(bytes(data[:2]), "big")
        return XtidDescriptor(
            extended_header=bool(header & 0x8000),
            user_memory_permalock=bool(header & 0x0020),
            blockwrite_blockerase=bool(header & 0x0010),
            optional_command_support=bool(header & 0x0008),
            serialization=header & 0x0007,
        )
