"""
Scan result model for EPC Explorer.

A ScanResult is one observation of a tag. Repeated observations of the
same tag ID are folded into a single record with merge().
"""

from dataclasses import dataclass, replace
from typing import Optional

from .clock import Clock, DEFAULT_CLOCK
from .tid import TidDescriptor, XtidDescriptor


# Tags not seen for this long are considered inactive (seconds)
INACTIVE_AGE = 5.0


@dataclass
class ScanResult:
    """Represents a single tag detection, or the merged state of many."""
    tag_id: bytes
    tid: Optional[TidDescriptor] = None
    xtid_header: Optional[XtidDescriptor] = None
    serial: Optional[bytes] = None
    rssi: Optional[int] = None
    antenna: Optional[int] = None
    last_seen: float = 0.0

    @classmethod
    def from_tag_id(cls, tag_id: bytes, clock: Optional[Clock] = None) -> "ScanResult":
        """Create a bare result for a tag ID seen just now."""
        clock = clock or DEFAULT_CLOCK
        return cls(tag_id=bytes(tag_id), last_seen=clock.now())

    @property
    def tag_id_hex(self) -> str:
        return self.tag_id.hex().upper()

    def copy(self) -> "ScanResult":
        return replace(self)

    def merge(self, other: "ScanResult") -> "ScanResult":
        """
        Fold a newer observation of the same tag into this one.

        Detail fields keep their current value unless the newer result
        carries one. Antenna and last_seen always follow the newer result.

        Args:
            other: Newer ScanResult with the same tag ID

        Returns:
            self (updated in place)
        """
        assert self.tag_id == other.tag_id, (
            f"cannot merge {other.tag_id_hex} into {self.tag_id_hex}"
        )

        if other.tid is not None:
            self.tid = other.tid
        if other.xtid_header is not None:
            self.xtid_header = other.xtid_header
        if other.serial is not None:
            self.serial = other.serial
        if other.rssi is not None:
            self.rssi = other.rssi

        self.antenna = other.antenna
        self.last_seen = other.last_seen
        return self

    def age(self, now: float) -> float:
        """Seconds elapsed since last detection."""
        return now - self.last_seen

    def is_active(self, now: float, inactive_age: float = INACTIVE_AGE) -> bool:
        """Check if tag was seen within the inactivity threshold."""
        return self.age(now) < inactive_age
