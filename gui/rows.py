"""
Text formatting for the tag table and detail pane.

Kept free of Tk so it can be tested without a display.
"""

from typing import List, Optional, Tuple

from core.orchestrator import OrchestratorStatus
from core.scan_result import ScanResult

COLUMNS = ("ID", "Manufacturer", "Model", "XTID", "Serial", "Age")
COLUMN_WIDTHS = (360, 150, 100, 50, 50, 60)


def render_row(item: ScanResult, now: float) -> Tuple[str, ...]:
    """Table cells for one tag."""
    return (
        item.tag_id_hex,
        item.tid.manufacturer if item.tid else "",
        item.tid.model if item.tid else "",
        "Y" if item.xtid_header else "",
        "Y" if item.serial else "",
        f"{int(item.age(now))}s",
    )


def row_style(item: ScanResult, now: float, selected: Optional[bytes], stale_age: float) -> str:
    """Treeview tag name for a row: selected, stale or normal."""
    if item.tag_id == selected:
        return "selected"
    if item.age(now) > stale_age:
        return "stale"
    return "normal"


def render_detail(item: Optional[ScanResult]) -> List[str]:
    """Lines for the detail pane."""
    if item is None:
        return []

    lines = [f"Tag ID: {item.tag_id_hex}"]

    if item.tid:
        tid = item.tid
        lines.append(
            f"TID: {tid.manufacturer} {tid.model} (MDID {tid.mdid_hex}, TMID {tid.tmid_hex}), "
            f"XTID={tid.xtid}, security={tid.security}, file={tid.file}"
        )
    else:
        lines.append("TID: -")

    if item.xtid_header:
        xtid = item.xtid_header
        lines.append(
            f"XTID: serial {xtid.serial_bits} bits, "
            f"optional commands={xtid.optional_command_support}, "
            f"blockwrite/erase={xtid.blockwrite_blockerase}, "
            f"user memory permalock={xtid.user_memory_permalock}, "
            f"extended header={xtid.extended_header}"
        )

    if item.serial:
        lines.append(f"Serial: {item.serial.hex().upper()}")

    signal = f"{item.rssi} dBm" if item.rssi is not None else "-"
    antenna = str(item.antenna) if item.antenna is not None else "-"
    lines.append(f"RSSI: {signal} | Antenna: {antenna}")
    return lines


STATUS_LEVELS = {
    OrchestratorStatus.IDLE: ("off", "info"),
    OrchestratorStatus.RUNNING: ("connected", "success"),
    OrchestratorStatus.DEGRADED: ("connecting", "warning"),
    OrchestratorStatus.STOPPED: ("off", "warning"),
    OrchestratorStatus.FAILED: ("error", "error"),
}


def status_text(status: OrchestratorStatus, last_error: str = "", detailed_scan: bool = True) -> str:
    """One-line scanner status for the status bar."""
    text = f"Scanner {status.value}"
    if last_error and status in (OrchestratorStatus.DEGRADED, OrchestratorStatus.FAILED):
        text += f": {last_error}"
    text += " | detailed scan " + ("on" if detailed_scan else "off")
    return text
