"""
Status Bar Widget.

Scanner status LED and message line.
"""

import tkinter as tk
from tkinter import ttk

from core.orchestrator import OrchestratorStatus
from gui.rows import STATUS_LEVELS, status_text
from gui.styles import StatusIndicator, ThemeManager


class StatusBar(ttk.Frame):
    """
    Status bar with scanner state indicator.
    """

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)

        self.led = StatusIndicator(self)
        self.led.pack(side=tk.LEFT, padx=4)

        self.lbl_status = ttk.Label(
            self,
            text="Ready.",
            style="Status.TLabel"
        )
        self.lbl_status.pack(side=tk.LEFT, anchor=tk.W)

        self.lbl_count = ttk.Label(self, text="", style="Status.TLabel")
        self.lbl_count.pack(side=tk.RIGHT, padx=4)

        self.lbl_message = ttk.Label(self, text="", style="Status.TLabel")
        self.lbl_message.pack(side=tk.RIGHT, padx=12)

    def set_scanner_status(self, status: OrchestratorStatus, last_error: str = "", detailed_scan: bool = True):
        """
        Update LED and message from the orchestrator state.

        Args:
            status: Orchestrator status
            last_error: Last reader error, shown when degraded or failed
            detailed_scan: Whether the detail pass is enabled
        """
        led_state, level = STATUS_LEVELS[status]
        self.led.set_state(led_state)
        self.set_status(status_text(status, last_error, detailed_scan), level)

    def set_status(self, message: str, level: str = "info"):
        """
        Update status message.

        Args:
            message: Status message
            level: Message level (info, warning, error, success)
        """
        colors = ThemeManager.get_colors()
        self.lbl_status.config(
            text=message,
            foreground=colors.get(level, colors["fg"])
        )

    def set_counts(self, visible: int, total: int, show_inactive: bool):
        scope = "all" if show_inactive else "active"
        self.lbl_count.config(text=f"{visible} {scope} / {total} seen")

    def set_message(self, message: str):
        """Show the latest logged warning, or clear it."""
        self.lbl_message.config(text=message, foreground=ThemeManager.get_colors()["warning"])
