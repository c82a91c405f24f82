"""
Main Application for EPC Explorer.

Live tag monitor that ties the scan orchestrator and tag registry to a
Tk window.
Features:
- Tag table ordered by staleness, with a keyboard-driven selection
- Detail pane for the selected tag
- Scanner status LED (running, degraded, stopped, failed)
- Latest warning from any thread in the status bar
- Dark Mode theme toggle
"""

import logging
import tkinter as tk
from tkinter import ttk

from config.settings import Settings
from core.channel import SettingsChannel
from core.orchestrator import ScanOrchestrator, ScanSettings
from core.registry import TagRegistry
from gui.styles import ThemeManager, setup_styles
from gui.widgets.status_bar import StatusBar
from gui.widgets.tag_detail import TagDetail
from gui.widgets.tag_table import TagTable
from utils.logging import MessageLog

logger = logging.getLogger(__name__)


class TagMonitorApp:
    """
    Live tag monitor.

    Keyboard shortcuts:
    - Up/Down: move selection
    - i: show/hide inactive tags
    - d: toggle detailed scan
    - Ctrl+D: Dark Mode
    - q / Ctrl+Q: quit
    """

    def __init__(
        self,
        root: tk.Tk,
        registry: TagRegistry,
        orchestrator: ScanOrchestrator,
        settings_channel: SettingsChannel,
        settings: Settings
    ):
        """
        Initialize the application.

        Args:
            root: Tkinter root window
            registry: Tag registry fed by the orchestrator
            orchestrator: Running scan orchestrator (status only)
            settings_channel: Channel for scan settings changes
            settings: Application settings
        """
        self.root = root
        self.root.title(f"{settings.app_name} v{settings.version}")
        self.root.geometry("1000x700")

        self.registry = registry
        self.orchestrator = orchestrator
        self.settings_channel = settings_channel
        self.settings = settings
        self.detailed_scan = settings.scan.detailed_scan

        self.message_log = MessageLog(capacity=50)
        logging.getLogger().addHandler(self.message_log)

        ThemeManager.init(root)
        setup_styles(root, ThemeManager.get_current_theme())

        self._build_ui()
        self._setup_keyboard_shortcuts()

        self._update_id = None
        self._update_ui()

        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _build_ui(self):
        """Build the main UI layout."""
        main_pane = ttk.PanedWindow(self.root, orient=tk.VERTICAL)
        main_pane.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

        self.tag_table = TagTable(main_pane)
        main_pane.add(self.tag_table, weight=4)

        self.tag_detail = TagDetail(main_pane)
        main_pane.add(self.tag_detail, weight=1)

        self.status_bar = StatusBar(self.root)
        self.status_bar.pack(fill=tk.X, padx=5, pady=2)

        hint_label = ttk.Label(
            self.root,
            text="Shortcuts: Up/Down=Select | i=Inactive | d=Detailed scan | Ctrl+D=Dark Mode | q=Quit",
            font=("Arial", 9),
            style="Status.TLabel"
        )
        hint_label.pack(side=tk.BOTTOM, pady=2)

    def _setup_keyboard_shortcuts(self):
        """Setup keyboard shortcuts."""
        self.root.bind("<Down>", lambda e: self._move_selection(False))
        self.root.bind("<Up>", lambda e: self._move_selection(True))
        self.root.bind("<i>", lambda e: self._toggle_inactive())
        self.root.bind("<d>", lambda e: self._toggle_detailed_scan())

        self.root.bind("<Control-d>", lambda e: self._toggle_theme())
        self.root.bind("<Control-D>", lambda e: self._toggle_theme())
        self.root.bind("<q>", lambda e: self._on_close())
        self.root.bind("<Control-q>", lambda e: self._on_close())
        self.root.bind("<Control-Q>", lambda e: self._on_close())

    def _move_selection(self, reverse: bool):
        self.registry.move_selection(reverse)
        self._refresh()

    def _toggle_inactive(self):
        self.registry.toggle_show_inactive()
        self._refresh()

    def _toggle_detailed_scan(self):
        """Send new scan settings; the orchestrator picks them up next cycle."""
        self.detailed_scan = not self.detailed_scan
        self.settings_channel.send(ScanSettings(detailed_scan=self.detailed_scan))
        logger.info("Detailed scan %s", "enabled" if self.detailed_scan else "disabled")
        self._refresh()

    def _toggle_theme(self):
        """Toggle between light and dark themes."""
        ThemeManager.toggle_theme()
        self.tag_table.apply_theme()
        self.status_bar.led.configure(bg=ThemeManager.get_colors()["bg"])

    def _update_ui(self):
        """Ingest scan events and redraw, once per tick."""
        try:
            self.registry.ingest()
            self._refresh()
        except tk.TclError:
            logger.exception("UI update failed")

        self._update_id = self.root.after(self.settings.registry.tick_ms, self._update_ui)

    def _refresh(self):
        """Redraw from the registry without ingesting."""
        now = self.registry.clock.now()
        items = self.registry.view()

        self.tag_table.update_rows(
            items, now, self.registry.selected, self.settings.registry.stale_age_s
        )
        self.tag_detail.show(self.registry.selected_item)
        self.status_bar.set_scanner_status(
            self.orchestrator.status,
            self.orchestrator.last_error,
            self.detailed_scan
        )
        self.status_bar.set_counts(len(items), self.registry.count, self.registry.show_inactive)

        messages = self.message_log.get_messages(1)
        self.status_bar.set_message(messages[-1] if messages else "")

    def _on_close(self):
        """Handle window close."""
        if self._update_id:
            self.root.after_cancel(self._update_id)
            self._update_id = None

        # Closing the channel also ends the scan loop if stop() times out
        self.registry.close()
        self.orchestrator.stop()
        logging.getLogger().removeHandler(self.message_log)

        self.root.destroy()

    def run(self):
        """Start the application main loop."""
        self.root.mainloop()
