"""
Tag Table Widget.

Shows the registry view, one row per tag, in view order.
"""

import tkinter as tk
from tkinter import ttk
from typing import List, Optional

from core.scan_result import ScanResult
from gui.rows import COLUMNS, COLUMN_WIDTHS, render_row, row_style
from gui.styles import ThemeManager, configure_treeview_tags


class TagTable(ttk.LabelFrame):
    """
    Treeview of visible tags.

    Selection is owned by the registry, so the Treeview's own
    selection is disabled and the selected row is drawn with a tag.
    """

    def __init__(self, parent, **kwargs):
        super().__init__(parent, text="Tags", padding=10, **kwargs)

        self.tree = ttk.Treeview(self, columns=COLUMNS, show="headings", selectmode="none", height=20)
        for col, width in zip(COLUMNS, COLUMN_WIDTHS):
            self.tree.heading(col, text=col)
            self.tree.column(col, width=width, anchor=tk.CENTER)
        self.tree.column("ID", anchor=tk.W)

        configure_treeview_tags(self.tree, ThemeManager.get_current_theme())

        self.tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        vsb = ttk.Scrollbar(self, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)
        vsb.pack(side=tk.RIGHT, fill=tk.Y)

    def update_rows(self, items: List[ScanResult], now: float, selected: Optional[bytes], stale_age: float):
        """Replace all rows with the current view."""
        self.tree.delete(*self.tree.get_children())

        for item in items:
            self.tree.insert(
                "", tk.END,
                iid=item.tag_id_hex,
                values=render_row(item, now),
                tags=(row_style(item, now, selected, stale_age),)
            )

        if selected is not None and self.tree.exists(selected.hex().upper()):
            self.tree.see(selected.hex().upper())

    def apply_theme(self):
        configure_treeview_tags(self.tree, ThemeManager.get_current_theme())
