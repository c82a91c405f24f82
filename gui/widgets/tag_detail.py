"""
Tag Detail Widget.

Decoded memory of the selected tag.
"""

import tkinter as tk
from tkinter import ttk
from typing import Optional

from core.scan_result import ScanResult
from gui.rows import render_detail


class TagDetail(ttk.LabelFrame):
    """Detail pane for the selected tag."""

    def __init__(self, parent, **kwargs):
        super().__init__(parent, text="Detail", padding=10, **kwargs)

        self.lbl_detail = ttk.Label(self, text="", style="Detail.TLabel", justify=tk.LEFT, wraplength=900)
        self.lbl_detail.pack(fill=tk.BOTH, expand=True, anchor=tk.NW)

    def show(self, item: Optional[ScanResult]):
        self.lbl_detail.config(text="\n".join(render_detail(item)))
