"""
Tkinter styles and themes for EPC Explorer.
"""

from tkinter import ttk
import tkinter as tk


# Theme definitions
THEMES = {
    "light": {
        "bg": "#FFFFFF",
        "fg": "#0f172a",
        "accent": "#1e40af",
        "success": "#16a34a",
        "warning": "#b45309",
        "error": "#dc2626",
        "muted": "#6b7280",
        "frame_bg": "#f8fafc",
        "treeview_bg": "#FFFFFF",
        "treeview_selected": "#fef08a",
        "border": "#e2e8f0"
    },
    "dark": {
        "bg": "#1e1e2e",
        "fg": "#cdd6f4",
        "accent": "#89b4fa",
        "success": "#a6e3a1",
        "warning": "#f9e2af",
        "error": "#f38ba8",
        "muted": "#7f849c",
        "frame_bg": "#313244",
        "treeview_bg": "#313244",
        "treeview_selected": "#585b70",
        "border": "#585b70"
    }
}


class ThemeManager:
    """Manages application themes."""

    _current_theme = "light"
    _root = None

    @classmethod
    def init(cls, root):
        """Initialize theme manager with root window."""
        cls._root = root

    @classmethod
    def get_current_theme(cls) -> str:
        return cls._current_theme

    @classmethod
    def get_colors(cls) -> dict:
        """Get current theme colors."""
        return THEMES.get(cls._current_theme, THEMES["light"])

    @classmethod
    def set_theme(cls, theme_name: str):
        """Set and apply theme."""
        if theme_name not in THEMES:
            return

        cls._current_theme = theme_name
        if cls._root:
            setup_styles(cls._root, theme_name)

    @classmethod
    def toggle_theme(cls) -> str:
        """Toggle between light and dark themes."""
        new_theme = "dark" if cls._current_theme == "light" else "light"
        cls.set_theme(new_theme)
        return new_theme


def setup_styles(root, theme: str = "light"):
    """
    Configure ttk styles for the application.

    Args:
        root: Tkinter root window
        theme: Theme name ("light" or "dark")
    """
    colors = THEMES.get(theme, THEMES["light"])
    style = ttk.Style()

    # Use clam as base theme
    style.theme_use("clam")

    style.configure(
        ".",
        background=colors["bg"],
        foreground=colors["fg"],
        font=("Arial", 10)
    )
    style.configure("TFrame", background=colors["bg"])
    style.configure("TLabel", background=colors["bg"], foreground=colors["fg"])
    style.configure(
        "Detail.TLabel",
        font=("Courier New", 10),
        background=colors["bg"],
        foreground=colors["fg"]
    )
    style.configure(
        "Status.TLabel",
        font=("Arial", 10),
        foreground=colors["fg"],
        background=colors["bg"]
    )

    style.configure(
        "TLabelframe",
        background=colors["bg"],
        bordercolor=colors["border"]
    )
    style.configure(
        "TLabelframe.Label",
        foreground=colors["error"],
        background=colors["bg"],
        font=("Arial", 11, "bold")
    )

    style.configure(
        "Treeview",
        background=colors["treeview_bg"],
        foreground=colors["fg"],
        fieldbackground=colors["treeview_bg"],
        font=("Courier New", 10)
    )
    style.configure(
        "Treeview.Heading",
        font=("Arial", 10, "bold"),
        background=colors["frame_bg"],
        foreground=colors["fg"]
    )

    root.configure(bg=colors["bg"])
    return style


def configure_treeview_tags(tree, theme: str = "light"):
    """
    Configure row tags for the tag table.

    Args:
        tree: ttk.Treeview widget
        theme: Current theme name
    """
    colors = THEMES.get(theme, THEMES["light"])

    tree.tag_configure("normal", foreground=colors["fg"])
    tree.tag_configure("stale", foreground=colors["muted"])
    tree.tag_configure(
        "selected",
        background=colors["treeview_selected"],
        foreground=colors["fg"]
    )


class StatusIndicator(tk.Canvas):
    """LED-style status indicator widget."""

    COLORS = {
        "off": "#6b7280",
        "connected": "#22c55e",
        "connecting": "#f59e0b",
        "error": "#ef4444"
    }

    def __init__(self, parent, size=16, **kwargs):
        super().__init__(parent, width=size, height=size,
                         highlightthickness=0, **kwargs)

        self.size = size
        self._state = "off"

        self.configure(bg=ThemeManager.get_colors()["bg"])
        self._draw()

    def _draw(self):
        """Draw the indicator."""
        self.delete("all")

        color = self.COLORS.get(self._state, self.COLORS["off"])
        pad = 2
        self.create_oval(
            pad, pad,
            self.size - pad, self.size - pad,
            fill=color, outline=""
        )

        # Highlight for 3D effect
        if self._state != "off":
            self.create_arc(
                pad + 1, pad + 1,
                self.size - pad - 1, self.size - pad - 1,
                start=45, extent=90,
                style=tk.ARC, outline="white", width=1
            )

    def set_state(self, state: str):
        """Set indicator state: off, connected, connecting, error."""
        if state == self._state:
            return
        self._state = state
        self._draw()
