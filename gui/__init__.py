"""
GUI module for EPC Explorer.

Import gui.app explicitly; gui.rows has no Tk dependency.
"""
