"""
GUI widgets for EPC Explorer.
"""

from .status_bar import StatusBar
from .tag_detail import TagDetail
from .tag_table import TagTable

__all__ = ['StatusBar', 'TagDetail', 'TagTable']
