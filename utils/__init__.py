"""
Utility functions for EPC Explorer.
"""

from .logging import MessageLog, install_thread_excepthook, setup_logging

__all__ = ['MessageLog', 'install_thread_excepthook', 'setup_logging']
