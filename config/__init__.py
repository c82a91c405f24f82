"""
Configuration module for EPC Explorer.
"""

from .settings import Settings, ReaderSettings, ScanDefaults, RegistrySettings

__all__ = ['Settings', 'ReaderSettings', 'ScanDefaults', 'RegistrySettings']
