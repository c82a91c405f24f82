"""
Core module for EPC Explorer.

This module contains the scanning core:
- ScanResult model and merge rules
- Reader capability and reader families
- Scan Orchestrator (background scan loop)
- Tag Registry (aggregated, ordered view)
"""

from .channel import ChannelClosed, EventChannel, SettingsChannel
from .clock import MonotonicClock
from .orchestrator import OrchestratorStatus, RetryPolicy, ScanOrchestrator, ScanSettings
from .reader import (
    Detection,
    MemoryBank,
    MultiAntennaFamily,
    ReaderConnectionError,
    ReaderError,
    SingleAntennaFamily,
    open_family,
)
from .registry import TagRegistry
from .scan_result import INACTIVE_AGE, ScanResult
from .tid import DecodeError, Gen2TidDecoder, TidDescriptor, XtidDescriptor

__all__ = [
    'ChannelClosed',
    'DecodeError',
    'Detection',
    'EventChannel',
    'Gen2TidDecoder',
    'INACTIVE_AGE',
    'MemoryBank',
    'MonotonicClock',
    'MultiAntennaFamily',
    'OrchestratorStatus',
    'ReaderConnectionError',
    'ReaderError',
    'RetryPolicy',
    'ScanOrchestrator',
    'ScanResult',
    'ScanSettings',
    'SettingsChannel',
    'SingleAntennaFamily',
    'TagRegistry',
    'TidDescriptor',
    'XtidDescriptor',
    'open_family',
]
