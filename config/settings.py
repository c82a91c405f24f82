"""
Settings and configuration management for EPC Explorer.

This module provides centralized configuration with dataclasses for
reader settings, scan defaults, and registry/display settings.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional
import json
import logging
import os

logger = logging.getLogger(__name__)


@dataclass
class ReaderSettings:
    """Reader connection settings."""
    family: str = "multi"  # "single" or "multi"
    driver: str = "llrp"   # "llrp" or "module:factory"
    address: str = ""
    port: int = 5084  # LLRP default port
    antenna_count: int = 4
    session_ms: int = 255
    power_dbm: float = 26.5
    cycle_delay_s: float = 0.0

    FAMILIES = {
        "single": "Single antenna, bulk inventory",
        "multi": "Multi antenna, real-time inventory sweep"
    }

    def validate(self):
        """Raise ValueError for settings no reader family accepts."""
        if self.family not in self.FAMILIES:
            raise ValueError(f"Unknown reader family {self.family!r}, expected one of {sorted(self.FAMILIES)}")
        if self.antenna_count < 1:
            raise ValueError(f"antenna_count must be >= 1, got {self.antenna_count}")
        if self.session_ms <= 0:
            raise ValueError(f"session_ms must be positive, got {self.session_ms}")
        if self.cycle_delay_s < 0:
            raise ValueError(f"cycle_delay_s must not be negative, got {self.cycle_delay_s}")


@dataclass
class ScanDefaults:
    """Scan settings applied when the orchestrator starts."""
    detailed_scan: bool = True


@dataclass
class RegistrySettings:
    """Tag table settings."""
    inactive_age_s: float = 5.0
    stale_age_s: float = 2.0  # rows older than this are greyed out
    tick_ms: int = 250


@dataclass
class Settings:
    """Main application settings container."""
    reader: ReaderSettings = field(default_factory=ReaderSettings)
    scan: ScanDefaults = field(default_factory=ScanDefaults)
    registry: RegistrySettings = field(default_factory=RegistrySettings)

    # Paths
    log_dir: Optional[str] = None

    # Application info
    app_name: str = "EPC Explorer"
    version: str = "1.0.0"

    def save_to_file(self, filepath: str = "settings.json"):
        """Save current settings to JSON file."""
        data = {
            "reader": asdict(self.reader),
            "scan": asdict(self.scan),
            "registry": asdict(self.registry),
            "paths": {
                "log_dir": self.log_dir
            }
        }
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load_from_file(cls, filepath: str = "settings.json") -> 'Settings':
        """
        Load settings from JSON file.

        Missing files give defaults; unknown keys are ignored.

        Raises:
            ValueError: If the file is not valid JSON
        """
        settings = cls()

        if not os.path.exists(filepath):
            return settings

        with open(filepath, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid settings file {filepath}: {e}") from e

        for section in ("reader", "scan", "registry"):
            target = getattr(settings, section)
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning("Ignoring unknown setting %s.%s", section, key)

        # Paths
        if "paths" in data:
            settings.log_dir = data["paths"].get("log_dir", settings.log_dir)

        return settings
