#!/usr/bin/env python3
"""
EPC Explorer - Entry Point

Run this script to open a reader and start the live tag monitor.
"""

import argparse
import copy
import logging
import sys
import os
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import serial.tools.list_ports

from config.settings import ReaderSettings, Settings
from core.channel import EventChannel, SettingsChannel
from core.orchestrator import ScanOrchestrator, ScanSettings
from core.reader import ReaderError, open_family
from core.registry import TagRegistry
from utils.logging import install_thread_excepthook, setup_logging

logger = logging.getLogger("epc_explorer")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="epc-explorer", description="Live RFID tag inventory")
    parser.add_argument("address", nargs="?", help="Reader address (IP for LLRP, serial port for serial drivers)")
    parser.add_argument("--family", choices=sorted(ReaderSettings.FAMILIES), help="Reader family")
    parser.add_argument("--driver", help='Reader driver: "llrp" or "module:factory"')
    parser.add_argument("--antennas", type=int, help="Number of antennas (multi family)")
    parser.add_argument("--settings", default="settings.json", metavar="FILE", help="Settings file")
    parser.add_argument("-l", "--log", metavar="DIRECTORY", help="Write debug logs to files in DIRECTORY")
    parser.add_argument("--no-detail", action="store_true", help="Start with detailed scan disabled")
    parser.add_argument("--list-ports", action="store_true", help="List serial ports and exit")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, file_settings: Optional[Settings] = None) -> Settings:
    """
    Settings file overlaid with command line options.

    The overrides apply to a copy; file_settings is left as loaded.
    """
    if file_settings is None:
        file_settings = Settings.load_from_file(args.settings)
    settings = copy.deepcopy(file_settings)

    if args.address:
        settings.reader.address = args.address
    if args.family:
        settings.reader.family = args.family
    if args.driver:
        settings.reader.driver = args.driver
    if args.antennas is not None:
        settings.reader.antenna_count = args.antennas
    if args.log:
        settings.log_dir = args.log
    if args.no_detail:
        settings.scan.detailed_scan = False

    settings.reader.validate()
    return settings


def list_serial_ports() -> List[str]:
    """List all available serial ports."""
    return [p.device for p in serial.tools.list_ports.comports()]


def run_gui(registry, orchestrator, settings_channel, settings):
    """Run the tag monitor window until it is closed."""
    import tkinter as tk
    from gui.app import TagMonitorApp

    root = tk.Tk()
    app = TagMonitorApp(root, registry, orchestrator, settings_channel, settings)
    app.run()


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    args = parse_args(argv)

    if args.list_ports:
        for port in list_serial_ports():
            print(port)
        return 0

    try:
        file_settings = Settings.load_from_file(args.settings)
        settings = build_settings(args, file_settings)
    except ValueError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.log_dir)
    install_thread_excepthook()

    if not settings.reader.address:
        print("No reader address given", file=sys.stderr)
        return 2

    try:
        family = open_family(settings.reader)
    except ReaderError as e:
        logger.error("Cannot open reader: %s", e)
        print(f"Cannot open reader: {e}", file=sys.stderr)
        return 1

    events = EventChannel()
    settings_channel = SettingsChannel()
    orchestrator = ScanOrchestrator(
        family,
        events,
        settings_channel,
        cycle_delay_s=settings.reader.cycle_delay_s,
        settings=ScanSettings(detailed_scan=settings.scan.detailed_scan)
    )
    registry = TagRegistry(events, inactive_age=settings.registry.inactive_age_s)

    orchestrator.start()
    run_gui(registry, orchestrator, settings_channel, settings)

    disconnect = getattr(family.device, "disconnect", None)
    if disconnect is not None:
        disconnect()

    try:
        file_settings.save_to_file(args.settings)
    except OSError as e:
        logger.warning("Could not save settings: %s", e)
    return 0


if __name__ == "__main__":
    sys.exit(main())
