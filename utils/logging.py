"""
Logging utilities for EPC Explorer.
"""

import logging
import os
import sys
import threading
from collections import deque
from datetime import datetime
from typing import List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(name)s: %(message)s"


class MessageLog(logging.Handler):
    """
    Logging handler keeping recent messages for the GUI status bar.

    Records may arrive on any thread; the GUI reads them on its own tick.
    """

    def __init__(self, capacity: int = 100, level: int = logging.WARNING):
        """
        Initialize handler.

        Args:
            capacity: Number of messages kept
            level: Minimum level handled
        """
        super().__init__(level)
        self._messages = deque(maxlen=capacity)
        self.setFormatter(logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s", "%H:%M:%S"))

    def emit(self, record: logging.LogRecord):
        try:
            formatted = self.format(record)
        except Exception:
            self.handleError(record)
            return

        # handle() already holds self.lock here
        self._messages.append(formatted)

    def get_messages(self, count: int = 100) -> List[str]:
        """Get recent log messages, oldest first."""
        self.acquire()
        try:
            return list(self._messages)[-count:]
        finally:
            self.release()


def setup_logging(log_dir: Optional[str] = None, level: int = logging.DEBUG) -> Optional[str]:
    """
    Configure the root logger.

    With a directory, everything at ``level`` goes to a timestamped file
    there. Without one, only warnings reach stderr.

    Returns:
        Path of the log file, if any
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if log_dir is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
        return None

    os.makedirs(log_dir, exist_ok=True)
    path = os.path.join(log_dir, f"epc_explorer_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

    # The LLRP stack is chatty at debug level
    logging.getLogger("sllurp").setLevel(logging.INFO)
    logging.getLogger("twisted").setLevel(logging.WARNING)
    return path


def install_thread_excepthook():
    """Log uncaught exceptions from worker threads before they die."""
    def hook(args):
        if issubclass(args.exc_type, SystemExit):
            return
        name = args.thread.name if args.thread is not None else "unnamed"
        logging.getLogger("thread").error(
            "Thread '%s' crashed", name,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback)
        )

    threading.excepthook = hook
