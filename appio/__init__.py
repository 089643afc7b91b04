# ================================
# file: appio/__init__.py
# ================================
from appio.logger import DataLogger, log_to_file
from appio.bridge import BridgeInterface

__all__ = ["DataLogger", "log_to_file", "BridgeInterface"]
