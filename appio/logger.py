# ================================
# file: appio/logger.py
# ================================
from __future__ import annotations
from datetime import datetime
import time
import numpy as np
from core import Pose2D, LaserScan


def log_to_file(log_file, message, module="MAIN"):
    """Write message to log file with timestamp and module; echo to console."""
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    log_entry = f"[{timestamp}] [{module}] {message}\n"
    if log_file is not None:
        log_file.write(log_entry)
        log_file.flush()  # Ensure immediate write
    print(log_entry.strip())


class DataLogger:
    """Simple NPZ logger for scans, poses and published commands of one session."""
    def __init__(self) -> None:
        self.t0 = time.time()
        self.scans = []
        self.poses = []
        self.cmds = []

    def log_scan(self, scan: LaserScan) -> None:
        self.scans.append((time.time()-self.t0, scan.angle_min, scan.angle_increment,
                           list(scan.ranges)))

    def log_pose(self, pose: Pose2D) -> None:
        self.poses.append((time.time()-self.t0, pose.x, pose.y, pose.theta))

    def log_command(self, v: float, w: float) -> None:
        self.cmds.append((time.time()-self.t0, float(v), float(w)))

    def save(self, path: str) -> None:
        # Scans are ragged: store as object array
        scans_array = np.empty(len(self.scans), dtype=object)
        for i, s in enumerate(self.scans):
            scans_array[i] = s
        np.savez_compressed(path, scans=scans_array,
                            poses=np.asarray(self.poses, dtype=float).reshape(-1, 4),
                            cmds=np.asarray(self.cmds, dtype=float).reshape(-1, 3))
