# ================================
# file: core/__init__.py
# ================================
"""
Core Package

Exports fundamental types, frame transforms, the history buffer and the
message codecs.
"""
from core.types import Pose2D, LaserScan, Snapshot, VelocityCommand
from core.frames import yaw_from_quaternion, pose_from_quaternion, project_scan, ProjectedScan
from core.history import HistoryBuffer
from core.messages import decode_scan, decode_pose, encode_twist

__all__ = [
    # Types
    'Pose2D', 'LaserScan', 'Snapshot', 'VelocityCommand',

    # Frames
    'yaw_from_quaternion', 'pose_from_quaternion', 'project_scan', 'ProjectedScan',

    # History
    'HistoryBuffer',

    # Messages
    'decode_scan', 'decode_pose', 'encode_twist',
]
