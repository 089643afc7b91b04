# ================================
# file: core/config.py
# ================================
"""
Global configuration for the teleoperation front end.
Units are SI (meters, radians, seconds) unless the name says otherwise.
Every value here is a default: constructors take it as a keyword default and
main.py exposes it on the command line.

Organization:
1. Transport
2. History Buffer
3. Joystick / Teleop
4. Rendering
5. Logging
"""
from __future__ import annotations

# ================================
# 1. TRANSPORT
# ================================
# pyserial URL: socket://host:port, rfc2217://host:port, loop:// or a device path
BRIDGE_URL: str = "socket://zombie.local:9092"
BRIDGE_URL_MOBILE: str = "socket://192.168.42.1:9092"   # robot's own access point
BRIDGE_BAUD: int = 115200         # ignored by socket:// endpoints
BRIDGE_READ_TIMEOUT_S: float = 0.1

SCAN_TOPIC: str = "/scan"
SCAN_MSG_TYPE: str = "sensor_msgs/LaserScan"
SCAN_THROTTLE_MS: int = 500       # min millis between scan messages
ODOM_TOPIC: str = "/odom"
ODOM_MSG_TYPE: str = "nav_msgs/Odometry"
CMD_VEL_TOPIC: str = "cmd_vel"
CMD_VEL_MSG_TYPE: str = "geometry_msgs/Twist"
TOPIC_QUEUE_LENGTH: int = 1       # never accumulate stale messages

# Status strings shown by the viewer
STATUS_IDLE: str = "Not Connected"
STATUS_CONNECTING: str = "Connecting..."
STATUS_CONNECTED: str = "Connected"
STATUS_ERROR: str = "Error Connecting"
STATUS_DISCONNECTED: str = "Disconnected"

# ================================
# 2. HISTORY BUFFER
# ================================
HISTORY_CAPACITY: int = 20              # snapshots kept (10-20 seen on real runs)
HISTORY_DIST_SQ_THRESHOLD: float = 0.04 # squared meters moved before a new snapshot
HISTORY_HEADING_THRESHOLD: float = 0.03 # radians turned before a new snapshot

# ================================
# 3. JOYSTICK / TELEOP
# ================================
JOYSTICK_RADIUS_PX: float = 100.0        # desktop pointer
JOYSTICK_RADIUS_TOUCH_PX: float = 200.0  # touch screens
JOYSTICK_KNOB_FRACTION: float = 0.1      # knob radius = radius * fraction
LINEAR_GAIN: float = 2.0                 # m/s at full forward deflection
PUBLISH_EVERY_N_TICKS: int = 10          # one cmd_vel per N render ticks

# ================================
# 4. RENDERING
# ================================
RENDER_HZ: float = 60.0
MAX_RANGE_M: float = 10.0               # range that fits in half the view
VIEW_HALF_SIZE_PX: float = 400.0
SCALE_PX_PER_M: float = VIEW_HALF_SIZE_PX / MAX_RANGE_M
ROBOT_WIDTH_M: float = 20 * 0.0254      # 20 in
ROBOT_LENGTH_M: float = 26 * 0.0254     # 26 in, radius uses the longer side

BACKGROUND_COLOR: str = "#FFFFFF"
FADE_ALPHA: float = 1.0                 # < 1.0 fades old points instead of clearing
SCAN_COLOR: str = "#FF0000"
HISTORY_SCAN_COLOR: str = "#FFAAAA"
TRAIL_COLOR: str = "#00FF00"
ROBOT_STROKE_COLOR: str = "#000000"
ROBOT_FILL_COLOR: str = "#FFFFFF"
JOYSTICK_COLOR: str = "#0000FF"
DRAW_HISTORY_SCANS: bool = False

# ================================
# 5. LOGGING
# ================================
LOG_DIR: str = "logs"
LOG_FILE_PREFIX: str = "teleop_session_log"
RECORD_PATH: str = "teleop_run.npz"
LOG_EVERY_N_TICKS: int = 600            # periodic status line from the render loop
