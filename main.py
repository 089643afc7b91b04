# ================================
# file: main.py
# ================================
from __future__ import annotations
"""Project entrypoint: teleoperation viewer with a real-time render loop.
- Left pane: current LiDAR scan, history trail and robot, centred on the robot.
- Right pane: virtual joystick; drag to drive, release to stop.
- Start/Stop buttons open and close the bridge connection.

Usage:
    python main.py --url socket://zombie.local:9092
    python main.py --touch --connect            # touch screen defaults
    python main.py --headless --connect --ticks 600
"""
import argparse
import time
import os
from typing import Optional
from datetime import datetime

import matplotlib

from core.config import (
    BRIDGE_URL, BRIDGE_URL_MOBILE, BRIDGE_BAUD, SCAN_TOPIC, ODOM_TOPIC, CMD_VEL_TOPIC,
    SCAN_THROTTLE_MS, HISTORY_CAPACITY, HISTORY_DIST_SQ_THRESHOLD, HISTORY_HEADING_THRESHOLD,
    JOYSTICK_RADIUS_PX, JOYSTICK_RADIUS_TOUCH_PX, LINEAR_GAIN, PUBLISH_EVERY_N_TICKS,
    RENDER_HZ, MAX_RANGE_M, VIEW_HALF_SIZE_PX, ROBOT_LENGTH_M, FADE_ALPHA,
    DRAW_HISTORY_SCANS, LOG_DIR, LOG_FILE_PREFIX, LOG_EVERY_N_TICKS,
)
from core.history import HistoryBuffer
from teleop import TeleopController, TeleopSession, RenderTick, RecordingSurface
from appio import DataLogger, BridgeInterface, log_to_file


def _select_backend(headless: bool) -> None:
    if headless:
        matplotlib.use("Agg", force=True)
        return
    backends_to_try = ["TkAgg", "Qt5Agg", "QtAgg", "MacOSX"]
    for backend in backends_to_try:
        try:
            matplotlib.use(backend, force=True)
            print(f"[GUI] 使用matplotlib后端: {backend}")
            return
        except (ImportError, ValueError) as e:
            print(f"[GUI] 后端 {backend} 不可用: {e}")
    matplotlib.use("Agg", force=True)
    print("[GUI] 使用非交互式后端: Agg")


def resolve_scale(scale: Optional[float], view_half_px: float, max_range_m: float) -> float:
    """Pixels per meter: explicit value, else half the view fits max range."""
    if scale is not None and scale > 0:
        return float(scale)
    return float(view_half_px) / float(max_range_m)


def run(args) -> None:
    """Wire modules and start the render loop."""
    os.makedirs(LOG_DIR, exist_ok=True)
    log_filename = f"{LOG_FILE_PREFIX}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
    log_filepath = args.log_file or os.path.join(LOG_DIR, log_filename)
    log_file = open(log_filepath, 'w', encoding='utf-8')

    try:
        url = args.url or (BRIDGE_URL_MOBILE if args.touch else BRIDGE_URL)
        radius = args.radius or (JOYSTICK_RADIUS_TOUCH_PX if args.touch else JOYSTICK_RADIUS_PX)
        scale = resolve_scale(args.scale, args.view_half, args.max_range)

        log_to_file(log_file, "=" * 60)
        log_to_file(log_file, "遥控/可视化会话日志")
        log_to_file(log_file, f"开始时间: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        log_to_file(log_file, f"桥接地址: {url}")
        log_to_file(log_file, f"历史容量: {args.capacity}, 阈值: d²>{args.dist_sq} / dθ>{args.heading}")
        log_to_file(log_file, f"摇杆半径: {radius}px, 线速度增益: {args.gain}, 每 {args.publish_every} 帧发布")
        log_to_file(log_file, f"比例: {scale:.2f} px/m")
        log_to_file(log_file, "=" * 60)

        _select_backend(args.headless)
        import matplotlib.pyplot as plt

        history = HistoryBuffer(args.capacity, args.dist_sq, args.heading)
        controller = TeleopController(max_radius=radius, linear_gain=args.gain)
        bridge = BridgeInterface(url, baud=args.baud, logger_func=log_to_file, log_file=log_file)
        data_logger = DataLogger() if args.record else None
        session = TeleopSession(bridge, history=history, controller=controller,
                                data_logger=data_logger,
                                logger_func=log_to_file, log_file=log_file,
                                scan_topic=args.scan_topic, odom_topic=args.odom_topic,
                                cmd_topic=args.cmd_topic, scan_throttle_ms=args.scan_throttle)

        view = None
        if args.headless:
            surface = RecordingSurface()
        else:
            from gui import TeleopView
            view = TeleopView(controller, half_extent=args.view_half,
                              on_start=session.connect, on_stop=session.close)
            surface = view.surface

        ticker = RenderTick(session, surface, scale=scale, robot_length=args.robot_length,
                            publish_every=args.publish_every, fade_alpha=args.fade,
                            draw_history_scans=args.history_scans)

        if args.connect:
            session.connect()

        dt = 1.0 / args.hz
        shown_status = None
        log_to_file(log_file, f"开始渲染循环 @ {args.hz:.1f} Hz")

        try:
            while True:
                t0 = time.time()
                if view is not None and not view.is_open():
                    break
                if args.ticks and ticker.tick_count >= args.ticks:
                    break

                ticker.tick()
                if isinstance(surface, RecordingSurface):
                    surface.reset()

                if view is not None and session.status != shown_status:
                    shown_status = session.status
                    view.set_status(shown_status)

                if ticker.tick_count % LOG_EVERY_N_TICKS == 1:
                    p = session.current_pose
                    log_to_file(log_file, f"帧 {ticker.tick_count} - 状态: {session.status} - "
                                          f"位姿: ({p.x:.3f}, {p.y:.3f}, {p.theta:.3f}) - "
                                          f"历史: {len(history)}/{history.capacity} - "
                                          f"已发布: {ticker.publish_count}", "LOOP")

                # frame budget: only wait for what is left of dt
                spent = time.time() - t0
                wait = max(1e-3, dt - spent)
                if view is not None:
                    plt.pause(wait)
                else:
                    time.sleep(wait)

        except KeyboardInterrupt:
            log_to_file(log_file, "用户中断程序")
        finally:
            session.close()
            if data_logger is not None:
                data_logger.save(args.record)
                log_to_file(log_file, f"遥测已保存: {args.record}")
            if view is not None:
                view.close()

            log_to_file(log_file, "=" * 60)
            log_to_file(log_file, f"程序结束 - 总帧数: {ticker.tick_count}, 发布次数: {ticker.publish_count}")
            log_to_file(log_file, f"日志文件: {log_filepath}")
            log_to_file(log_file, "=" * 60)

    finally:
        # Ensure log file is closed
        log_file.close()


def _parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Robot teleoperation and scan/odometry viewer")
    ap.add_argument("--url", type=str, default=None, help=f"bridge pyserial URL (default: {BRIDGE_URL})")
    ap.add_argument("--baud", type=int, default=BRIDGE_BAUD, help="baud rate for serial endpoints")
    ap.add_argument("--touch", action="store_true", help="touch-screen defaults (bigger stick, AP address)")
    ap.add_argument("--connect", action="store_true", help="connect at startup instead of waiting for Start")
    ap.add_argument("--scan-topic", default=SCAN_TOPIC)
    ap.add_argument("--odom-topic", default=ODOM_TOPIC)
    ap.add_argument("--cmd-topic", default=CMD_VEL_TOPIC)
    ap.add_argument("--scan-throttle", type=int, default=SCAN_THROTTLE_MS, help="min ms between scans")
    ap.add_argument("--capacity", type=int, default=HISTORY_CAPACITY, help="history snapshots kept")
    ap.add_argument("--dist-sq", type=float, default=HISTORY_DIST_SQ_THRESHOLD,
                    help="squared meters moved before a new snapshot")
    ap.add_argument("--heading", type=float, default=HISTORY_HEADING_THRESHOLD,
                    help="radians turned before a new snapshot")
    ap.add_argument("--radius", type=float, default=None, help="joystick radius in pixels")
    ap.add_argument("--gain", type=float, default=LINEAR_GAIN, help="linear velocity gain")
    ap.add_argument("--publish-every", type=int, default=PUBLISH_EVERY_N_TICKS,
                    help="publish one command every N frames")
    ap.add_argument("--scale", type=float, default=None, help="pixels per meter (default: view/max range)")
    ap.add_argument("--max-range", type=float, default=MAX_RANGE_M, help="range fitting half the view (m)")
    ap.add_argument("--view-half", type=float, default=VIEW_HALF_SIZE_PX, help="half view size in pixels")
    ap.add_argument("--robot-length", type=float, default=ROBOT_LENGTH_M)
    ap.add_argument("--hz", type=float, default=RENDER_HZ, help="render rate")
    ap.add_argument("--fade", type=float, default=FADE_ALPHA, help="1.0 clears each frame, <1 fades")
    ap.add_argument("--history-scans", action="store_true", default=DRAW_HISTORY_SCANS,
                    help="also draw scans stored in history")
    ap.add_argument("--record", type=str, default=None, help="save scans/poses/commands to this .npz")
    ap.add_argument("--log-file", type=str, default=None)
    ap.add_argument("--headless", action="store_true", help="no window (Agg backend)")
    ap.add_argument("--ticks", type=int, default=0, help="stop after N frames (0 = run until closed)")
    return ap.parse_args(argv)


def main():
    args = _parse_args()
    run(args)


if __name__ == "__main__":
    main()
