# ================================
# file: appio/bridge.py
# ================================
from __future__ import annotations
from typing import Callable, Dict, Optional
import threading

import serial  # pyserial

from core.messages import (
    op_subscribe, op_unsubscribe, op_advertise, op_publish,
    encode_line, parse_line, split_lines,
)
from core.config import (
    BRIDGE_URL, BRIDGE_BAUD, BRIDGE_READ_TIMEOUT_S, TOPIC_QUEUE_LENGTH,
    STATUS_DISCONNECTED,
)


class BridgeInterface:
    """rosbridge-style pub/sub over any pyserial URL.

    One JSON operation per line (subscribe / unsubscribe / advertise /
    publish). The endpoint is a pyserial URL, so the same class talks to a
    TCP bridge (socket://host:port), an RFC2217 server, a serial device or
    the in-process loop:// used by tests.

    Thread-safety: the reader thread only calls the registered topic
    callbacks; writes are serialized with a lock.
    """
    def __init__(self, url: str = BRIDGE_URL, baud: int = BRIDGE_BAUD,
                 timeout: float = BRIDGE_READ_TIMEOUT_S,
                 on_status: Optional[Callable[[str], None]] = None,
                 logger_func=None, log_file=None) -> None:
        self.url = url
        self.baud = int(baud)
        self.timeout = float(timeout)
        self.on_status = on_status
        self.logger_func = logger_func
        self.log_file = log_file
        self.ser = None
        self._rx_thread: Optional[threading.Thread] = None
        self._running = False
        self._handlers: Dict[str, Callable[[Dict], None]] = {}
        self._handlers_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self.last_error: Optional[str] = None

    def _log(self, message: str) -> None:
        if self.logger_func:
            self.logger_func(self.log_file, message, "BRIDGE")
        else:
            print(f"[BRIDGE] {message}")

    @property
    def is_connected(self) -> bool:
        return bool(self._running and self.ser is not None and self.ser.is_open)

    def connect(self) -> bool:
        """Open the endpoint and start the reader. False on failure."""
        if self.is_connected:
            return True
        try:
            self.ser = serial.serial_for_url(self.url, baudrate=self.baud, timeout=self.timeout)
        except (serial.SerialException, ValueError, OSError) as e:
            self.ser = None
            self.last_error = str(e)
            self._log(f"无法连接 {self.url}: {e}")
            return False
        self.last_error = None
        self._running = True
        self._rx_thread = threading.Thread(target=self._reader, name="bridge-reader", daemon=True)
        self._rx_thread.start()
        self._log(f"已连接 {self.url}")
        return True

    def _reader(self) -> None:
        buf = bytearray()
        while self._running and self.ser is not None:
            try:
                chunk = self.ser.read(self.ser.in_waiting or 1)
            except (serial.SerialException, OSError, TypeError, AttributeError) as e:
                # TypeError/AttributeError: port closed underneath the read
                if self._running:
                    self._connection_lost(e)
                return
            if not chunk:
                continue
            buf.extend(chunk)
            for line in split_lines(buf):
                self._handle_line(line)

    def _handle_line(self, line: str) -> None:
        msg = parse_line(line)
        if msg is None:
            return
        op = msg.get("op")
        if op == "publish":
            payload = msg.get("msg")
            with self._handlers_lock:
                cb = self._handlers.get(msg.get("topic"))
            if cb is not None and isinstance(payload, dict):
                cb(payload)
        elif op == "status":
            self._log(f"bridge status [{msg.get('level', '')}]: {msg.get('msg', '')}")
        # echoed subscribe/advertise and other ops are ignored here

    def _connection_lost(self, err: Exception) -> None:
        self._running = False
        self.last_error = str(err)
        with self._handlers_lock:
            self._handlers.clear()
        try:
            self.ser.close()
        except (serial.SerialException, OSError):
            pass
        self._log(f"连接中断: {err}")
        if self.on_status:
            self.on_status(STATUS_DISCONNECTED)

    def _send(self, op: Dict) -> bool:
        if not self.is_connected:
            return False
        data = encode_line(op)
        try:
            with self._write_lock:
                self.ser.write(data)
                self.ser.flush()
        except (serial.SerialException, OSError) as e:
            self._log(f"写入失败 ({op.get('op')} {op.get('topic')}): {e}")
            return False
        return True

    # --- pub/sub API ---
    def subscribe(self, topic: str, msg_type: str, callback: Callable[[Dict], None],
                  throttle_rate: int = 0, queue_length: int = TOPIC_QUEUE_LENGTH) -> bool:
        with self._handlers_lock:
            self._handlers[topic] = callback
        return self._send(op_subscribe(topic, msg_type, throttle_rate, queue_length))

    def unsubscribe(self, topic: str) -> bool:
        with self._handlers_lock:
            had = self._handlers.pop(topic, None) is not None
        if not had:
            return False
        return self._send(op_unsubscribe(topic))

    def advertise(self, topic: str, msg_type: str) -> bool:
        return self._send(op_advertise(topic, msg_type))

    def publish(self, topic: str, msg: Dict) -> bool:
        return self._send(op_publish(topic, msg))

    def subscribed_topics(self):
        with self._handlers_lock:
            return sorted(self._handlers)

    def close(self) -> None:
        """Drop all handlers, stop the reader and close the endpoint."""
        self._running = False
        with self._handlers_lock:
            self._handlers.clear()
        if self.ser is not None:
            try:
                self.ser.close()
            except (serial.SerialException, OSError):
                pass
        if self._rx_thread is not None and self._rx_thread is not threading.current_thread():
            self._rx_thread.join(timeout=1.0)
        self._rx_thread = None
