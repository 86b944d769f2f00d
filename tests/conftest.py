"""
Shared fixtures: an in-process fake bulb and an in-memory transport.
"""

import json
import socket
import threading
from typing import Callable, List, Optional

import pytest

from yeectl.network.transport import Transport, TransportState
from yeectl.protocol.codec import JSONCodec
from yeectl.protocol.messages import Response


Responder = Callable[[dict], Optional[bytes]]


def ok_reply(command: dict) -> bytes:
    """Reply the way a bulb does: no terminator after the object."""
    return json.dumps({"id": command["id"], "result": ["ok"]}).encode("utf-8")


class FakeBulb:
    """
    Threaded TCP server speaking the bulb protocol on 127.0.0.1.

    Accepts a single connection, records every byte received (the wire
    trace) and every decoded command, and answers each command with the
    bytes returned by the responder. A responder returning None makes the
    bulb drop the connection; with hang_up the bulb drops it right after
    sending the first reply.
    """

    def __init__(self, responder: Optional[Responder] = None, hang_up: bool = False):
        self.responder = responder or ok_reply
        self.hang_up = hang_up
        self.received = bytearray()
        self.commands: List[dict] = []
        self._lock = threading.Lock()
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen(1)
        self._server.settimeout(5.0)
        self.port = self._server.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    def start(self) -> "FakeBulb":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._server.close()
        self._thread.join(timeout=5.0)

    def _serve(self) -> None:
        try:
            conn, _ = self._server.accept()
        except OSError:
            return

        with conn:
            buffer = b""
            while True:
                try:
                    data = conn.recv(4096)
                except OSError:
                    return
                if not data:
                    return

                with self._lock:
                    self.received.extend(data)
                buffer += data

                while b"\r\n" in buffer:
                    line, buffer = buffer.split(b"\r\n", 1)
                    command = json.loads(line)
                    with self._lock:
                        self.commands.append(command)
                    reply = self.responder(command)
                    if reply is None:
                        return
                    conn.sendall(reply)
                    if self.hang_up:
                        return


@pytest.fixture
def fake_bulb():
    bulb = FakeBulb().start()
    yield bulb
    bulb.stop()


@pytest.fixture
def make_bulb():
    """Factory for fake bulbs with a custom responder."""
    bulbs = []

    def factory(responder: Responder, hang_up: bool = False) -> FakeBulb:
        bulb = FakeBulb(responder, hang_up).start()
        bulbs.append(bulb)
        return bulb

    yield factory
    for bulb in bulbs:
        bulb.stop()


class MemoryTransport(Transport):
    """
    In-memory transport with scripted failures.

    Written bytes are collected in `written`. Replies come from `replies`;
    an exception instance in that list is raised instead of returned.
    Failures do not change the connection state, so the session stays
    usable between them.
    """

    def __init__(self):
        super().__init__()
        self.written: List[bytes] = []
        self.replies: List[object] = []
        self.fail_writes: List[Optional[Exception]] = []
        self._codec = JSONCodec()

    def connect(self) -> None:
        self._set_state(TransportState.CONNECTED)

    def disconnect(self) -> None:
        self._set_state(TransportState.DISCONNECTED)

    def send(self, data: bytes) -> None:
        if self.fail_writes:
            error = self.fail_writes.pop(0)
            if error is not None:
                raise error
        self.written.append(data)

    def receive_response(self) -> Response:
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return self._codec.decode(reply)
        # Echo the id of the last command written
        last = json.loads(self.written[-2])
        return Response(id=last["id"], result=["ok"])

    def sent_commands(self) -> List[dict]:
        return [json.loads(frame) for frame in self.written if frame != b"\r\n"]


@pytest.fixture
def memory_transport():
    transport = MemoryTransport()
    transport.connect()
    return transport
