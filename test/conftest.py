"""
Pytest configuration and shared fixtures for the tic-tac-toe server.
"""

import os
import sys

import pytest

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from tictactoe.client.network import NetworkClient  # noqa: E402
from tictactoe.server.network import NetworkServer  # noqa: E402
from tictactoe.server.network.registry import ClientSession  # noqa: E402
from tictactoe.shared.protocols import FrameBuffer, decode_server_message  # noqa: E402


class FakeConn:
    """In-memory stand-in for a connected socket."""

    def __init__(self, fail_sends=False):
        self.sent = bytearray()
        self.fail_sends = fail_sends
        self.shut_down = False
        self.closed = False

    def sendall(self, data):
        if self.fail_sends:
            raise BrokenPipeError("peer gone")
        self.sent.extend(data)

    def shutdown(self, how):
        self.shut_down = True

    def close(self):
        self.closed = True

    def frames(self):
        # frames carry no terminator, split them the way the client does
        return FrameBuffer.for_server_frames().feed(bytes(self.sent))

    def messages(self):
        return [decode_server_message(line) for line in self.frames()]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def make_session():
    """Factory for sessions backed by FakeConn."""
    counter = iter(range(40000, 50000))

    def _make(fail_sends=False):
        return ClientSession(FakeConn(fail_sends=fail_sends), ("127.0.0.1", next(counter)))

    return _make


@pytest.fixture
def server():
    """A NetworkServer that is never bound; drive it through its session API."""
    return NetworkServer("127.0.0.1", 0)


@pytest.fixture
def paired(server, make_session):
    """Server with two admitted sessions and all greeting traffic cleared."""
    first = make_session()
    second = make_session()
    server.admit_session(first)
    server.admit_session(second)
    first.conn.clear()
    second.conn.clear()
    return server, first, second


@pytest.fixture
def live_server():
    """A NetworkServer listening on an ephemeral localhost port."""
    srv = NetworkServer("127.0.0.1", 0)
    srv.start()
    yield srv
    srv.stop()


@pytest.fixture
def client_factory(live_server):
    """Connect NetworkClients to the live server and close them afterwards."""
    clients = []

    def _connect():
        client = NetworkClient("127.0.0.1", live_server.port)
        assert client.connect()
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        client.close()
