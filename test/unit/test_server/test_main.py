"""
Server entry point tests.
"""

from tictactoe.server import main as server_main
from tictactoe.shared.constants import DEFAULT_HOST, DEFAULT_PORT


def test_server_entry_point_is_callable():
    assert callable(server_main.main)


def test_default_address(monkeypatch):
    monkeypatch.delenv("HOST", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    assert server_main.load_address() == (DEFAULT_HOST, DEFAULT_PORT)


def test_address_from_environment(monkeypatch):
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "6000")
    assert server_main.load_address() == ("127.0.0.1", 6000)


def test_invalid_port_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    assert server_main.load_address()[1] == DEFAULT_PORT
