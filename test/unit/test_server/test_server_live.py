"""
End-to-end tests over real localhost sockets.
"""

import socket
import threading
import time

from tictactoe.shared.protocols import ServerMsgType, parse_game_state

TIMEOUT = 3.0


def expect(client, msg_type):
    msg = client.next_event(timeout=TIMEOUT)
    assert msg is not None, f"timed out waiting for {msg_type.value}"
    assert msg.type is msg_type, f"expected {msg_type.value}, got {msg.encode()!r}"
    return msg


def expect_state(client, board, current_player, outcome="CONTINUE"):
    msg = expect(client, ServerMsgType.GAME_STATE)
    assert msg.payload == f"{board}|{current_player}|{outcome}"
    return parse_game_state(msg.payload)


def wait_until(predicate, timeout=TIMEOUT):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def pair(client_factory):
    a = client_factory()
    assert expect(a, ServerMsgType.PLAYER).payload == "1"
    b = client_factory()
    assert expect(b, ServerMsgType.PLAYER).payload == "2"
    expect_state(a, " " * 9, 0)
    expect_state(b, " " * 9, 0)
    return a, b


def test_full_game_ends_with_column_win(client_factory, live_server):
    a, b = pair(client_factory)
    assert a.player_number == 1
    assert b.player_number == 2
    assert a.is_my_turn and not b.is_my_turn

    a.send_move(4)
    expect_state(a, "    X    ", 1)
    expect_state(b, "    X    ", 1)

    boards = [
        (b, 1, " O  X    ", 0),
        (a, 0, "XO  X    ", 1),
        (b, 5, "XO  XO   ", 0),
        (a, 3, "XO XXO   ", 1),
        (b, 8, "XO XXO  O", 0),
    ]
    for mover, cell, board, nxt in boards:
        mover.send_move(cell)
        expect_state(a, board, nxt)
        expect_state(b, board, nxt)

    a.send_move(6)
    final_a = expect_state(a, "XO XXOX O", 0, "WIN:0")
    expect_state(b, "XO XXOX O", 0, "WIN:0")
    assert final_a.outcome.winner == 0
    assert not a.is_my_turn and not b.is_my_turn
    assert not live_server.match.in_progress


def test_out_of_turn_and_invalid_moves(client_factory):
    a, b = pair(client_factory)
    b.send_move(0)
    expect(b, ServerMsgType.NOT_YOUR_TURN)
    a.send_raw(b"MOVE:banana\n")
    expect(a, ServerMsgType.INVALID_MOVE)
    a.send_move(4)
    expect_state(a, "    X    ", 1)
    expect_state(b, "    X    ", 1)
    b.send_move(4)
    expect(b, ServerMsgType.INVALID_MOVE)
    assert a.next_event(timeout=0.2) is None


def test_split_and_combined_frames(client_factory):
    a, b = pair(client_factory)
    a.send_raw(b"MO")
    time.sleep(0.05)
    a.send_raw(b"VE:4\n")
    expect_state(a, "    X    ", 1)
    expect_state(b, "    X    ", 1)
    b.send_raw(b"MOVE:0\nMOVE:1\n")
    expect_state(b, "O   X    ", 0)
    expect(b, ServerMsgType.NOT_YOUR_TURN)


def test_move_before_pairing_gets_wait(client_factory):
    a = client_factory()
    expect(a, ServerMsgType.PLAYER)
    a.send_move(4)
    expect(a, ServerMsgType.WAIT)


def test_third_connection_waits_then_pairs_with_survivor(client_factory, live_server):
    a, b = pair(client_factory)
    a.send_move(4)
    expect_state(a, "    X    ", 1)
    expect_state(b, "    X    ", 1)

    c = client_factory()
    # held at accept while both slots are taken
    assert c.next_event(timeout=0.3) is None

    a.close()
    expect(b, ServerMsgType.OPPONENT_DISCONNECTED)
    assert expect(c, ServerMsgType.PLAYER).payload == "1"
    # exactly one notice, then the fresh board
    expect_state(b, " " * 9, 0)
    expect_state(c, " " * 9, 0)
    assert b.player_number == 2
    assert live_server.match.in_progress

    c.send_move(0)
    expect_state(b, "X        ", 1)
    expect_state(c, "X        ", 1)


def test_stop_disconnects_everyone(client_factory, live_server):
    a, b = pair(client_factory)
    live_server.stop()
    assert not live_server.running
    assert wait_until(lambda: not a.connected and not b.connected)
    assert wait_until(lambda: live_server.registry.count() == 0)


def test_bare_move_without_newline_is_played(client_factory):
    a, b = pair(client_factory)
    a.send_raw(b"MOVE:4")
    expect_state(a, "    X    ", 1)
    expect_state(b, "    X    ", 1)


def test_opponent_disconnected_arrives_as_a_bare_tag(client_factory, live_server):
    a = client_factory()
    expect(a, ServerMsgType.PLAYER)
    raw = socket.create_connection(("127.0.0.1", live_server.port), timeout=TIMEOUT)
    try:
        greeting = b""
        while not greeting.endswith(b"|0|CONTINUE"):
            chunk = raw.recv(1024)
            assert chunk
            greeting += chunk
        assert greeting == b"PLAYER:2GAME_STATE:         |0|CONTINUE"
        a.close()
        assert raw.recv(1024) == b"OPPONENT_DISCONNECTED"
    finally:
        raw.close()


def test_client_that_never_reads_does_not_stall_the_other(client_factory, live_server):
    a = socket.create_connection(("127.0.0.1", live_server.port), timeout=TIMEOUT)
    try:
        assert wait_until(lambda: live_server.registry.count() == 1)
        b = client_factory()
        expect(b, ServerMsgType.PLAYER)
        expect_state(b, " " * 9, 0)

        def flood():
            try:
                a.sendall(b"MOVE:9" * 400000)
            except OSError:
                pass

        flooder = threading.Thread(target=flood, daemon=True)
        flooder.start()
        time.sleep(0.2)

        b.send_move(0)
        reply = b.next_event(timeout=TIMEOUT)
        assert reply is not None
        assert reply.type in (
            ServerMsgType.NOT_YOUR_TURN,
            ServerMsgType.WAIT,
            ServerMsgType.OPPONENT_DISCONNECTED,
        )

        stopper = threading.Thread(target=live_server.stop, daemon=True)
        stopper.start()
        stopper.join(timeout=5)
        assert not stopper.is_alive()
    finally:
        a.close()
