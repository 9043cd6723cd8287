"""
Test suite for the Onlypoly network layer.

Drives the server end to end through mock sockets: connection handshake,
lobby, turns, auctions, trades, bankruptcy and session restore.

Run from project root: python -m pytest tests/test_network -v
Or run directly: python tests/test_network/test_network.py
"""

import asyncio
import json
import os
import sys
import tempfile
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from onlypoly.game_engine import DiceResult
from onlypoly.network import ConnectionManager, GameManager, OnlypolyServer
from onlypoly.persistence import RoomRepository, init_database
from shared.enums import MessageType


# =============================================================================
# Test doubles
# =============================================================================

class MockWebSocket:
    """Mock WebSocket for testing without real connections."""

    def __init__(self, id: str, inbox: list[str] | None = None):
        self.id = id
        self.sent_messages = []
        self.inbox = list(inbox or [])
        self.closed = False

    async def send(self, data: str) -> None:
        if self.closed:
            raise ConnectionError("Connection closed")
        self.sent_messages.append(data)

    async def recv(self) -> str:
        if not self.inbox:
            await asyncio.sleep(3600)
        return self.inbox.pop(0)

    async def close(self) -> None:
        self.closed = True

    def get_messages(self) -> list[dict]:
        return [json.loads(m) for m in self.sent_messages]

    def types(self) -> list[str]:
        return [m["type"] for m in self.get_messages()]

    def last(self, message_type: MessageType) -> dict | None:
        for message in reversed(self.get_messages()):
            if message["type"] == message_type.value:
                return message
        return None

    def clear(self) -> None:
        self.sent_messages = []


class LoadedDice:
    """Dice that return queued rolls in order."""

    def __init__(self):
        self.rolls = []

    def queue(self, die1: int, die2: int) -> None:
        self.rolls.append(DiceResult(die1, die2))

    def roll(self) -> DiceResult:
        return self.rolls.pop(0)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# =============================================================================
# Connection manager
# =============================================================================

class ConnectionManagerTests(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.manager = ConnectionManager()

    async def test_register_and_bind(self):
        ws = MockWebSocket("a")
        connection = await self.manager.register(ws)

        self.assertEqual(self.manager.connection_count, 1)
        self.assertIsNone(self.manager.get_player_id(connection.connection_id))

        self.assertTrue(await self.manager.bind_player(connection.connection_id, "p1"))
        self.assertEqual(self.manager.get_player_id(connection.connection_id), "p1")
        self.assertEqual(self.manager.get_connection_id("p1"), connection.connection_id)
        self.assertTrue(self.manager.is_player_connected("p1"))

    async def test_rebinding_moves_player(self):
        old = await self.manager.register(MockWebSocket("old"))
        new = await self.manager.register(MockWebSocket("new"))
        await self.manager.bind_player(old.connection_id, "p1")
        await self.manager.bind_player(new.connection_id, "p1")

        self.assertIsNone(self.manager.get_player_id(old.connection_id))
        self.assertEqual(self.manager.get_connection_id("p1"), new.connection_id)

        # Closing the stale socket must not unbind the player
        await self.manager.unregister(old.connection_id)
        self.assertTrue(self.manager.is_player_connected("p1"))

    async def test_unregister_and_unbind(self):
        connection = await self.manager.register(MockWebSocket("a"))
        await self.manager.bind_player(connection.connection_id, "p1")

        self.assertEqual(await self.manager.unbind_player(connection.connection_id), "p1")
        self.assertFalse(self.manager.is_player_connected("p1"))
        self.assertEqual(self.manager.connection_count, 1)

        removed = await self.manager.unregister(connection.connection_id)
        self.assertEqual(removed.websocket.id, "a")
        self.assertEqual(self.manager.connection_count, 0)
        self.assertIsNone(await self.manager.unregister(connection.connection_id))

    async def test_send_and_broadcast(self):
        ws_a, ws_b = MockWebSocket("a"), MockWebSocket("b")
        a = await self.manager.register(ws_a)
        await self.manager.register(ws_b)
        await self.manager.bind_player(a.connection_id, "p1")

        self.assertTrue(await self.manager.send_to_player("p1", {"type": "PING"}))
        self.assertFalse(await self.manager.send_to_player("nobody", {"type": "PING"}))
        self.assertEqual(ws_a.types(), ["PING"])
        self.assertEqual(ws_b.types(), [])

        self.assertEqual(await self.manager.broadcast_to_all({"type": "HELLO"}), 2)
        self.assertEqual(ws_b.types(), ["HELLO"])

    async def test_failed_send_is_reported(self):
        ws = MockWebSocket("a")
        connection = await self.manager.register(ws)
        ws.closed = True
        self.assertFalse(await self.manager.send_to_connection(connection.connection_id, {"type": "X"}))


# =============================================================================
# Server flows
# =============================================================================

class ServerTestCase(unittest.IsolatedAsyncioTestCase):
    """Server backed by a temporary database, driven through mock sockets."""

    async def asyncSetUp(self):
        temp_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
        self.db_path = temp_file.name
        temp_file.close()

        self.db = init_database(self.db_path)
        self.repository = RoomRepository(self.db)
        self.dice = LoadedDice()
        self.clock = FakeClock()
        self.games = GameManager(
            self.repository,
            room_id="test_room",
            auction_duration=30,
            clock=self.clock,
            dice=self.dice,
        )
        self.server = OnlypolyServer(game_manager=self.games)
        self.connections = self.server.connections

    async def asyncTearDown(self):
        await self.games.stop()
        self.db.close_connection()
        for suffix in ("", "-wal", "-shm"):
            path = self.db_path + suffix
            if os.path.exists(path):
                os.unlink(path)

    async def connect(self, name: str) -> tuple[str, MockWebSocket]:
        ws = MockWebSocket(name)
        connection = await self.connections.register(ws)
        return connection.connection_id, ws

    async def send(self, connection_id: str, message_type: MessageType, **data) -> None:
        raw = json.dumps({"type": message_type.value, "data": data})
        await self.server._handle_message(connection_id, raw)

    async def join(self, name: str) -> tuple[str, MockWebSocket, str]:
        connection_id, ws = await self.connect(name)
        await self.send(connection_id, MessageType.JOIN_LOBBY, name=name)
        joined = ws.last(MessageType.JOINED)
        return connection_id, ws, joined["data"]["player_id"]

    async def start_with(self, *names: str) -> list[tuple[str, MockWebSocket, str]]:
        seats = [await self.join(name) for name in names]
        for connection_id, _, _ in seats:
            await self.send(connection_id, MessageType.SET_READY, ready=True)
        await self.send(seats[0][0], MessageType.START_GAME)
        for _, ws, _ in seats:
            ws.clear()
        return seats


class HandshakeTests(ServerTestCase):

    async def test_connect_sends_id_and_state(self):
        ws = MockWebSocket("a", inbox=[json.dumps({"type": "CONNECT", "data": {}})])
        connection = await self.server._handle_connect(ws)

        self.assertIsNotNone(connection)
        self.assertEqual(ws.types(), ["CONNECTED", "STATE_UPDATE"])
        self.assertEqual(ws.get_messages()[0]["data"]["connection_id"], connection.connection_id)

    async def test_first_frame_must_be_connect(self):
        ws = MockWebSocket("a", inbox=[json.dumps({"type": "JOIN_LOBBY", "data": {"name": "x"}})])
        self.assertIsNone(await self.server._handle_connect(ws))
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "CONNECT_REQUIRED")
        self.assertEqual(self.connections.connection_count, 0)

    async def test_garbage_first_frame(self):
        ws = MockWebSocket("a", inbox=["{not json"])
        self.assertIsNone(await self.server._handle_connect(ws))
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "PARSE_ERROR")

    async def test_session_restore_after_disconnect(self):
        (alice_cid, _, alice_id), (_, bob_ws, bob_id) = await self.start_with("Alice", "Bob")

        await self.server._handle_disconnect(alice_cid)
        self.assertIn(alice_id, self.games.game.players)
        self.assertIsNone(self.repository.get_player(alice_id).connection_id)

        ws = MockWebSocket("a2", inbox=[json.dumps({
            "type": "CONNECT",
            "data": {"session_id": alice_id},
        })])
        connection = await self.server._handle_connect(ws)

        self.assertEqual(ws.types(), ["CONNECTED", "SESSION_RESTORED", "STATE_UPDATE"])
        restored = ws.last(MessageType.SESSION_RESTORED)["data"]
        self.assertEqual(restored["player_id"], alice_id)
        self.assertEqual(restored["name"], "Alice")
        self.assertEqual(restored["host_id"], alice_id)
        self.assertEqual(self.connections.get_player_id(connection.connection_id), alice_id)

        # The restored connection can act for the player
        self.dice.queue(1, 2)
        await self.send(connection.connection_id, MessageType.ROLL_DICE)
        self.assertIsNotNone(bob_ws.last(MessageType.DICE_ROLLED))

    async def test_unknown_session(self):
        ws = MockWebSocket("a", inbox=[json.dumps({
            "type": "CONNECT",
            "data": {"session_id": "no-such-player"},
        })])
        connection = await self.server._handle_connect(ws)

        self.assertEqual(ws.types(), ["CONNECTED", "SESSION_INVALID", "STATE_UPDATE"])
        self.assertIsNone(self.connections.get_player_id(connection.connection_id))


class LobbyTests(ServerTestCase):

    async def test_join_replies_and_broadcasts(self):
        _, alice_ws, alice_id = await self.join("Alice")
        _, bob_ws, bob_id = await self.join("Bob")

        joined = bob_ws.last(MessageType.JOINED)["data"]
        self.assertEqual(joined["player_id"], bob_id)
        self.assertEqual(joined["host_id"], alice_id)
        self.assertTrue(joined["token"])

        state = alice_ws.last(MessageType.STATE_UPDATE)["data"]
        self.assertEqual(set(state["players"]), {alice_id, bob_id})
        self.assertEqual(self.repository.get_player(bob_id).room_id, "test_room")

    async def test_join_rejections(self):
        cid, ws = await self.connect("x")
        await self.send(cid, MessageType.JOIN_LOBBY, name="  ")
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "INVALID_PAYLOAD")

        await self.join("Alice")
        await self.send(cid, MessageType.JOIN_LOBBY, name="Bob", color="#abc")
        other_cid, other_ws = await self.connect("y")
        await self.send(other_cid, MessageType.JOIN_LOBBY, name="Carol", color="#abc")
        self.assertEqual(other_ws.last(MessageType.JOIN_ERROR)["data"]["reason"], "color_taken")

    async def test_player_cannot_be_taken_over(self):
        _, _, alice_id = await self.join("Alice")
        cid, ws = await self.connect("intruder")
        await self.send(cid, MessageType.JOIN_LOBBY, name="Mallory", existing_id=alice_id)

        self.assertIsNotNone(ws.last(MessageType.JOIN_ERROR))
        self.assertIsNone(self.connections.get_player_id(cid))

    async def test_start_requires_host_and_ready(self):
        alice_cid, alice_ws, _ = await self.join("Alice")
        bob_cid, bob_ws, _ = await self.join("Bob")

        await self.send(alice_cid, MessageType.START_GAME)
        self.assertEqual(alice_ws.last(MessageType.ACTION_REJECTED)["data"]["reason"], "cannot_start_game")

        await self.send(alice_cid, MessageType.SET_READY, ready=True)
        await self.send(bob_cid, MessageType.SET_READY, ready=True)
        await self.send(bob_cid, MessageType.START_GAME)
        self.assertEqual(bob_ws.last(MessageType.ACTION_REJECTED)["data"]["reason"], "not_host")

        await self.send(alice_cid, MessageType.START_GAME)
        self.assertTrue(self.games.game.started)
        self.assertTrue(bob_ws.last(MessageType.STATE_UPDATE)["data"]["started"])

    async def test_lobby_disconnect_removes_player(self):
        _, alice_ws, alice_id = await self.join("Alice")
        bob_cid, _, bob_id = await self.join("Bob")
        alice_ws.clear()

        await self.server._handle_disconnect(bob_cid)

        self.assertNotIn(bob_id, self.games.game.players)
        self.assertIsNone(self.repository.get_player(bob_id))
        self.assertEqual(set(alice_ws.last(MessageType.STATE_UPDATE)["data"]["players"]), {alice_id})

    async def test_leave_lobby_passes_host(self):
        alice_cid, _, _ = await self.join("Alice")
        _, _, bob_id = await self.join("Bob")

        await self.send(alice_cid, MessageType.LEAVE_LOBBY)

        self.assertEqual(self.games.game.host_id, bob_id)
        self.assertIsNone(self.connections.get_player_id(alice_cid))

    async def test_host_reset(self):
        (alice_cid, alice_ws, _), (bob_cid, bob_ws, _) = await self.start_with("Alice", "Bob")

        await self.send(bob_cid, MessageType.RESET_GAME)
        self.assertEqual(bob_ws.last(MessageType.ACTION_REJECTED)["data"]["reason"], "not_host")

        await self.send(alice_cid, MessageType.RESET_GAME)
        self.assertEqual(bob_ws.last(MessageType.GAME_RESET)["data"]["reason"], "host_reset")
        self.assertFalse(self.games.game.started)
        self.assertEqual(self.games.game.players, {})
        self.assertEqual(self.repository.get_room("test_room")["players"], {})

    async def test_abandoned_game_is_reset_on_join(self):
        (alice_cid, _, _), (bob_cid, _, _) = await self.start_with("Alice", "Bob")
        await self.server._handle_disconnect(alice_cid)
        await self.server._handle_disconnect(bob_cid)

        _, carol_ws, carol_id = await self.join("Carol")

        self.assertIn("GAME_RESET", carol_ws.types())
        self.assertEqual(carol_ws.last(MessageType.GAME_RESET)["data"]["reason"], "abandoned")
        self.assertEqual(list(self.games.game.players), [carol_id])
        self.assertEqual(self.games.game.host_id, carol_id)


class MessageErrorTests(ServerTestCase):

    async def test_parse_errors(self):
        cid, ws = await self.connect("a")

        await self.server._handle_message(cid, "{broken")
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "PARSE_ERROR")

        await self.server._handle_message(cid, json.dumps({"type": "FLY_TO_MOON"}))
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "UNKNOWN_MESSAGE_TYPE")

        await self.server._handle_message(cid, json.dumps({"type": "SET_COLOR", "data": [1]}))
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "INVALID_PAYLOAD")

        await self.server._handle_message(cid, json.dumps([1, 2]))
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "PARSE_ERROR")

    async def test_server_only_types_are_unknown(self):
        cid, ws = await self.connect("a")
        await self.send(cid, MessageType.DICE_ROLLED)
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "UNKNOWN_MESSAGE_TYPE")

    async def test_must_join_first(self):
        cid, ws = await self.connect("a")
        await self.send(cid, MessageType.ROLL_DICE)
        self.assertEqual(ws.last(MessageType.ERROR)["data"]["code"], "NOT_JOINED")

    async def test_bad_field_types(self):
        (alice_cid, alice_ws, _), _ = await self.start_with("Alice", "Bob")
        await self.send(alice_cid, MessageType.BUY_PROPERTY, property_id="6")
        self.assertEqual(alice_ws.last(MessageType.ERROR)["data"]["code"], "INVALID_PAYLOAD")

    async def test_request_id_is_echoed(self):
        cid, ws = await self.connect("a")
        await self.server._handle_message(cid, json.dumps({"type": "GAME_STATE", "request_id": "r1"}))
        self.assertEqual(ws.last(MessageType.STATE_UPDATE)["request_id"], "r1")


class TurnTests(ServerTestCase):

    async def test_roll_is_broadcast(self):
        (alice_cid, alice_ws, alice_id), (_, bob_ws, _) = await self.start_with("Alice", "Bob")
        self.dice.queue(2, 4)

        await self.send(alice_cid, MessageType.ROLL_DICE)

        for ws in (alice_ws, bob_ws):
            self.assertEqual(ws.types(), ["DICE_ROLLED", "STATE_UPDATE"])
        rolled = bob_ws.last(MessageType.DICE_ROLLED)["data"]
        self.assertEqual(rolled["player_id"], alice_id)
        self.assertEqual(rolled["dice"], {"d1": 2, "d2": 4, "total": 6})
        self.assertEqual(rolled["tile"]["id"], 6)
        self.assertEqual(rolled["events"], [{"type": "unowned_property", "property_id": 6}])

    async def test_rejection_goes_only_to_initiator(self):
        (_, alice_ws, _), (bob_cid, bob_ws, _) = await self.start_with("Alice", "Bob")

        await self.send(bob_cid, MessageType.ROLL_DICE)

        rejected = bob_ws.last(MessageType.ACTION_REJECTED)["data"]
        self.assertEqual(rejected["reason"], "not_your_turn")
        self.assertEqual(rejected["action"], "ROLL_DICE")
        self.assertEqual(alice_ws.types(), [])

    async def test_buy_and_end_turn(self):
        (alice_cid, _, alice_id), (_, bob_ws, bob_id) = await self.start_with("Alice", "Bob")
        self.dice.queue(2, 4)

        await self.send(alice_cid, MessageType.ROLL_DICE)
        await self.send(alice_cid, MessageType.BUY_PROPERTY, property_id=6)
        await self.send(alice_cid, MessageType.END_TURN)

        state = bob_ws.last(MessageType.STATE_UPDATE)["data"]
        self.assertIn("6", state["players"][alice_id]["properties"])
        self.assertEqual(state["current_player_id"], bob_id)

    async def test_jail_skip_is_announced(self):
        (alice_cid, _, alice_id), (_, bob_ws, _) = await self.start_with("Alice", "Bob")
        self.games.game.send_to_jail(alice_id)

        await self.send(alice_cid, MessageType.END_TURN)

        skipped = bob_ws.last(MessageType.JAIL_TURN_SKIPPED)["data"]
        self.assertEqual(skipped["player_id"], alice_id)
        self.assertEqual(skipped["turns_remaining"], 1)

    async def test_pay_jail_fine(self):
        (alice_cid, _, alice_id), (_, bob_ws, _) = await self.start_with("Alice", "Bob")
        self.games.game.send_to_jail(alice_id)

        await self.send(alice_cid, MessageType.PAY_JAIL_FINE)

        self.assertEqual(bob_ws.last(MessageType.JAIL_PAID)["data"]["player_id"], alice_id)
        self.assertFalse(self.games.game.players[alice_id].in_jail)


class AuctionFlowTests(ServerTestCase):

    async def test_bid_and_late_bid_resolution(self):
        (alice_cid, alice_ws, _), (bob_cid, bob_ws, bob_id) = await self.start_with("Alice", "Bob")
        self.dice.queue(2, 4)
        await self.send(alice_cid, MessageType.ROLL_DICE)

        await self.send(alice_cid, MessageType.START_AUCTION, property_id=6)
        started = bob_ws.last(MessageType.AUCTION_STARTED)["data"]
        self.assertEqual(started["property_id"], 6)
        self.assertTrue(started["active"])

        await self.send(bob_cid, MessageType.AUCTION_BID, step=50)
        updated = alice_ws.last(MessageType.AUCTION_UPDATED)["data"]
        self.assertEqual((updated["highest_bid"], updated["highest_bidder"]), (50, bob_id))

        await self.send(alice_cid, MessageType.AUCTION_BID, step=7)
        self.assertEqual(alice_ws.last(MessageType.ACTION_REJECTED)["data"]["reason"], "invalid_bid_step")

        self.clock.now += 31
        await self.send(alice_cid, MessageType.AUCTION_BID, step=100)

        self.assertEqual(alice_ws.last(MessageType.ACTION_REJECTED)["data"]["reason"], "auction_ended")
        finished = bob_ws.last(MessageType.AUCTION_FINISHED)["data"]
        self.assertFalse(finished["active"])
        self.assertEqual(finished["highest_bidder"], bob_id)
        self.assertEqual(self.games.game.find_owner(6), bob_id)

        # Auction results are written before they are announced
        stored = self.repository.get_room("test_room")
        self.assertIn("6", stored["players"][bob_id]["properties"])

    async def test_timer_announces_result(self):
        self.games.room.auctions.duration = 0.05
        self.games.room.auctions.clock = lambda: 0.0
        (alice_cid, _, _), (_, bob_ws, _) = await self.start_with("Alice", "Bob")
        self.dice.queue(2, 4)
        await self.send(alice_cid, MessageType.ROLL_DICE)

        await self.send(alice_cid, MessageType.START_AUCTION, property_id=6)
        await asyncio.sleep(0.5)

        finished = bob_ws.last(MessageType.AUCTION_FINISHED)["data"]
        self.assertIsNone(finished["highest_bidder"])
        self.assertIsNone(self.games.game.find_owner(6))


class TradeFlowTests(ServerTestCase):

    async def test_propose_and_accept(self):
        (alice_cid, alice_ws, alice_id), (bob_cid, bob_ws, bob_id) = await self.start_with("Alice", "Bob")
        game = self.games.game
        game.assign_property(5, alice_id)
        game.assign_property(9, bob_id)

        await self.send(
            alice_cid, MessageType.PROPOSE_TRADE,
            to_player_id=bob_id, offer_money=300,
            offer_properties=[5], request_properties=[9],
        )
        offer = bob_ws.last(MessageType.TRADE_OFFER)["data"]
        self.assertEqual(offer["from_player_id"], alice_id)
        self.assertEqual(alice_ws.last(MessageType.TRADE_OFFER)["data"]["id"], offer["id"])

        await self.send(bob_cid, MessageType.ACCEPT_TRADE, trade_id=offer["id"])

        for ws in (alice_ws, bob_ws):
            self.assertEqual(ws.last(MessageType.TRADE_UPDATED)["data"]["status"], "ACCEPTED")
        self.assertEqual(game.find_owner(5), bob_id)
        self.assertEqual(game.find_owner(9), alice_id)

    async def test_reject_notifies_other_party(self):
        (alice_cid, alice_ws, alice_id), (bob_cid, bob_ws, bob_id) = await self.start_with("Alice", "Bob")
        await self.send(alice_cid, MessageType.PROPOSE_TRADE, to_player_id=bob_id, offer_money=10)
        trade_id = bob_ws.last(MessageType.TRADE_OFFER)["data"]["id"]

        await self.send(bob_cid, MessageType.REJECT_TRADE, trade_id=trade_id)

        self.assertEqual(alice_ws.last(MessageType.TRADE_UPDATED)["data"]["status"], "REJECTED")
        self.assertEqual(bob_ws.last(MessageType.TRADE_UPDATED)["data"]["status"], "REJECTED")

    async def test_invalid_trade_is_rejected(self):
        (alice_cid, alice_ws, _), (_, bob_ws, bob_id) = await self.start_with("Alice", "Bob")
        await self.send(alice_cid, MessageType.PROPOSE_TRADE, to_player_id=bob_id, offer_properties=[9])

        self.assertEqual(alice_ws.last(MessageType.ACTION_REJECTED)["data"]["reason"], "invalid_trade")
        self.assertIsNone(bob_ws.last(MessageType.TRADE_OFFER))


class BankruptcyFlowTests(ServerTestCase):

    async def test_bankruptcy_then_game_over(self):
        seats = await self.start_with("Alice", "Bob", "Carol")
        (alice_cid, alice_ws, alice_id), (bob_cid, _, _), (carol_cid, _, carol_id) = seats

        await self.send(carol_cid, MessageType.PROPOSE_TRADE, to_player_id=alice_id, offer_money=10)
        await self.send(carol_cid, MessageType.DECLARE_BANKRUPTCY)

        self.assertEqual(alice_ws.last(MessageType.PLAYER_BANKRUPT)["data"]["player_id"], carol_id)
        failed = alice_ws.last(MessageType.TRADE_UPDATED)["data"]
        self.assertEqual(failed["status"], "FAILED")
        self.assertIsNone(alice_ws.last(MessageType.GAME_OVER))

        await self.send(bob_cid, MessageType.DECLARE_BANKRUPTCY)

        over = alice_ws.last(MessageType.GAME_OVER)["data"]
        self.assertEqual(over["winner_id"], alice_id)
        self.assertEqual(over["winner_name"], "Alice")
        self.assertEqual(self.repository.get_room("test_room")["winner_id"], alice_id)


def run_tests():
    """Run all network tests."""
    loader = unittest.TestLoader()
    suite = loader.loadTestsFromModule(sys.modules[__name__])
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
