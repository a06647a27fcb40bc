"""
Live Channel Unit Tests

Tests for room binding and best-effort delivery through a mock SocketIO.
"""

from src.services.connection_registry import ConnectionRegistry
from src.services.live_channel import LiveChannel
from tests.helpers.socket_mocks import MockSocketIOTestHelper, create_mock_socketio


class TestRoomBinding:
    """Test bind/unbind against the Socket.IO server"""

    def setup_method(self):
        self.socketio = create_mock_socketio()
        self.channel = LiveChannel(self.socketio, ConnectionRegistry())

    def test_bind_enters_room(self):
        assert self.channel.bind('sid-1', 'board-1') is True
        self.socketio.server.enter_room.assert_called_once_with('sid-1', 'board-1', namespace='/')

    def test_unbind_leaves_room(self):
        assert self.channel.unbind('sid-1', 'board-1') is True
        self.socketio.server.leave_room.assert_called_once_with('sid-1', 'board-1', namespace='/')

    def test_transport_errors_are_contained(self):
        self.socketio.server.enter_room.side_effect = KeyError('sid-1')
        self.socketio.server.leave_room.side_effect = ValueError('gone')

        assert self.channel.bind('sid-1', 'board-1') is False
        assert self.channel.unbind('sid-1', 'board-1') is False


class TestDelivery:
    """Test single-connection sends and room broadcasts"""

    def setup_method(self):
        self.socketio = create_mock_socketio()
        self.helper = MockSocketIOTestHelper(self.socketio)
        self.registry = ConnectionRegistry()
        self.channel = LiveChannel(self.socketio, self.registry)

    def test_send_to_connected_sid(self):
        self.registry.register('sid-1')

        assert self.channel.send('sid-1', 'left', {}) is True
        self.helper.assert_emitted_to('left', 'sid-1', {})

    def test_send_to_gone_sid_is_dropped(self):
        assert self.channel.send('sid-gone', 'joined', {'boardId': 'b'}) is False
        self.helper.assert_emit_not_called()

    def test_send_error_is_contained(self):
        self.registry.register('sid-1')
        self.socketio.emit.side_effect = RuntimeError('transport closed')

        assert self.channel.send('sid-1', 'left', {}) is False

    def test_broadcast_excludes_sender(self):
        self.channel.broadcast('board-1', 'playerAdded', {'displayName': 'Ada'}, exclude_sid='sid-1')

        self.socketio.emit.assert_called_once_with(
            'playerAdded', {'displayName': 'Ada'}, to='board-1', skip_sid='sid-1', namespace='/'
        )

    def test_broadcast_without_exclusion(self):
        self.channel.broadcast('board-1', 'playerEvicted', {'playerId': 'p1'})

        matching = self.helper.assert_emitted_to('playerEvicted', 'board-1')
        assert matching[0][1]['skip_sid'] is None

    def test_broadcast_error_is_contained(self):
        self.socketio.emit.side_effect = RuntimeError('boom')

        assert self.channel.broadcast('board-1', 'playerRemoved', {'playerId': 'p1'}) is False

    def test_custom_namespace(self):
        channel = LiveChannel(self.socketio, self.registry, namespace='/lobby')
        channel.broadcast('board-1', 'playerAdded', {'displayName': 'Ada'})

        assert self.socketio.emit.call_args[1]['namespace'] == '/lobby'
