"""
Session Store Unit Tests

Tests for InMemorySessionStore covering board and player documents, member
list operations, copy isolation and thread safety.
"""

import threading
from datetime import datetime

import pytest

from src.core.errors import BoardNotFoundError, DuplicatePinError
from src.store import InMemorySessionStore, SessionStore


class TestBoardDocuments:
    """Test board creation, lookup and persistence"""

    def setup_method(self):
        self.store = InMemorySessionStore()

    def test_store_implements_interface(self):
        assert isinstance(self.store, SessionStore)

    def test_create_board_structure(self):
        board = self.store.create_board('4821')

        assert board['pin'] == '4821'
        assert board['players'] == []
        assert isinstance(board['board_id'], str) and board['board_id']
        assert isinstance(board['created_at'], datetime)
        assert board['created_at'] == board['updated_at']

    def test_create_board_duplicate_pin_rejected(self):
        self.store.create_board('4821')

        with pytest.raises(DuplicatePinError):
            self.store.create_board('4821')

    def test_find_board_by_pin_and_id(self):
        board = self.store.create_board('4821')

        assert self.store.find_board_by_pin('4821')['board_id'] == board['board_id']
        assert self.store.find_board_by_id(board['board_id'])['pin'] == '4821'
        assert self.store.find_board_by_pin('9999') is None
        assert self.store.find_board_by_id('missing') is None

    def test_find_boards_with_predicate(self):
        self.store.create_board('1111')
        self.store.create_board('2222')

        found = self.store.find_boards(lambda b: b['pin'].startswith('2'))

        assert [b['pin'] for b in found] == ['2222']

    def test_save_board_replaces_document(self):
        board = self.store.create_board('4821')
        board['pin'] = '1234'

        saved = self.store.save_board(board)

        assert saved['pin'] == '1234'
        assert self.store.find_board_by_pin('4821') is None
        assert self.store.find_board_by_pin('1234')['board_id'] == board['board_id']

    def test_save_deleted_board_raises(self):
        board = self.store.create_board('4821')
        self.store.delete_board(board['board_id'])

        with pytest.raises(BoardNotFoundError):
            self.store.save_board(board)

    def test_save_board_pin_collision_raises(self):
        self.store.create_board('1111')
        board = self.store.create_board('2222')
        board['pin'] = '1111'

        with pytest.raises(DuplicatePinError):
            self.store.save_board(board)

    def test_delete_board(self):
        board = self.store.create_board('4821')

        assert self.store.delete_board(board['board_id']) is True
        assert self.store.delete_board(board['board_id']) is False
        assert self.store.find_board_by_id(board['board_id']) is None


class TestBoardMembers:
    """Test single-document member list operations"""

    def setup_method(self):
        self.store = InMemorySessionStore()
        self.board = self.store.create_board('4821')
        self.board_id = self.board['board_id']

    def test_append_member_preserves_order(self):
        self.store.append_board_member(self.board_id, 'p1')
        self.store.append_board_member(self.board_id, 'p2')

        assert self.store.find_board_by_id(self.board_id)['players'] == ['p1', 'p2']

    def test_append_same_member_twice_is_idempotent(self):
        self.store.append_board_member(self.board_id, 'p1')
        self.store.append_board_member(self.board_id, 'p1')

        assert self.store.find_board_by_id(self.board_id)['players'] == ['p1']

    def test_append_to_missing_board_raises(self):
        with pytest.raises(BoardNotFoundError):
            self.store.append_board_member('missing', 'p1')

    def test_remove_member(self):
        self.store.append_board_member(self.board_id, 'p1')
        self.store.append_board_member(self.board_id, 'p2')

        assert self.store.remove_board_member(self.board_id, 'p1') is True
        assert self.store.find_board_by_id(self.board_id)['players'] == ['p2']

    def test_remove_non_member_returns_false(self):
        assert self.store.remove_board_member(self.board_id, 'ghost') is False
        assert self.store.remove_board_member('missing', 'p1') is False


class TestPlayerDocuments:
    """Test player creation, update and deletion"""

    def setup_method(self):
        self.store = InMemorySessionStore()

    def test_create_player_structure(self):
        player = self.store.create_player('Ada', {'avatar': 'owl'})

        assert player['display_name'] == 'Ada'
        assert player['score'] == 0
        assert player['state'] == {'avatar': 'owl'}
        assert player['player_id']

    def test_player_ids_are_unique(self):
        ids = {self.store.create_player('Ada')['player_id'] for _ in range(50)}
        assert len(ids) == 50

    def test_update_player(self):
        player = self.store.create_player('Ada')

        updated = self.store.update_player(player['player_id'], {'score': 7})

        assert updated['score'] == 7
        assert updated['updated_at'] >= player['updated_at']

    def test_update_player_cannot_change_identity(self):
        player = self.store.create_player('Ada')

        updated = self.store.update_player(player['player_id'], {'player_id': 'other', 'created_at': None})

        assert updated['player_id'] == player['player_id']
        assert updated['created_at'] == player['created_at']

    def test_update_missing_player_returns_none(self):
        assert self.store.update_player('missing', {'score': 1}) is None

    def test_delete_player(self):
        player = self.store.create_player('Ada')

        assert self.store.delete_player(player['player_id']) is True
        assert self.store.delete_player(player['player_id']) is False
        assert self.store.find_player_by_id(player['player_id']) is None

    def test_find_players_by_ids_keeps_order_and_skips_missing(self):
        a = self.store.create_player('Ada')
        b = self.store.create_player('Bob')

        found = self.store.find_players_by_ids([b['player_id'], 'missing', a['player_id']])

        assert [p['display_name'] for p in found] == ['Bob', 'Ada']

    def test_get_stats(self):
        self.store.create_board('4821')
        self.store.create_player('Ada')
        self.store.create_player('Bob')

        assert self.store.get_stats() == {'boards': 1, 'players': 2}


class TestCopyIsolation:
    """Documents handed out are copies; mutating them never changes the store"""

    def setup_method(self):
        self.store = InMemorySessionStore()

    def test_board_reads_are_copies(self):
        board = self.store.create_board('4821')
        board['players'].append('intruder')

        fetched = self.store.find_board_by_id(board['board_id'])
        fetched['players'].append('intruder')

        assert self.store.find_board_by_id(board['board_id'])['players'] == []

    def test_player_reads_are_copies(self):
        player = self.store.create_player('Ada', {'avatar': 'owl'})
        player['state']['avatar'] = 'cat'

        assert self.store.find_player_by_id(player['player_id'])['state'] == {'avatar': 'owl'}


class TestStoreThreadSafety:
    """Concurrent single-document operations don't lose updates"""

    def test_concurrent_appends_all_land(self):
        store = InMemorySessionStore()
        board_id = store.create_board('4821')['board_id']

        def append(i):
            store.append_board_member(board_id, f'p{i}')

        threads = [threading.Thread(target=append, args=(i,)) for i in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.find_board_by_id(board_id)['players']) == 50
