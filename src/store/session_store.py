"""
Session Store for Quizboard

Durable repository of Board and Player documents. Every operation is atomic
on a single document; nothing here spans documents, so callers that need a
multi-document sequence (see MembershipService) order their writes themselves.

The in-memory implementation hands out deep copies: a caller that reads a
board, mutates it and saves it performs a real read-modify-write, exactly as
against a remote document database.
"""

import copy
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from src.core.errors import BoardNotFoundError, DuplicatePinError

logger = logging.getLogger(__name__)

Predicate = Callable[[Dict], bool]


class SessionStore(ABC):
    """Document store contract consumed by the membership engine."""

    @abstractmethod
    def find_board_by_pin(self, pin: str) -> Optional[Dict]:
        pass

    @abstractmethod
    def find_board_by_id(self, board_id: str) -> Optional[Dict]:
        pass

    @abstractmethod
    def find_boards(self, predicate: Predicate) -> List[Dict]:
        pass

    @abstractmethod
    def create_board(self, pin: str) -> Dict:
        pass

    @abstractmethod
    def save_board(self, board: Dict) -> Dict:
        pass

    @abstractmethod
    def append_board_member(self, board_id: str, player_id: str) -> Dict:
        """Atomically push ``player_id`` onto the board's member list."""
        pass

    @abstractmethod
    def remove_board_member(self, board_id: str, player_id: str) -> bool:
        """Atomically pull ``player_id`` from the member list; False if absent."""
        pass

    @abstractmethod
    def delete_board(self, board_id: str) -> bool:
        pass

    @abstractmethod
    def create_player(self, display_name: str, state: Optional[Dict] = None) -> Dict:
        pass

    @abstractmethod
    def find_player_by_id(self, player_id: str) -> Optional[Dict]:
        pass

    @abstractmethod
    def find_players(self, predicate: Predicate) -> List[Dict]:
        pass

    @abstractmethod
    def update_player(self, player_id: str, changes: Dict) -> Optional[Dict]:
        pass

    @abstractmethod
    def delete_player(self, player_id: str) -> bool:
        pass

    def find_players_by_ids(self, player_ids: Iterable[str]) -> List[Dict]:
        """
        Fetch several players, preserving the order of ``player_ids``.

        Ids with no matching document are skipped.
        """
        player_ids = list(player_ids)
        wanted = set(player_ids)
        found = {p['player_id']: p for p in self.find_players(lambda p: p['player_id'] in wanted)}
        return [found[pid] for pid in player_ids if pid in found]


class InMemorySessionStore(SessionStore):
    """Thread-safe in-process document store."""

    def __init__(self):
        self._boards: Dict[str, Dict] = {}
        self._players: Dict[str, Dict] = {}
        self._lock = threading.RLock()
        logger.info("InMemorySessionStore initialized")

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    # Boards

    def _create_board_document(self, pin: str) -> Dict:
        """Create board document structure."""
        now = datetime.now()
        return {
            "board_id": self._new_id(),
            "pin": pin,
            "players": [],
            "created_at": now,
            "updated_at": now
        }

    def find_board_by_pin(self, pin: str) -> Optional[Dict]:
        with self._lock:
            for board in self._boards.values():
                if board["pin"] == pin:
                    return copy.deepcopy(board)
            return None

    def find_board_by_id(self, board_id: str) -> Optional[Dict]:
        with self._lock:
            board = self._boards.get(board_id)
            return copy.deepcopy(board) if board else None

    def find_boards(self, predicate: Predicate) -> List[Dict]:
        with self._lock:
            return [copy.deepcopy(b) for b in self._boards.values() if predicate(b)]

    def create_board(self, pin: str) -> Dict:
        """
        Create a board with the given pin.

        Raises:
            DuplicatePinError: If an active board already uses the pin
        """
        with self._lock:
            if any(b["pin"] == pin for b in self._boards.values()):
                raise DuplicatePinError(f"Pin {pin} is already in use", {"pin": pin})

            board = self._create_board_document(pin)
            self._boards[board["board_id"]] = board
            logger.info(f"Created board {board['board_id']} with pin {pin}")
            return copy.deepcopy(board)

    def save_board(self, board: Dict) -> Dict:
        """
        Replace the stored board document with ``board``.

        Raises:
            BoardNotFoundError: If the board was deleted meanwhile
            DuplicatePinError: If the pin now collides with another board
        """
        board_id = board["board_id"]
        with self._lock:
            if board_id not in self._boards:
                raise BoardNotFoundError(f"Board {board_id} not found", {"board_id": board_id})

            for other_id, other in self._boards.items():
                if other_id != board_id and other["pin"] == board["pin"]:
                    raise DuplicatePinError(f"Pin {board['pin']} is already in use", {"pin": board["pin"]})

            stored = copy.deepcopy(board)
            stored["updated_at"] = datetime.now()
            self._boards[board_id] = stored
            return copy.deepcopy(stored)

    def append_board_member(self, board_id: str, player_id: str) -> Dict:
        """
        Push a member id onto a board.

        Raises:
            BoardNotFoundError: If the board doesn't exist
        """
        with self._lock:
            board = self._boards.get(board_id)
            if board is None:
                raise BoardNotFoundError(f"Board {board_id} not found", {"board_id": board_id})
            if player_id not in board["players"]:
                board["players"].append(player_id)
            board["updated_at"] = datetime.now()
            return copy.deepcopy(board)

    def remove_board_member(self, board_id: str, player_id: str) -> bool:
        with self._lock:
            board = self._boards.get(board_id)
            if board is None or player_id not in board["players"]:
                return False
            board["players"].remove(player_id)
            board["updated_at"] = datetime.now()
            return True

    def delete_board(self, board_id: str) -> bool:
        with self._lock:
            if board_id in self._boards:
                del self._boards[board_id]
                logger.info(f"Deleted board {board_id}")
                return True
            return False

    # Players

    def _create_player_document(self, display_name: str, state: Optional[Dict]) -> Dict:
        """Create player document structure."""
        now = datetime.now()
        return {
            "player_id": self._new_id(),
            "display_name": display_name,
            "score": 0,
            "state": dict(state or {}),
            "created_at": now,
            "updated_at": now
        }

    def create_player(self, display_name: str, state: Optional[Dict] = None) -> Dict:
        with self._lock:
            player = self._create_player_document(display_name, state)
            self._players[player["player_id"]] = player
            return copy.deepcopy(player)

    def find_player_by_id(self, player_id: str) -> Optional[Dict]:
        with self._lock:
            player = self._players.get(player_id)
            return copy.deepcopy(player) if player else None

    def find_players(self, predicate: Predicate) -> List[Dict]:
        with self._lock:
            return [copy.deepcopy(p) for p in self._players.values() if predicate(p)]

    def update_player(self, player_id: str, changes: Dict) -> Optional[Dict]:
        """
        Apply ``changes`` to a player document.

        Returns:
            The updated player, or None if it doesn't exist
        """
        changes = {k: v for k, v in changes.items() if k not in ("player_id", "created_at")}
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                return None
            player.update(copy.deepcopy(changes))
            player["updated_at"] = datetime.now()
            return copy.deepcopy(player)

    def delete_player(self, player_id: str) -> bool:
        with self._lock:
            return self._players.pop(player_id, None) is not None

    def get_stats(self) -> Dict[str, int]:
        """Document counts for health reporting."""
        with self._lock:
            return {
                'boards': len(self._boards),
                'players': len(self._players)
            }
