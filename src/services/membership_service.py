"""
Membership Service for Quizboard

Validates and applies join/leave requests against the session store. Each
mutation runs inside the board's serialization point, so two requests for the
same board never interleave their read-modify-write when serialization is
enabled. With serialization disabled, two same-name joins on one board may
both pass the uniqueness check (first-writer-wins is then not guaranteed).
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from src.config.lobby_settings import LobbySettings, get_lobby_settings
from src.core.errors import (
    BoardFullError, BoardNotFoundError, InvalidPinError, NameTakenError,
    PlayerNotFoundError, PlayerNotInBoardError, StoreUnavailableError
)

logger = logging.getLogger(__name__)


class MembershipService:
    """Enforces join/leave validity and mutates durable board/player state."""

    def __init__(self, session_store, concurrency_control, settings: Optional[LobbySettings] = None):
        """
        Args:
            session_store: SessionStore implementation
            concurrency_control: ConcurrencyControlService providing board locks
            settings: Optional lobby settings (defaults to the global instance)
        """
        self.store = session_store
        self.concurrency_control = concurrency_control
        self.lobby_settings = settings or get_lobby_settings()

    def _validate_join(self, board: Dict, members: List[Dict], display_name: str) -> None:
        """Validate that a player with ``display_name`` can be added to the board."""
        for member in members:
            if member["display_name"] == display_name:
                raise NameTakenError(
                    f"Display name '{display_name}' is already taken on this board",
                    {"display_name": display_name}
                )

        max_players = self.lobby_settings.max_players_per_board
        if len(board["players"]) >= max_players:
            raise BoardFullError(
                f"Board is full ({max_players} players)",
                {"max_players": max_players}
            )

    def _discard_player(self, player_id: str) -> None:
        """Best-effort removal of a player whose join could not complete."""
        try:
            self.store.delete_player(player_id)
        except StoreUnavailableError as e:
            logger.warning(f"Could not discard player {player_id} after failed join, left as orphan: {e}")

    def join(self, pin: str, display_name: str) -> Dict:
        """
        Add a new player named ``display_name`` to the board with ``pin``.

        Returns:
            Dict with board_id, player_id and display_name

        Raises:
            InvalidPinError: If no board has this pin
            NameTakenError: If a member already uses this display name
            BoardFullError: If the board is at capacity
            StoreUnavailableError: On transient store failure
        """
        board = self.store.find_board_by_pin(pin)
        if not board:
            raise InvalidPinError("Invalid pin code", {"pin": pin})

        board_id = board["board_id"]
        with self.concurrency_control.board_operation(board_id):
            # Re-read inside the serialization point; the first read only resolved the pin
            board = self.store.find_board_by_id(board_id)
            if not board:
                raise InvalidPinError("Invalid pin code", {"pin": pin})

            members = self.store.find_players_by_ids(board["players"])
            self._validate_join(board, members, display_name)

            player = self.store.create_player(display_name)
            try:
                self.store.append_board_member(board_id, player["player_id"])
            except Exception:
                self._discard_player(player["player_id"])
                raise

        logger.info(f"Player {display_name} ({player['player_id']}) joined board {board_id}")
        return {
            "board_id": board_id,
            "player_id": player["player_id"],
            "display_name": display_name
        }

    def _remove_member(self, board_id: str, player_id: str, context: str) -> Dict:
        with self.concurrency_control.board_operation(board_id):
            board = self.store.find_board_by_id(board_id)
            if not board:
                raise BoardNotFoundError("Board not found", {"board_id": board_id})

            if player_id not in board["players"]:
                raise PlayerNotInBoardError(
                    "Player not found in board",
                    {"board_id": board_id, "player_id": player_id}
                )

            player = self.store.find_player_by_id(player_id)
            display_name = player["display_name"] if player else None

            # Membership removal must be durable before the player document goes away
            if not self.store.remove_board_member(board_id, player_id):
                raise PlayerNotInBoardError(
                    "Player not found in board",
                    {"board_id": board_id, "player_id": player_id}
                )

        try:
            self.store.delete_player(player_id)
        except StoreUnavailableError as e:
            logger.warning(f"Player {player_id} removed from board {board_id} but not deleted, left as orphan: {e}")

        logger.info(f"Player {display_name} ({player_id}) removed from board {board_id} ({context})")
        return {
            "board_id": board_id,
            "player_id": player_id,
            "display_name": display_name
        }

    def leave(self, board_id: str, player_id: str) -> Dict:
        """
        Remove a player from a board at the player's own request.

        Raises:
            BoardNotFoundError: If the board doesn't exist
            PlayerNotInBoardError: If the player isn't a member
            StoreUnavailableError: On transient store failure
        """
        return self._remove_member(board_id, player_id, "left")

    def remove_inactive(self, board_id: str, player_id: str) -> Dict:
        """Same contract as leave(), triggered administratively."""
        return self._remove_member(board_id, player_id, "inactive")

    def verify_membership(self, board_id: str, player_id: str) -> Dict:
        """
        Confirm a player is still a member of a board.

        Returns:
            The player document
        """
        board = self.store.find_board_by_id(board_id)
        if not board:
            raise BoardNotFoundError("Board not found", {"board_id": board_id})

        player = self.store.find_player_by_id(player_id) if player_id in board["players"] else None
        if player is None:
            raise PlayerNotInBoardError(
                "Player not found in board",
                {"board_id": board_id, "player_id": player_id}
            )
        return player

    def claim_membership(self, board_id: str, player_id: str, on_verified: Callable[[Dict], Any]) -> Any:
        """
        Verify membership and run ``on_verified(player)`` under the board lock.

        Removal of the same player waits for ``on_verified`` to return, so it
        either sees the claim or the claim sees the player gone.

        Returns:
            Whatever ``on_verified`` returns
        """
        with self.concurrency_control.board_operation(board_id):
            player = self.verify_membership(board_id, player_id)
            return on_verified(player)

    def get_board_roster(self, board_id: str) -> List[Dict]:
        """Members of a board in join order."""
        board = self.store.find_board_by_id(board_id)
        if not board:
            return []

        return [
            {
                "player_id": player["player_id"],
                "display_name": player["display_name"],
                "score": player["score"]
            }
            for player in self.store.find_players_by_ids(board["players"])
        ]

    def open_board(self, pin: str) -> Dict:
        """Return the board with ``pin``, creating an empty one if none exists."""
        board = self.store.find_board_by_pin(pin)
        if board:
            return board
        board = self.store.create_board(pin)
        logger.info(f"Opened board {board['board_id']} with pin {pin}")
        return board

    def get_player(self, player_id: str) -> Dict:
        player = self.store.find_player_by_id(player_id)
        if player is None:
            raise PlayerNotFoundError("Player not found", {"player_id": player_id})
        return player

    def update_score(self, player_id: str, score: int) -> Dict:
        """
        Set a player's score. Board membership is untouched.

        Raises:
            PlayerNotFoundError: If the player doesn't exist
        """
        player = self.store.update_player(player_id, {"score": score})
        if player is None:
            raise PlayerNotFoundError("Player not found", {"player_id": player_id})
        logger.info(f"Player {player_id} score set to {score}")
        return player

    def list_board_ids(self) -> List[str]:
        return [board["board_id"] for board in self.store.find_boards(lambda b: True)]

    def sweep_orphaned_players(self, grace_seconds: Optional[int] = None) -> int:
        """
        Delete player documents no board references.

        Players younger than ``grace_seconds`` (default: the configured
        orphan grace) are skipped; a join in flight creates its player before
        the member reference is written.

        Returns:
            Number of players deleted
        """
        referenced = set()
        for board in self.store.find_boards(lambda b: True):
            referenced.update(board["players"])

        if grace_seconds is None:
            grace_seconds = self.lobby_settings.orphan_grace_seconds
        cutoff = datetime.now() - timedelta(seconds=grace_seconds)
        orphans = self.store.find_players(
            lambda p: p["player_id"] not in referenced and p["created_at"] < cutoff
        )

        deleted = 0
        for player in orphans:
            if self.store.delete_player(player["player_id"]):
                deleted += 1

        if deleted:
            logger.info(f"Deleted {deleted} orphaned players")
        return deleted
