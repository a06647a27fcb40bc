"""
REST API endpoints for the Quizboard application.

Health check, admin login, administrative removal of inactive players, and
player lookup/score update.
"""

import logging
from typing import Dict

from flask import Blueprint, jsonify, request

from container import get_container
from src.core.errors import ErrorCode, LobbyError

logger = logging.getLogger(__name__)

# HTTP status for each lobby error code; anything unlisted is a 400
STATUS_BY_CODE = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.BOARD_NOT_FOUND: 404,
    ErrorCode.PLAYER_NOT_IN_BOARD: 404,
    ErrorCode.PLAYER_NOT_FOUND: 404,
    ErrorCode.STORE_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def _service(name: str):
    return get_container().get(name)


def _error(error: LobbyError):
    factory = _service('ErrorResponseFactory')
    status = STATUS_BY_CODE.get(error.code, 400)
    return jsonify(factory.create_error_response(error.code, error.message, error.details)), status


def _success(data: Dict, status: int = 200):
    factory = _service('ErrorResponseFactory')
    return jsonify(factory.create_success_response(data)), status


def _player_payload(player: Dict) -> Dict:
    return {
        'playerId': player['player_id'],
        'displayName': player['display_name'],
        'score': player['score'],
        'state': player['state'],
        'createdAt': player['created_at'].isoformat(),
        'updatedAt': player['updated_at'].isoformat()
    }


def _require_admin() -> Dict:
    """Verify the request's bearer token; raises LobbyError(UNAUTHORIZED)."""
    token_service = _service('AdminTokenService')
    token = token_service.extract_bearer_token(request.headers.get('Authorization'))
    return token_service.verify_token(token)


def create_api_blueprint():
    """Create the API Blueprint. Services are resolved from the container per request."""
    api = Blueprint('api', __name__)

    @api.errorhandler(LobbyError)
    def handle_lobby_error(error):
        if error.code == ErrorCode.UNAUTHORIZED:
            logger.warning(f'Unauthorized request to {request.path}: {error.message}')
        return _error(error)

    @api.route('/health')
    def health():
        debug_info = _service('ConnectionRegistry').get_debug_info()
        return jsonify({
            'status': 'ok',
            'connections': debug_info['total_connections'],
            'absent_players': debug_info['absent_players'],
            **_service('SessionStore').get_stats()
        })

    @api.route('/auth/admin/login', methods=['POST'])
    def admin_login():
        data = _service('ValidationService').validate_request_data(
            request.get_json(silent=True), ['username', 'password']
        )
        token = _service('AdminTokenService').login(data['username'], data['password'])
        return _success({'token': token})

    @api.route('/api/boards/<board_id>/players/<player_id>', methods=['DELETE'])
    def remove_inactive_player(board_id, player_id):
        """Administratively remove a player who stopped participating."""
        claims = _require_admin()
        validation = _service('ValidationService')
        board_id = validation.validate_identifier(board_id, 'boardId')
        player_id = validation.validate_identifier(player_id, 'playerId')

        result = _service('LobbyCoordinator').remove_inactive(board_id, player_id)
        logger.info(f'Admin {claims["sub"]} removed player {player_id} from board {board_id}')
        return _success({
            'boardId': result['board_id'],
            'playerId': result['player_id'],
            'displayName': result['display_name']
        })

    @api.route('/api/players/<player_id>')
    def get_player(player_id):
        player = _service('MembershipService').get_player(player_id)
        return _success(_player_payload(player))

    @api.route('/api/players/<player_id>/score', methods=['PUT'])
    def update_player_score(player_id):
        validation = _service('ValidationService')
        data = validation.validate_request_data(request.get_json(silent=True), ['score'])
        score = validation.validate_score(data['score'])

        player = _service('MembershipService').update_score(player_id, score)
        return _success(_player_payload(player))

    return api
