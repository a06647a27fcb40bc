"""
Error Response Factory Unit Tests
Tests for response envelopes, exception mapping and the handler decorator.
"""

from unittest.mock import patch

from src.core.errors import ErrorCode, LobbyError, NameTakenError, ValidationError
from src.services.error_response_factory import ErrorResponseFactory, with_error_handling


class TestErrorResponseFactory:

    def setup_method(self):
        self.factory = ErrorResponseFactory()

    def test_create_success_response(self):
        response = self.factory.create_success_response({'token': 'abc'})

        assert response == {'success': True, 'data': {'token': 'abc'}}

    def test_create_error_response(self):
        response = self.factory.create_error_response(
            ErrorCode.BOARD_NOT_FOUND, 'Board not found', {'board_id': 'b1'}
        )

        assert response == {
            'success': False,
            'error': {
                'code': 'BOARD_NOT_FOUND',
                'message': 'Board not found',
                'details': {'board_id': 'b1'}
            }
        }

    def test_create_error_response_without_details(self):
        response = self.factory.create_error_response(ErrorCode.INTERNAL_ERROR, 'Oops')

        assert response['error']['details'] == {}

    @patch('src.services.error_response_factory.emit')
    def test_emit_error(self, mock_emit):
        self.factory.emit_error(ErrorCode.INVALID_DATA, 'Bad payload')

        mock_emit.assert_called_once_with('error', {
            'success': False,
            'error': {'code': 'INVALID_DATA', 'message': 'Bad payload', 'details': {}}
        })

    @patch('src.services.error_response_factory.emit')
    def test_emit_lobby_error_uses_error_fields(self, mock_emit):
        self.factory.emit_lobby_error(NameTakenError('Name taken', {'display_name': 'Ada'}))

        payload = mock_emit.call_args[0][1]
        assert payload['error']['code'] == 'NAME_TAKEN'
        assert payload['error']['details'] == {'display_name': 'Ada'}

    def test_handle_lobby_exception_keeps_code(self):
        code, message = self.factory.handle_exception(
            ValidationError(ErrorCode.MISSING_PIN, 'Pin is required'), 'join'
        )

        assert code == ErrorCode.MISSING_PIN
        assert message == 'Pin is required'

    def test_handle_unexpected_exception_hides_details(self):
        with patch('src.services.error_response_factory.logger') as mock_logger:
            code, message = self.factory.handle_exception(KeyError('secret internals'), 'join')

        assert code == ErrorCode.INTERNAL_ERROR
        assert 'secret' not in message
        assert mock_logger.error.call_count == 2


class TestWithErrorHandling:

    @patch('src.services.error_response_factory.emit')
    def test_return_value_passed_through(self, mock_emit):
        @with_error_handling
        def handler(data):
            return data['value']

        assert handler({'value': 3}) == 3
        mock_emit.assert_not_called()

    @patch('src.services.error_response_factory.emit')
    def test_lobby_error_emitted(self, mock_emit):
        @with_error_handling
        def handler():
            raise LobbyError('Store down', code=ErrorCode.STORE_UNAVAILABLE)

        assert handler() is None
        payload = mock_emit.call_args[0][1]
        assert payload['error']['code'] == 'STORE_UNAVAILABLE'
        assert payload['error']['message'] == 'Store down'

    @patch('src.services.error_response_factory.emit')
    def test_unexpected_error_emitted_as_internal(self, mock_emit):
        @with_error_handling
        def handler():
            raise RuntimeError('kaboom')

        handler()

        payload = mock_emit.call_args[0][1]
        assert payload['error']['code'] == 'INTERNAL_ERROR'
        assert payload['error']['message'] == 'An internal error occurred'

    def test_wraps_preserves_name(self):
        @with_error_handling
        def handle_join_request():
            pass

        assert handle_join_request.__name__ == 'handle_join_request'
