"""
Configuration Factory Tests
Tests for the centralized configuration management system.
"""

import pytest

from config_factory import (
    ConfigurationFactory, AppConfig, Environment, ConfigError,
    DEFAULT_ADMIN_PASSWORD, DEFAULT_JWT_SECRET, DEFAULT_SECRET_KEY,
    load_config, load_config_from_dict, get_config, reset_config, override_config
)
from src.config.lobby_settings import LobbySettings, get_lobby_settings, reset_lobby_settings


class TestAppConfig:
    """Test AppConfig dataclass"""

    def test_config_initialization_with_defaults(self):
        config = AppConfig()

        assert config.secret_key == DEFAULT_SECRET_KEY
        assert config.debug is False
        assert config.port == 5000
        assert config.socketio_async_mode == 'eventlet'
        assert config.pin_length == 4
        assert config.max_display_name_length == 20
        assert config.serialize_board_mutations is True
        assert config.store_retry_attempts == 1
        assert config.inactivity_timeout_seconds == 120
        assert config.environment == Environment.DEVELOPMENT

    def test_config_validation_invalid_port(self):
        with pytest.raises(ConfigError, match="Invalid port number"):
            AppConfig(port=0)

        with pytest.raises(ConfigError, match="Invalid port number"):
            AppConfig(port=70000)

    @pytest.mark.parametrize('field_name,value', [
        ('socketio_async_mode', 'asyncio'),
        ('pin_length', 2),
        ('pin_length', 11),
        ('max_display_name_length', 0),
        ('max_players_per_board', 0),
        ('store_retry_attempts', -1),
        ('store_retry_attempts', 6),
        ('store_retry_delay_seconds', -0.5),
        ('inactivity_timeout_seconds', 0),
        ('inactivity_sweep_interval_seconds', 0),
        ('orphan_grace_seconds', -1),
        ('orphan_grace_seconds', 86401),
        ('admin_token_expiry_minutes', 0),
    ])
    def test_config_validation_rejects_out_of_range(self, field_name, value):
        with pytest.raises(ConfigError, match=f"Invalid {field_name}"):
            AppConfig(**{field_name: value})

    def test_production_requires_secure_secrets(self):
        secure = {'secret_key': 'k', 'jwt_secret': 'j', 'admin_password': 'p'}

        AppConfig(environment=Environment.PRODUCTION, **secure)

        for name, default in (('secret_key', DEFAULT_SECRET_KEY), ('jwt_secret', DEFAULT_JWT_SECRET),
                              ('admin_password', DEFAULT_ADMIN_PASSWORD)):
            with pytest.raises(ConfigError, match="Production environment requires"):
                AppConfig(environment=Environment.PRODUCTION, **dict(secure, **{name: default}))

    def test_environment_properties(self):
        assert AppConfig(environment=Environment.TESTING).is_testing
        assert AppConfig().is_development
        assert not AppConfig().is_production

    def test_comma_separated_settings(self):
        config = AppConfig(cors_allowed_origins='https://a.example, https://b.example,',
                           seed_board_pins='4821, 1234')

        assert config.allowed_origins == ['https://a.example', 'https://b.example']
        assert config.seed_pins == ['4821', '1234']


class TestConfigurationFactory:
    """Test loading from environment and dictionaries"""

    def setup_method(self):
        reset_config()

    def test_singleton(self):
        assert ConfigurationFactory() is ConfigurationFactory()

    def test_get_config_before_load_raises(self):
        with pytest.raises(ConfigError):
            get_config()

    def test_load_from_environment(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'testing')
        monkeypatch.setenv('PIN_LENGTH', '6')
        monkeypatch.setenv('SERIALIZE_BOARD_MUTATIONS', 'false')
        monkeypatch.setenv('STORE_RETRY_DELAY_SECONDS', '0.25')
        monkeypatch.setenv('ADMIN_USERNAME', 'root')
        monkeypatch.setenv('ORPHAN_GRACE_SECONDS', '300')

        config = load_config()

        assert config.environment == Environment.TESTING
        assert config.pin_length == 6
        assert config.serialize_board_mutations is False
        assert config.store_retry_delay_seconds == 0.25
        assert config.admin_username == 'root'
        assert config.orphan_grace_seconds == 300
        assert get_config() is config

    def test_invalid_number_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'testing')
        monkeypatch.setenv('MAX_PLAYERS_PER_BOARD', 'lots')

        assert load_config().max_players_per_board == 50

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'testing')
        monkeypatch.setenv('QB_INACTIVITY_TIMEOUT_SECONDS', '30')

        assert load_config('QB_').inactivity_timeout_seconds == 30

    def test_production_environment_from_env(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'production')
        monkeypatch.delenv('SECRET_KEY', raising=False)

        with pytest.raises(ConfigError):
            load_config()

    def test_load_from_dict(self):
        source = {'pin_length': 5, 'environment': 'testing'}

        config = load_config_from_dict(source)

        assert config.pin_length == 5
        assert config.environment == Environment.TESTING
        assert source['environment'] == 'testing'

    def test_override_updates_and_revalidates(self):
        load_config_from_dict({'environment': 'testing'})

        override_config('store_retry_attempts', 3)
        assert get_config().store_retry_attempts == 3

        with pytest.raises(ConfigError):
            override_config('store_retry_attempts', 99)

    def test_override_survives_reload(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'testing')
        override_config('max_players_per_board', 7)

        assert load_config().max_players_per_board == 7

    def test_flask_config(self):
        load_config_from_dict({'environment': 'testing', 'secret_key': 's'})

        flask_config = ConfigurationFactory().get_flask_config()

        assert flask_config['SECRET_KEY'] == 's'
        assert flask_config['TESTING'] is True
        assert flask_config['PIN_LENGTH'] == 4

    def test_to_dict_serializes_environment(self):
        load_config_from_dict({'environment': 'testing'})

        assert ConfigurationFactory().to_dict()['environment'] == 'testing'


class TestLobbySettings:
    """Test typed settings access with fallbacks"""

    def setup_method(self):
        reset_lobby_settings()

    def test_explicit_config(self):
        settings = LobbySettings(AppConfig(pin_length=6, max_players_per_board=3, orphan_grace_seconds=0))

        assert settings.pin_length == 6
        assert settings.max_players_per_board == 3
        assert settings.orphan_grace_seconds == 0

    def test_defaults_without_loaded_config(self):
        reset_config()
        settings = LobbySettings()

        assert settings.pin_length == 4
        assert settings.serialize_board_mutations is True
        assert settings.store_retry_attempts == 1
        assert settings.orphan_grace_seconds == 60

    def test_global_settings_follow_overrides(self):
        load_config_from_dict({'environment': 'testing'})
        settings = get_lobby_settings()

        override_config('serialize_board_mutations', False)

        assert settings.serialize_board_mutations is False
        assert get_lobby_settings() is settings
