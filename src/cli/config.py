"""Configuration and session state files.

ConfigLoader reads the application settings from
``.inventory-sync/config.yaml`` and applies environment overrides loaded
with python-dotenv. StateManager persists the engine's SessionState
(mode, dirty ids, original timestamps) between CLI invocations.
"""

import os
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv

from src.models.app_config import AppConfig
from src.sync.models import SessionState, SyncMode

from .errors import ConfigError, StateError, StateFilesystemError

DEFAULT_CONFIG_DIR = '.inventory-sync'
DEFAULT_CONFIG_PATH = os.path.join(DEFAULT_CONFIG_DIR, 'config.yaml')

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


def _read_text(path: str) -> str:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except PermissionError:
        raise StateFilesystemError(path, 'read', 'Permission denied')


def _write_yaml(path: str, data: Dict[str, Any]) -> None:
    yaml_str = yaml.safe_dump(
        data,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False
    )

    directory = os.path.dirname(path)
    if directory:
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise StateFilesystemError(directory, 'create_directory', str(e))

    try:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(yaml_str)
    except PermissionError:
        raise StateFilesystemError(path, 'write', 'Permission denied')
    except OSError as e:
        raise StateFilesystemError(path, 'write', str(e))


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        api_url: "https://localhost:5001/api/article"
        request_timeout: 30
        probe_timeout: 5
        verify_tls: true
        auto_save: true
        snapshot_path: ".inventory-sync/articles.json"
        state_path: ".inventory-sync/state.yaml"
        ui:
          row_height: 25
          stripe_color: "#F0F0F0"
        debug: false

    Every field is optional. A missing file yields the defaults.

    Environment overrides (read from the process environment or a .env file):
        INVENTORY_API_URL: Replaces api_url
        INVENTORY_VERIFY_TLS: Replaces verify_tls ("true"/"false")
    """

    ENV_API_URL = 'INVENTORY_API_URL'
    ENV_VERIFY_TLS = 'INVENTORY_VERIFY_TLS'

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> AppConfig:
        """Load configuration from a YAML file plus environment overrides.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            AppConfig with parsed configuration

        Raises:
            StateFilesystemError: If the file exists but cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            content = _read_text(config_path)
        except FileNotFoundError:
            content = ''
        except OSError as e:
            raise StateFilesystemError(config_path, 'read', str(e))

        config_dict: Any = {}
        if content.strip():
            try:
                config_dict = yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        config = cls._parse_config(config_dict)
        cls._apply_environment(config)
        return config

    @classmethod
    def save(cls, config_path: str, config: AppConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            StateFilesystemError: If file cannot be written
        """
        config_dict = {
            'api_url': config.api_url,
            'request_timeout': config.request_timeout,
            'probe_timeout': config.probe_timeout,
            'verify_tls': config.verify_tls,
            'auto_save': config.auto_save,
            'snapshot_path': config.snapshot_path,
            'state_path': config.state_path,
            'ui': {
                'row_height': config.row_height,
                'stripe_color': config.stripe_color,
            },
            'debug': config.debug,
        }
        _write_yaml(config_path, config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> AppConfig:
        """Validate a raw configuration dictionary.

        Raises:
            ConfigError: If a field has the wrong type or value
        """
        defaults = AppConfig()

        ui = config_dict.get('ui') or {}
        if not isinstance(ui, dict):
            raise ConfigError(f"must be a dictionary, got {type(ui).__name__}", 'ui')

        api_url = cls._string(config_dict, 'api_url', defaults.api_url)
        if not api_url.startswith(('http://', 'https://')):
            raise ConfigError("must start with http:// or https://", 'api_url')

        request_timeout = cls._positive_number(
            config_dict, 'request_timeout', defaults.request_timeout
        )
        probe_timeout = cls._positive_number(
            config_dict, 'probe_timeout', defaults.probe_timeout
        )

        row_height = ui.get('row_height', defaults.row_height)
        if isinstance(row_height, bool) or not isinstance(row_height, int) or row_height <= 0:
            raise ConfigError("must be a positive integer", 'ui.row_height')

        return AppConfig(
            api_url=api_url,
            request_timeout=request_timeout,
            probe_timeout=probe_timeout,
            verify_tls=cls._boolean(config_dict, 'verify_tls', defaults.verify_tls),
            auto_save=cls._boolean(config_dict, 'auto_save', defaults.auto_save),
            snapshot_path=cls._string(config_dict, 'snapshot_path', defaults.snapshot_path),
            state_path=cls._string(config_dict, 'state_path', defaults.state_path),
            row_height=row_height,
            stripe_color=cls._string(ui, 'stripe_color', defaults.stripe_color),
            debug=cls._boolean(config_dict, 'debug', defaults.debug),
        )

    @classmethod
    def _apply_environment(cls, config: AppConfig) -> None:
        load_dotenv()

        api_url = os.getenv(cls.ENV_API_URL)
        if api_url:
            config.api_url = api_url.strip()

        verify_tls = os.getenv(cls.ENV_VERIFY_TLS)
        if verify_tls:
            value = verify_tls.strip().lower()
            if value in _TRUE_VALUES:
                config.verify_tls = True
            elif value in _FALSE_VALUES:
                config.verify_tls = False
            else:
                raise ConfigError(
                    f"{cls.ENV_VERIFY_TLS} must be true or false, got '{verify_tls}'",
                    'verify_tls'
                )

    @staticmethod
    def _string(source: Dict[str, Any], key: str, default: str) -> str:
        value = source.get(key, default)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError("must be a non-empty string", key)
        return value.strip()

    @staticmethod
    def _boolean(source: Dict[str, Any], key: str, default: bool) -> bool:
        value = source.get(key, default)
        if not isinstance(value, bool):
            raise ConfigError(f"must be a boolean, got {type(value).__name__}", key)
        return value

    @staticmethod
    def _positive_number(source: Dict[str, Any], key: str, default: float) -> float:
        value = source.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError("must be a positive number", key)
        return float(value)


class StateManager:
    """Handles session state loading, validation, and saving.

    State file structure:
        mode: offline
        dirty_ids: [3, -1]
        original_timestamps:
          3: "2025-03-07T16:22:25Z"
        last_synced: "2025-03-07T16:22:25Z"

    If the file is missing or empty, it's treated as a fresh state
    (online, nothing dirty).
    """

    @classmethod
    def load(cls, state_path: str) -> SessionState:
        """Load and parse state from a YAML file.

        Raises:
            StateFilesystemError: If file cannot be read (except FileNotFoundError)
            StateError: If state file is invalid or malformed
        """
        try:
            content = _read_text(state_path)
        except FileNotFoundError:
            # Missing state file is normal before the first command
            return SessionState()
        except OSError as e:
            raise StateFilesystemError(state_path, 'read', str(e))

        if not content.strip():
            return SessionState()

        try:
            state_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StateError(f"Invalid YAML syntax: {str(e)}")

        if state_dict is None:
            return SessionState()

        if not isinstance(state_dict, dict):
            raise StateError(
                f"State must be a YAML dictionary, got {type(state_dict).__name__}"
            )

        return cls._parse_state(state_dict)

    @classmethod
    def save(cls, state_path: str, state: SessionState) -> None:
        """Save state to a YAML file.

        Raises:
            StateFilesystemError: If file cannot be written
        """
        state_dict = {
            'mode': state.mode,
            'dirty_ids': list(state.dirty_ids),
            'original_timestamps': dict(state.original_timestamps),
            'last_synced': state.last_synced,
        }
        _write_yaml(state_path, state_dict)

    @classmethod
    def _parse_state(cls, state_dict: Dict[str, Any]) -> SessionState:
        """Parse and validate a raw state dictionary.

        Raises:
            StateError: If state is invalid
        """
        mode = state_dict.get('mode', SyncMode.ONLINE.value)
        valid_modes = [m.value for m in SyncMode]
        if mode not in valid_modes:
            raise StateError(
                f"Field 'mode' must be one of {', '.join(valid_modes)}, got {mode!r}",
                'mode'
            )

        dirty_ids = state_dict.get('dirty_ids') or []
        if not isinstance(dirty_ids, list):
            raise StateError(
                f"Field 'dirty_ids' must be a list, got {type(dirty_ids).__name__}",
                'dirty_ids'
            )
        parsed_ids: List[int] = []
        for article_id in dirty_ids:
            if isinstance(article_id, bool) or not isinstance(article_id, int):
                raise StateError(
                    f"Field 'dirty_ids' entries must be integers, got {article_id!r}",
                    'dirty_ids'
                )
            parsed_ids.append(article_id)

        timestamps = state_dict.get('original_timestamps') or {}
        if not isinstance(timestamps, dict):
            raise StateError(
                f"Field 'original_timestamps' must be a dictionary, got {type(timestamps).__name__}",
                'original_timestamps'
            )
        parsed_timestamps: Dict[int, str] = {}
        for article_id, timestamp in timestamps.items():
            try:
                key = int(article_id)
            except (TypeError, ValueError):
                raise StateError(
                    f"Field 'original_timestamps' keys must be article ids, got {article_id!r}",
                    'original_timestamps'
                )
            parsed_timestamps[key] = "" if timestamp is None else str(timestamp)

        last_synced = state_dict.get('last_synced')
        if last_synced is not None:
            if not isinstance(last_synced, str) or not last_synced.strip():
                raise StateError(
                    "Field 'last_synced' must be a non-empty string (ISO 8601 timestamp)",
                    'last_synced'
                )
            last_synced = last_synced.strip()

        return SessionState(
            mode=mode,
            dirty_ids=parsed_ids,
            original_timestamps=parsed_timestamps,
            last_synced=last_synced,
        )
