"""Settings of the server connection and the display.

The settings live in ``config.json`` in the application data directory, next
to the ``auth`` directory holding the persisted sessions. A fresh install
copies ``config/config.json.template``.

Provides:
    - CONFIG_SCHEMA and the validation of config.json against it.
    - ConfigPaths: the template, config and session paths.
    - SettingsAPI: get, set, reload, revert and save config sections.
    - ``settings``: the application-wide SettingsAPI instance.
"""

import json
import logging
import os
import pathlib
import shutil
from typing import Dict, Any, Optional, List

from PySide6 import QtCore

from ..status import status

app_name: str = 'Passbook'

API_URL_ENV_KEY: str = 'PASSBOOK_API_URL'

VARIANTS: List[str] = ['pin', 'family']
THEMES: List[str] = ['light', 'dark']

SERVER_KEYS: List[str] = [
    'url',
    'variant',
    'timeout',
    'retries',
    'page_limit',
]

METADATA_KEYS: List[str] = [
    'name',
    'locale',
    'currency',
    'theme',
    'auto_submit_pin',
]

CONFIG_SCHEMA: Dict[str, Any] = {
    'server': {
        'type': dict,
        'required': True,
        'required_keys': SERVER_KEYS,
        'item_schema': {
            'url': {'type': str, 'required': True},
            'variant': {'type': str, 'required': True, 'allowed_values': VARIANTS},
            'timeout': {'type': (int, float), 'required': True, 'minimum': 0.1},
            'retries': {'type': int, 'required': True, 'minimum': 0},
            'page_limit': {'type': int, 'required': True, 'minimum': 1},
        }
    },
    'metadata': {
        'type': dict,
        'required': True,
        'required_keys': METADATA_KEYS,
        'item_schema': {
            'name': {'type': str, 'required': True},
            'locale': {'type': str, 'required': True},
            'currency': {'type': str, 'required': True},
            'theme': {'type': str, 'required': True, 'allowed_values': THEMES},
            'auto_submit_pin': {'type': bool, 'required': True},
        }
    },
}

# Metadata values of the wrong type are converted where possible
_COERCE = {
    str: str,
    bool: bool,
}


def _fail(exc_type: type, msg: str) -> None:
    logging.error(msg)
    raise exc_type(msg)


def _check_value(name: str, value: Any, field_specs: Dict[str, Any]) -> None:
    _type = field_specs['type']

    # bool is an int subclass
    if (isinstance(value, bool) and _type is not bool) or not isinstance(value, _type):
        _fail(TypeError, f'"{name}" must be {_type}, got {type(value)}.')

    allowed = field_specs.get('allowed_values')
    if allowed is not None and value not in allowed:
        _fail(ValueError, f'"{name}" must be one of {allowed}, got "{value}".')

    minimum = field_specs.get('minimum')
    if minimum is not None and value < minimum:
        _fail(ValueError, f'"{name}" must be at least {minimum}, got {value}.')


def _validate_section(section_name: str, section_dict: Dict[str, Any], specs: Dict[str, Any]) -> None:
    """Validate a config section against its item schema.

    Raises:
        TypeError: If a value is not of the expected type.
        ValueError: If a required key is missing or a value is not allowed.
    """
    missing = [k for k in specs['required_keys'] if k not in section_dict]
    if missing:
        _fail(ValueError, f'"{section_name}" is missing keys: {missing}.')

    for key, field_specs in specs['item_schema'].items():
        if key in section_dict:
            _check_value(f'{section_name}.{key}', section_dict[key], field_specs)


class ConfigPaths:
    """Paths of the bundled templates and of the user's config and sessions.

    Missing user directories are created, and a missing config.json is copied
    from the template.
    """

    def __init__(self) -> None:
        QtCore.QCoreApplication.setApplicationName(app_name)
        QtCore.QCoreApplication.setOrganizationName('')

        app_data_dir = pathlib.Path(
            QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
        )

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.config_template: pathlib.Path = self.template_dir / 'config.json.template'
        self.stylesheet_path: pathlib.Path = self.template_dir / 'stylesheet.qss'

        self.config_dir: pathlib.Path = app_data_dir / 'config'
        self.auth_dir: pathlib.Path = self.config_dir / 'auth'
        self.config_path: pathlib.Path = self.config_dir / 'config.json'

        self._prepare()

    def _prepare(self) -> None:
        for path in (self.template_dir, self.config_template):
            if not path.exists():
                _fail(FileNotFoundError, f'Missing bundled file: {path}')

        for path in (self.config_dir, self.auth_dir):
            if not path.exists():
                logging.debug(f'Creating {path}')
                path.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            logging.debug(f'No config found, copying the template to {self.config_path}')
            shutil.copy(self.config_template, self.config_path)

    def session_path(self, name: str) -> pathlib.Path:
        """Returns the path of the persisted session of the given server variant."""
        return self.auth_dir / f'{name}.json'

    def revert_config_to_template(self) -> None:
        if not self.config_template.exists():
            _fail(FileNotFoundError, f'Config template not found: {self.config_template}')
        logging.info(f'Reverting {self.config_path} to the template')
        shutil.copy(self.config_template, self.config_path)


class SettingsAPI(ConfigPaths):
    """Sections of config.json.

    Metadata values are read and written with item access, e.g. ``settings['theme']``.
    Every change is saved at once and announced through
    ``signals.metadataChanged`` or ``signals.configSectionChanged``, unless
    :meth:`block_signals` is on.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        super().__init__()

        if config_path:
            self.config_path = pathlib.Path(config_path)

        self._signals_blocked: bool = False
        self.config_data: Dict[str, Any] = {k: {} for k in CONFIG_SCHEMA}

        self.init_data()

    def _emit(self, signal_name: str, *args: Any) -> None:
        if self._signals_blocked:
            return
        from ..ui.actions import signals
        getattr(signals, signal_name).emit(*args)

    def _check_section(self, section_name: str) -> None:
        if section_name not in self.config_data:
            _fail(ValueError, f'Unknown config section: "{section_name}"')

    @staticmethod
    def _check_metadata_key(key: str) -> None:
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

    def __getitem__(self, key: str) -> Any:
        """Returns a metadata value, or None if the stored value has the wrong type.

        Raises:
            KeyError: If key is not a metadata key.
        """
        self._check_metadata_key(key)

        _type = CONFIG_SCHEMA['metadata']['item_schema'][key]['type']
        v = self.config_data['metadata'].get(key)
        if not isinstance(v, _type):
            logging.error(f'Metadata "{key}" is not of type {_type}, got {type(v)}.')
            return None
        return v

    def __setitem__(self, key: str, value: Any) -> None:
        """Set and save a metadata value.

        Raises:
            KeyError: If key is not a metadata key.
            ValueError: If the value is not allowed.
        """
        self._check_metadata_key(key)

        specs = CONFIG_SCHEMA['metadata']['item_schema'][key]
        _type = specs['type']
        if not isinstance(value, _type) and _type in _COERCE:
            logging.warning(f'Converting metadata "{key}" from {type(value)} to {_type}')
            value = _COERCE[_type](value)

        _check_value(f'metadata.{key}', value, specs)

        self.config_data['metadata'][key] = value
        self.save_section('metadata')
        self._emit('metadataChanged', key, value)

    def block_signals(self, v: bool) -> None:
        self._signals_blocked = v

    @QtCore.Slot()
    def init_data(self) -> None:
        """Load config.json and announce every section."""
        self.load_config()

        self._emit('configSectionChanged', 'server')
        for k, v in self.config_data['metadata'].items():
            self._emit('metadataChanged', k, v)

    def _read(self, path: pathlib.Path) -> Dict[str, Any]:
        with path.open('r', encoding='utf-8') as f:
            return json.load(f)

    def load_config(self) -> Dict[str, Any]:
        """Load and validate config.json.

        Raises:
            status.ConfigNotFoundException: If config.json is missing.
            status.ConfigInvalidException: If config.json is malformed or invalid.
        """
        logging.debug(f'Loading config from "{self.config_path}"')
        if not self.config_path.exists():
            raise status.ConfigNotFoundException

        try:
            data = self._read(self.config_path)
            self.validate_config_data(data=data)
        except status.ConfigInvalidException:
            raise
        except (ValueError, TypeError, OSError) as ex:
            raise status.ConfigInvalidException(f'{ex}') from ex

        self.config_data = data
        return self.config_data

    def validate_config_data(self, data: Optional[Dict[str, Any]] = None) -> None:
        """Validate config data, the loaded data by default, against CONFIG_SCHEMA.

        Raises:
            status.ConfigInvalidException: If a section is missing or not a dict.
            TypeError, ValueError: If a section fails validation.
        """
        data = self.config_data if data is None else data

        for section_name, specs in CONFIG_SCHEMA.items():
            if section_name not in data:
                raise status.ConfigInvalidException(f'Missing required section: {section_name}')
            if not isinstance(data[section_name], specs['type']):
                raise status.ConfigInvalidException(
                    f'Section "{section_name}" must be {specs["type"]}, got {type(data[section_name])}.'
                )
            _validate_section(section_name, data[section_name], specs)

    def get_section(self, section_name: str) -> Dict[str, Any]:
        """Returns a copy of a config section.

        Raises:
            KeyError: If the section does not exist.
        """
        return self.config_data[section_name].copy()

    def set_section(self, section_name: str, new_data: Dict[str, Any]) -> None:
        """Replace and save a config section. Invalid data leaves the section unchanged.

        Raises:
            ValueError: If the section is unknown or the data is invalid.
            TypeError: If a value has the wrong type.
        """
        self._check_section(section_name)

        previous = self.config_data[section_name]
        self.config_data[section_name] = new_data
        try:
            self.validate_config_data()
        except (ValueError, TypeError):
            self.config_data[section_name] = previous
            raise

        self.save_section(section_name)
        self._emit('configSectionChanged', section_name)

    def reload_section(self, section_name: str) -> None:
        """Discard unsaved changes of a section by reading it from disk."""
        self._check_section(section_name)

        data = self._read(self.config_path)
        self.validate_config_data(data=data)
        self.config_data[section_name] = data[section_name]

        self._emit('configSectionChanged', section_name)

    def revert_section(self, section_name: str) -> None:
        """Reset a section to the template defaults and save it."""
        self._check_section(section_name)

        template_data = self._read(self.config_template)
        if section_name not in template_data:
            _fail(ValueError, f'Section "{section_name}" has no template defaults.')

        self.config_data[section_name] = template_data[section_name]
        self.save_section(section_name)

        self._emit('configSectionChanged', section_name)

    def save_section(self, section_name: str) -> None:
        """Write one section to config.json, keeping the other sections on disk as they are.

        The file is replaced in one step so an interrupted write cannot leave a
        truncated config behind.
        """
        self._check_section(section_name)

        data = self._read(self.config_path)
        data[section_name] = self.config_data[section_name]

        logging.debug(f'Saving section "{section_name}" to "{self.config_path}"')
        tmp = self.config_path.with_name(f'{self.config_path.name}.tmp')
        with tmp.open('w', encoding='utf-8') as f:
            json.dump(data, f, indent=4, ensure_ascii=False)
        tmp.replace(self.config_path)

    def get_server_url(self) -> str:
        """Returns the base url of the backend, without a trailing slash.

        The ``PASSBOOK_API_URL`` environment variable takes precedence over the
        configured url.

        Raises:
            status.ServerNotConfiguredException: If no url is set.
        """
        url = os.environ.get(API_URL_ENV_KEY) or self.config_data['server'].get('url', '')
        url = url.strip().rstrip('/')
        if not url:
            raise status.ServerNotConfiguredException
        return url

    def get_server_option(self, key: str) -> Any:
        """Returns a value of the server section.

        Raises:
            KeyError: If key is not a server key.
        """
        if key not in SERVER_KEYS:
            raise KeyError(f'Invalid server key: {key}, must be one of {SERVER_KEYS}')
        return self.config_data['server'][key]


settings: SettingsAPI = SettingsAPI()
