"""
Configuration loading for pmp.

Settings are resolved from, lowest to highest precedence: built-in
defaults, a ``.pmprc`` JSON file in the project root, ``PMP_*`` environment
variables (a ``.env`` file is honoured), and finally command-line flags.
"""

import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from ..utils.sizes import parse_size
from .errors import ConfigError
from .models import Config

logger = logging.getLogger(__name__)

PMPRC_FILE = '.pmprc'

# Always excluded, on top of user patterns and .gitignore
DEFAULT_EXCLUDES = [
    "node_modules/**", "vendor/**", ".git/**", "**/.git/**", ".svn/**",
    "**/.DS_Store", ".idea/**", ".vscode/**", "dist/**", "build/**",
    "**/__pycache__/**", "**/*.pyc", "**/*.pyo", "**/*.so", "**/*.dll",
    "**/*.exe", "**/*.bin", "**/*.obj", "**/*.o", "**/*.a", "**/*.lib",
]

SIZE_FIELDS = ('min_size', 'max_size', 'max_total_size')

# .pmprc key -> Config field
_FILE_KEYS = {
    'exclude': 'exclude_patterns',
    'include': 'include_patterns',
    'minSize': 'min_size',
    'maxSize': 'max_size',
    'maxFiles': 'max_files',
    'maxTotalSize': 'max_total_size',
    'format': 'output_format',
    'outputDir': 'output_dir',
    'workers': 'workers',
    'noGitignore': 'no_gitignore',
}

_ENV_KEYS = {
    'PMP_OUTPUT_DIR': 'output_dir',
    'PMP_WORKERS': 'workers',
    'PMP_FORMAT': 'output_format',
    'PMP_MAX_FILES': 'max_files',
    'PMP_MAX_TOTAL_SIZE': 'max_total_size',
    'PMP_MIN_SIZE': 'min_size',
    'PMP_MAX_SIZE': 'max_size',
    'PMP_EXCLUDE': 'exclude_patterns',
    'PMP_INCLUDE': 'include_patterns',
    'PMP_NO_GITIGNORE': 'no_gitignore',
    'PMP_CACHE_FILE': 'cache_path',
}

VALID_FORMATS = ('txt', 'markdown', 'xml', 'json')


def _coerce(field_name: str, value: Any) -> Any:
    """Convert a raw setting value to the type of the Config field."""
    if field_name in SIZE_FIELDS:
        return parse_size(str(value))

    if field_name in ('workers', 'max_files'):
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid integer for {field_name}: {value!r}")
        if number < 0:
            raise ConfigError(f"{field_name} must not be negative: {number}")
        return number

    if field_name in ('include_patterns', 'exclude_patterns'):
        if isinstance(value, str):
            return [p.strip() for p in value.split(',') if p.strip()]
        if not isinstance(value, list):
            raise ConfigError(f"{field_name} must be a list of patterns")
        return [str(p) for p in value]

    if field_name == 'no_gitignore':
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)

    if field_name == 'output_format':
        if value not in VALID_FORMATS:
            raise ConfigError(f"Unknown output format: {value!r}")
        return value

    return value


def _apply(config: Config, values: Mapping[str, Any]) -> Config:
    changes = {name: _coerce(name, value) for name, value in values.items()}
    return replace(config, **changes)


def load_config(project_path: str, config: Optional[Config] = None) -> Config:
    """
    Apply settings from ``<project_path>/.pmprc`` on top of ``config``.

    A missing file is not an error.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    config = config or Config()
    config_path = os.path.join(project_path, PMPRC_FILE)
    if not os.path.isfile(config_path):
        return config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid {PMPRC_FILE}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {PMPRC_FILE}: expected a JSON object")

    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        logger.warning(f"Ignoring unknown {PMPRC_FILE} keys: {', '.join(unknown)}")

    values = {_FILE_KEYS[key]: value for key, value in data.items()
              if key in _FILE_KEYS and value not in (None, '', [])}
    logger.debug(f"Loaded {PMPRC_FILE} from {config_path}")
    return _apply(config, values)


def load_env_config(config: Optional[Config] = None,
                    environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Apply ``PMP_*`` environment variables on top of ``config``.

    When ``environ`` is not given, a ``.env`` file is loaded first and the
    process environment is used.
    """
    config = config or Config()
    if environ is None:
        load_dotenv()
        environ = os.environ

    values = {field_name: environ[key] for key, field_name in _ENV_KEYS.items()
              if environ.get(key, '').strip()}
    return _apply(config, values)


def merge_overrides(config: Config, **overrides: Any) -> Config:
    """
    Apply explicit overrides (command-line flags); None values are ignored.

    Size fields accept strings with units.
    """
    values: Dict[str, Any] = {name: value for name, value in overrides.items()
                              if value is not None and value != () and value != []}
    return _apply(config, values)


def resolve_config(project_path: str, environ: Optional[Mapping[str, str]] = None,
                   **overrides: Any) -> Config:
    """Defaults, then .pmprc, then environment, then explicit overrides."""
    config = load_config(project_path)
    config = load_env_config(config, environ)
    return merge_overrides(config, **overrides)
