import json
import logging
import os
import os.path

import jsonschema

from .validation import CONFIG_SCHEMA_PATH, load_schema

CONFIG_ENV_VAR = "BUZA_STORAGE_CONFIG"
PROJECTS_DIR_ENV_VAR = "BUZA_PROJECTS_DIR"

DEFAULT_CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".buza-studio", "config.json")
DEFAULT_PROJECTS_DIR = os.path.join(os.path.expanduser("~"), "Documents", "buza-projects")
DEFAULT_MAX_UNIQUE_NAME_ATTEMPTS = 1000
DEFAULT_VARIANT_NAME = "Main"


class StorageConfig:
    projects_dir: str
    max_unique_name_attempts: int
    default_variant_name: str

    def __init__(
        self,
        projects_dir: str = DEFAULT_PROJECTS_DIR,
        max_unique_name_attempts: int = DEFAULT_MAX_UNIQUE_NAME_ATTEMPTS,
        default_variant_name: str = DEFAULT_VARIANT_NAME,
    ):
        self.projects_dir = os.path.abspath(os.path.expanduser(projects_dir))
        self.max_unique_name_attempts = max_unique_name_attempts
        self.default_variant_name = default_variant_name

    @classmethod
    def from_dict(cls, config_data: dict | None = None) -> "StorageConfig":
        """Build a config from raw file data, falling back to defaults for invalid keys."""
        config_data = dict(config_data or {})

        if config_data:
            schema = load_schema(CONFIG_SCHEMA_PATH)
            try:
                jsonschema.validate(config_data, schema)
            except jsonschema.ValidationError as e:
                logging.error(
                    f"Config file failed to validate against expected schema: {e.message}"
                )
                config_data = _valid_keys_only(config_data, schema)

        return cls(
            config_data.get("projects_dir", DEFAULT_PROJECTS_DIR),
            config_data.get("max_unique_name_attempts", DEFAULT_MAX_UNIQUE_NAME_ATTEMPTS),
            config_data.get("default_variant_name", DEFAULT_VARIANT_NAME),
        )

    def as_dict(self) -> dict[str, str | int]:
        return {
            "projects_dir": self.projects_dir,
            "max_unique_name_attempts": self.max_unique_name_attempts,
            "default_variant_name": self.default_variant_name,
        }


def _valid_keys_only(config_data: dict, schema: dict) -> dict:
    valid = {}
    for key, value in config_data.items():
        if key not in schema["properties"]:
            logging.error(f"Ignoring unknown config key '{key}'")
            continue
        try:
            jsonschema.validate({key: value}, schema)
        except jsonschema.ValidationError:
            logging.error(f"Ignoring invalid value for config key '{key}': {value!r}")
            continue
        valid[key] = value
    return valid


def load_config(path: str | None = None) -> StorageConfig:
    """
    Load the storage configuration.

    The file location is ``path``, else ``$BUZA_STORAGE_CONFIG``, else
    ``~/.buza-studio/config.json``. A missing file means defaults. The
    ``BUZA_PROJECTS_DIR`` environment variable overrides the projects directory.
    """
    config_path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH

    config_data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as config_file:
                config_data = json.load(config_file)
        except (OSError, ValueError) as e:
            logging.error(f"Could not read config file {config_path}: {e}")
            config_data = {}

        if not isinstance(config_data, dict):
            logging.error(f"Config file {config_path} does not contain a JSON object")
            config_data = {}

    config = StorageConfig.from_dict(config_data)

    projects_dir = os.environ.get(PROJECTS_DIR_ENV_VAR)
    if projects_dir:
        config.projects_dir = os.path.abspath(os.path.expanduser(projects_dir))

    return config
