"""
Manages loading and saving of the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from kbart_harvester.exceptions import ConfigurationError
from kbart_harvester.models.config import HarvestConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> HarvestConfig:
        """
        Loads settings from the INI file when present, applies CLI overrides, and
        validates the result.

        Args:
            cli_options: A dictionary of options provided via the command line.
                Must include 'output_dir'.

        Returns:
            A validated, immutable HarvestConfig.

        Raises:
            ConfigurationError: If the file cannot be parsed or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e
            config_from_file = self._get_config_as_dict()
            log.debug(f"Loaded settings from {self.config_file_path}")

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return HarvestConfig(
                **config_from_file,
                config_path=str(self.config_file_path.parent),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a configuration file holding every setting, using the
        model defaults for anything not given.
        """
        settings = settings or {}
        config = configparser.ConfigParser()
        config["DEFAULT"] = {}

        defaults = HarvestConfig.model_construct()
        for key in sorted(HarvestConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the keys present in the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        readers = {
            "max_workers": section.getint,
            "check_validity": section.getboolean,
            "connect_timeout": section.getfloat,
            "read_timeout": section.getfloat,
            "total_timeout": section.getfloat,
            "chunk_size": section.getint,
            "user_agent": section.get,
        }
        values: dict[str, Any] = {}
        for key, read in readers.items():
            if key not in section:
                continue
            try:
                values[key] = read(key)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for '{key}' in {self.config_file_path}: {e}"
                ) from e
        unknown = set(section) - set(readers)
        if unknown:
            log.warning(
                f"[yellow]Ignoring unknown config keys: {', '.join(sorted(unknown))}"
                "[/yellow]"
            )
        return values
