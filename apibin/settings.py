"""
apibin settings provider
"""

import os
import sys
import functools
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

try:
    import ujson as json
except ImportError:
    import json

import pydantic_settings

from .schemas import config


SETTINGS_CREATE_NONEXISTENT: bool = False
"""
switch to create a new configuration file if no existing file has been found
"""

SETTINGS_EXIT_ON_ERROR: bool = True
"""
switch to call ``exit(1)`` for an unreadable config file (use all defaults otherwise)
"""

SETTINGS_LOG_ERROR_FUNCTION: Optional[Callable[[str], Any]] = functools.partial(print, file=sys.stderr)
"""
optional function to accept log messages on failure
"""

SETTINGS_LOG_INFO_FUNCTION: Optional[Callable[[str], Any]] = None
"""
optional function to accept log messages when creating a new configuration file
"""

CONFIG_PATHS: List[str] = ["config.json", os.path.join("..", "config.json")]
"""
list of search paths for the config file, can be overwritten by the env variable ``CONFIG_PATH``
"""

if os.environ.get("CONFIG_PATH"):
    CONFIG_PATHS = [os.environ.get("CONFIG_PATH")]


class JSONFileSettingsSource(pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source reading the whole configuration from the first JSON config file found
    """

    def get_field_value(self, field: Any, field_name: str) -> Tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> Dict[str, Any]:
        return read_settings_from_file()


class Settings(pydantic_settings.BaseSettings, config.CoreConfig):
    """
    apibin settings

    Do not change the settings at runtime, since the store and its background
    tasks only read them once during application creation. Always restart the
    server after changing the config file. Note that the server config might
    get overwritten during initialization (via command-line arguments).
    """

    model_config = pydantic_settings.SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def settings_customise_sources(
            cls,
            settings_cls: Type[pydantic_settings.BaseSettings],
            init_settings: pydantic_settings.PydanticBaseSettingsSource,
            env_settings: pydantic_settings.PydanticBaseSettingsSource,
            dotenv_settings: pydantic_settings.PydanticBaseSettingsSource,
            file_secret_settings: pydantic_settings.PydanticBaseSettingsSource
    ) -> Tuple[pydantic_settings.PydanticBaseSettingsSource, ...]:
        return (
            env_settings,
            dotenv_settings,
            file_secret_settings,
            JSONFileSettingsSource(settings_cls),
            init_settings
        )


def store_configuration(conf: Optional[config.CoreConfig] = None, path: Optional[str] = None) -> config.CoreConfig:
    p = path or os.path.abspath(CONFIG_PATHS[0])
    conf = conf or get_default_core_config()
    with open(p, "w") as f:
        json.dump(conf.model_dump(mode="json"), f, indent=4)
    SETTINGS_LOG_INFO_FUNCTION and SETTINGS_LOG_INFO_FUNCTION(f"A new config file has been created as {p!r}.")
    return conf


def read_settings_from_file() -> Dict[str, Any]:
    for path in CONFIG_PATHS:
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="UTF-8") as file:
                    return json.load(file)
            except ValueError as exc:
                if SETTINGS_LOG_ERROR_FUNCTION:
                    SETTINGS_LOG_ERROR_FUNCTION(f"Config file {path!r} is not valid JSON: {exc}")
                if SETTINGS_EXIT_ON_ERROR:
                    sys.exit(1)
                return {}

    if SETTINGS_CREATE_NONEXISTENT:
        return store_configuration().model_dump(mode="json")
    return {}


def get_default_core_config() -> config.CoreConfig:
    return config.CoreConfig(
        server=config.ServerConfig(),
        store=config.StoreConfig(),
        logging=config.LoggingConfig()
    )


def get_default_config() -> Dict[str, Any]:
    return get_default_core_config().model_dump(mode="json")
