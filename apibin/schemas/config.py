"""
Special schemas for the configuration file and its properties
"""

from typing import Dict, Optional, Union

import pydantic


class ServerConfig(pydantic.BaseModel):
    host: str = "127.0.0.1"
    port: pydantic.conint(gt=0, lt=65536) = 8888
    public_base_url: Optional[pydantic.HttpUrl] = None


class StoreConfig(pydantic.BaseModel):
    max_size: pydantic.NonNegativeInt = 20
    refresh_interval: pydantic.PositiveFloat = 600
    live_update_interval: pydantic.PositiveFloat = 10
    live_update_key: pydantic.constr(min_length=1) = "sapiens"
    baseline: Optional[str] = None


class LoggingConfig(pydantic.BaseModel):
    version: pydantic.conint(ge=1, le=1) = 1
    disable_existing_loggers: bool = False
    incremental: bool = False
    filters: Dict[str, Dict[str, Union[str, list]]] = {
        "refresher_no_debug": {
            "()": "apibin.misc.logger.NoDebugFilter",
            "name": "apibin.storage.refresher"
        }
    }
    formatters: Dict[str, Dict[str, str]] = {
        "default": {
            "style": "{",
            "format": "{asctime}: apibin {process}: [{levelname}] {name}: {message}",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "file": {
            "style": "{",
            "format": "{asctime} [{levelname}] {name} ({threadName}): {message}",
            "datefmt": "%Y-%m-%dT%H:%M:%S"
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": "%(asctime)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
        }
    }
    loggers: Dict[str, dict] = {
        "uvicorn.access": {
            "level": "INFO",
            "handlers": ["access"],
            "propagate": False
        }
    }
    handlers: Dict[str, Dict[str, Union[str, list]]] = {
        "default": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "default",
            "filters": ["refresher_no_debug"]
        },
        "file": {
            "level": "DEBUG",
            "class": "logging.FileHandler",
            "filename": "./apibin.log",
            "formatter": "file"
        },
        "access": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "access"
        }
    }
    root: dict = {
        "level": "INFO",
        "handlers": ["default", "file"]
    }


class CoreConfig(pydantic.BaseModel):
    server: ServerConfig = pydantic.Field(default_factory=ServerConfig)
    store: StoreConfig = pydantic.Field(default_factory=StoreConfig)
    logging: LoggingConfig = pydantic.Field(default_factory=LoggingConfig)
