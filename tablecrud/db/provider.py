from __future__ import annotations

import logging
import os
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ..config import DbConfig
from ..errors import ConfigError

logger = logging.getLogger(__name__)


def make_engine(config: DbConfig, **engine_kwargs: Any) -> Engine:
    """
    Create the SQLAlchemy Engine for a config.

    The engine owns pooling; connections are only opened by DbSession.

    Raises:
        ConfigError: If the configured SSL root certificate does not exist
    """
    if config.ssl_root_cert and not os.path.isfile(config.ssl_root_cert):
        raise ConfigError(f"SSL root certificate not found at: {config.ssl_root_cert}")

    engine_kwargs.setdefault("pool_pre_ping", True)
    connect_args = {**config.connect_args(), **engine_kwargs.pop("connect_args", {})}

    logger.info(
        "Creating engine for %s@%s:%s/%s (sslmode=%s)",
        config.username,
        config.host,
        config.port,
        config.database,
        connect_args.get("sslmode"),
    )
    return create_engine(config.url(), connect_args=connect_args, **engine_kwargs)
