from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

from ..core.constants import MONGO_SERVER_SELECTION_TIMEOUT_MS

logger = logging.getLogger(__name__)


@dataclass
class MongoConfig:
    uri: str
    database: str


class DatabaseConnection:
    """Singleton-like holder of the process-wide MongoClient.

    Note: MongoClient keeps its own connection pool and is thread-safe, so one
    instance is shared by every request. It connects lazily on first use.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[MongoClient] = None

    @classmethod
    def get_instance(cls, config: MongoConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            self._client = MongoClient(
                self._config.uri,
                serverSelectionTimeoutMS=MONGO_SERVER_SELECTION_TIMEOUT_MS,
            )
            logger.info("MongoDB client created for database %s", self._config.database)
        return self._client

    def get_database(self) -> Database:
        return self.client[self._config.database]

    def ping(self) -> bool:
        self.client.admin.command("ping")
        return True

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB client closed")
