from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = 10


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation; each one is a transaction.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @classmethod
    def from_dict(cls, db_config: dict) -> "DatabaseConnection":
        return cls.get_instance(
            DBConfig(
                host=str(db_config["host"]),
                port=int(db_config.get("port", 3306)),
                user=str(db_config["user"]),
                password=str(db_config["password"]),
                database=str(db_config["database"]),
                connection_timeout=int(db_config.get("connection_timeout", 10)),
            )
        )

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
            connection_timeout=int(self._config.connection_timeout),
        )
