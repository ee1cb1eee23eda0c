"""Destinations for exported track records."""

import logging
import sqlite3
import sys
from typing import TextIO

from core.config import AppConfig, DatabaseConfig
from core.models import ConfigError, SinkError, TrackRecord

logger = logging.getLogger(__name__)

TABLE = "playlists_info"

COLUMNS = (
    "playlisttitle",
    "position",
    "videoid",
    "tracktitle",
    "publishedat",
    "playlistid",
    "videoownerchannelid",
    "videoownerchanneltitle",
)

CREATE_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {TABLE} (
        playlisttitle TEXT,
        position INTEGER,
        videoid TEXT,
        tracktitle TEXT,
        publishedat TEXT,
        playlistid TEXT,
        videoownerchannelid TEXT,
        videoownerchanneltitle TEXT
    )
"""

# DB-API placeholder per driver
PLACEHOLDERS = {
    "sqlite": "?",
    "sqlite3": "?",
    "postgres": "%s",
    "postgresql": "%s",
}


class ConsoleSink:
    """Prints one tab-separated line per record."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream or sys.stdout

    def accept(self, record: TrackRecord) -> None:
        line = "\t".join([
            record.playlist_title,
            str(record.position),
            record.video_id,
            record.track_title,
            record.published_at,
            record.video_owner_channel_title,
        ])
        try:
            print(line, file=self._stream)
        except OSError as e:
            raise SinkError(f"unable to write to console: {e}") from e

    def close(self) -> None:
        self._stream.flush()


class SQLSink:
    """Inserts each record into the playlists_info table in its own transaction."""

    def __init__(self, connection, placeholder: str = "?"):
        self._conn = connection
        marks = ", ".join([placeholder] * len(COLUMNS))
        self._insert = f"INSERT INTO {TABLE} ({', '.join(COLUMNS)}) VALUES ({marks})"

    def ensure_table(self) -> None:
        try:
            cursor = self._conn.cursor()
            cursor.execute(CREATE_TABLE)
            self._conn.commit()
        except Exception as e:
            self._conn.rollback()
            raise SinkError(f"unable to create table {TABLE}: {e}") from e

    def accept(self, record: TrackRecord) -> None:
        params = (
            record.playlist_title,
            record.position,
            record.video_id,
            record.track_title,
            record.published_at,
            record.playlist_id,
            record.video_owner_channel_id,
            record.video_owner_channel_title,
        )
        try:
            cursor = self._conn.cursor()
            cursor.execute(self._insert, params)
            self._conn.commit()
        except Exception as e:
            self._conn.rollback()
            raise SinkError(f"unable to write to DB: {e}") from e

    def close(self) -> None:
        self._conn.close()


def connect_database(config: DatabaseConfig):
    """Open a DB-API connection for the configured driver."""
    driver = config.driver.lower()
    try:
        if driver in ("postgres", "postgresql"):
            import psycopg

            logger.debug("Creating PostgreSQL connection")
            return psycopg.connect(config.conninfo(), autocommit=False)
        if driver in ("sqlite", "sqlite3"):
            logger.debug(f"Opening SQLite database {config.dbname}")
            return sqlite3.connect(config.dbname)
    except Exception as e:
        raise SinkError(f"unable to connect to database: {e}") from e

    raise ConfigError(f"Unsupported DRIVER '{config.driver}', expected postgres or sqlite3")


def open_sink(config: AppConfig):
    """Build the sink selected in the config."""
    if config.sink == "db":
        if config.database is None:
            raise ConfigError("Database settings are required for the db sink")
        placeholder = PLACEHOLDERS.get(config.database.driver.lower(), "?")
        sink = SQLSink(connect_database(config.database), placeholder)
        try:
            sink.ensure_table()
        except SinkError:
            sink.close()
            raise
        return sink
    return ConsoleSink()
