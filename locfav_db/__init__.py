"""locfav_db: location records and favorites over SQLite."""

__version__ = "0.1.0"
