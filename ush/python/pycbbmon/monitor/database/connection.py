import os
import sqlite3
from urllib.request import pathname2url


class DBConnection:
    """
    Single read-only handle on the CloudBerry SQLite database.

    Opened in URI mode=ro so that nothing we do can take a write lock on
    the backup software's own database.
    """
    def __init__(self, db_path: str):
        if not os.path.exists(db_path):
            raise FileNotFoundError(f"Database not found: {db_path}")
        self.db_path = db_path
        self.conn = sqlite3.connect(f"file:{pathname2url(os.path.abspath(db_path))}?mode=ro", uri=True)
        self.conn.row_factory = sqlite3.Row
        try:
            # connect() is lazy; touch the schema so a non-database file fails here
            self.conn.execute("SELECT name FROM sqlite_master LIMIT 1").fetchall()
        except sqlite3.Error:
            self.conn.close()
            raise

    def fetch_all(self, sql: str, params: tuple = ()):
        """Returns a list of Row objects."""
        return self.conn.execute(sql, params).fetchall()

    def fetch_one(self, sql: str, params: tuple = ()):
        """Returns a single Row object or None."""
        return self.conn.execute(sql, params).fetchone()

    def table_columns(self, table_name: str):
        rows = self.conn.execute("SELECT name FROM pragma_table_info(?)", (table_name,)).fetchall()
        return [r["name"] for r in rows]

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
