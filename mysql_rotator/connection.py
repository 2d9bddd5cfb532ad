"""
Database connection and metadata queries for MySQL Backup Rotator.
"""

import logging
from typing import Optional

import mysql.connector
from mysql.connector import Error as MySQLError

from .errors import MetadataError
from .models import TableInfo


def quote_identifier(name: str) -> str:
    """Quote a schema or table name with backticks."""
    escaped = name.replace("`", "``")
    return f"`{escaped}`"


class DatabaseConnection:
    """Manages MySQL database connections with context manager support."""

    DEFAULT_PORT = 3306
    DEFAULT_CHARSET = 'utf8mb4'

    TABLES_QUERY = (
        "SELECT TABLE_NAME, TABLE_ROWS FROM information_schema.TABLES "
        "WHERE TABLE_SCHEMA = %s AND TABLE_TYPE = 'BASE TABLE' "
        "ORDER BY TABLE_NAME"
    )

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.connection = None

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish database connection."""
        try:
            self.connection = mysql.connector.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                charset=self.DEFAULT_CHARSET,
                use_unicode=True
            )
            logging.info(f"Connected to {self.host}:{self.port}")
        except MySQLError as e:
            logging.error(f"Failed to connect to database: {e}")
            raise MetadataError(
                f"Cannot connect to {self.host}:{self.port}: {e}"
            ) from e

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            logging.debug("Database connection closed")

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list[tuple]:
        """Execute a query and return results."""
        try:
            cursor = self.connection.cursor()
        except MySQLError as e:
            raise MetadataError(f"Metadata query failed: {e}") from e

        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except MySQLError as e:
            raise MetadataError(f"Metadata query failed: {e}") from e
        finally:
            cursor.close()

    def get_databases(self) -> list[str]:
        """Get names of all schemas on the server."""
        results = self.execute_query("SHOW DATABASES")
        databases = [row[0] for row in results]
        logging.info(f"{len(databases)} database(s) found on {self.host}")
        return databases

    def get_tables(self, schema: str, exact: bool = False) -> list[TableInfo]:
        """
        Get base tables of ``schema`` with their row counts.

        Row counts come from information_schema and are estimates for InnoDB.
        With ``exact`` each table is counted with SELECT COUNT(*).
        """
        results = self.execute_query(self.TABLES_QUERY, (schema,))
        tables = [TableInfo(name=row[0], row_count=int(row[1] or 0)) for row in results]

        if exact:
            for table in tables:
                table.row_count = self.get_row_count(schema, table.name)

        logging.info(f"{len(tables)} table(s) retrieved for '{schema}'")
        return tables

    def get_row_count(self, schema: str, table: str) -> int:
        """Get exact row count for a table."""
        query = f"SELECT COUNT(*) FROM {quote_identifier(schema)}.{quote_identifier(table)}"
        results = self.execute_query(query)
        return results[0][0]
