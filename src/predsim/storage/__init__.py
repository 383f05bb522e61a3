"""DuckDB persistence: snapshots, trade log, export."""
