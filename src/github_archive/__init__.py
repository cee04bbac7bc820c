"""GitHub Archive hourly snapshot loader.

Downloads one hour of GH Archive events and loads them into a SQLite
database with one typed table per event type:
- Streaming download and gzip decompression
- Line-exact parsing of newline-delimited JSON
- A declarative schema registry that drives DDL, inserts and routing
- Idempotent, batched insert-or-ignore loading
"""

__version__ = "0.1.0"
