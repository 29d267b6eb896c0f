"""Picklist title service package.

Modules:
- api: FastAPI app serving titles and status updates
- database: SQLite engine and sessions
- repository: title queries and updates
- importer: CSV import of picking lists
- migrations: Alembic helpers
- config: INI parsing and config object
"""
