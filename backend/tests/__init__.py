"""
pytest suite for the Genesis Pass registry backend.

Test categories:
- Unit tests: registry state machine, ledger, custody, helpers
- API tests: FastAPI routes over httpx with an in-memory SQLite DB
- Contract tests: PyTeal compilation of the GenesisPass program
"""
