"""SQL schema migrations."""

from .runner import VERSIONS_DIR, MigrationRunner

__all__ = ["VERSIONS_DIR", "MigrationRunner"]
