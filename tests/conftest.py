from pathlib import Path
from uuid import UUID, uuid4

import pytest

from folio.adapters.clock import FixedClock
from folio.adapters.sqlite.migrator import SQLiteMigrator
from folio.rules.loader import load_rules
from folio.rules.models import Rules

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def rules() -> Rules:
    """Real rules from the project root."""
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """A migrated, empty SQLite database."""
    path = str(tmp_path / "folio.db")
    SQLiteMigrator(path, str(ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()
