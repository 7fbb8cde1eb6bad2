"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides graph store fixtures shared across the suite.
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local cigraph package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of cigraph modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("cigraph"):
        del sys.modules[module_name]

from cigraph.store.base import GraphStore  # noqa: E402
from cigraph.store.memory import InMemoryGraphStore  # noqa: E402
from cigraph.store.sql import SqlGraphStore  # noqa: E402

TENANT = "t-1"
REPO = "r-1"


@pytest.fixture
def scope() -> dict[str, str]:
    """Default (tenant_id, repo_id) keyword pair."""
    return {"tenant_id": TENANT, "repo_id": REPO}


@pytest.fixture
def memory_store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def sql_store(tmp_path: Path) -> Generator[SqlGraphStore, None, None]:
    """SqlGraphStore on a fresh SQLite file."""
    store = SqlGraphStore.open(tmp_path / "graph.db")
    yield store
    store.db.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Generator[GraphStore, None, None]:
    """Every GraphStore implementation, one test run each."""
    if request.param == "memory":
        yield InMemoryGraphStore()
        return
    sql = SqlGraphStore.open(tmp_path / "graph.db")
    yield sql
    sql.db.dispose()
