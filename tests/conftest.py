from pathlib import Path
import sys

from _pytest.monkeypatch import MonkeyPatch
import pytest

# Ensure repo root is importable as a package root (for `tests.fakes`).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aistor_mcp.dispatcher import Dispatcher  # noqa: E402
from aistor_mcp.tools import OperationContext, build_registry  # noqa: E402
from tests.fakes import FakeStorage, make_context  # noqa: E402

# Every variable load_config reads; cleared so the host shell never leaks in
CONFIG_ENV_VARS = (
    "AISTOR_MCP_CONFIG",
    "MINIO_ENDPOINT",
    "MINIO_ACCESS_KEY",
    "MINIO_SECRET_KEY",
    "MINIO_USE_SSL",
    "MINIO_REGION",
    "ALLOW_WRITE",
    "ALLOW_DELETE",
    "ALLOW_ADMIN",
    "ALLOWED_DIRECTORIES",
    "MAX_KEYS",
    "HTTP_MODE",
    "PORT",
    "AISTOR_MCP_LOG_LEVEL",
    "AISTOR_MCP_OBS_ENABLED",
    "AISTOR_MCP_OBS_LOG_FORMAT",
    "AISTOR_MCP_OBS_CSV_ENABLED",
    "AISTOR_MCP_OBS_CSV_PATH",
)


@pytest.fixture(scope="session", autouse=True)
def _session_env(tmp_path_factory: pytest.TempPathFactory) -> None:
    """
    Session-level hermetic env that does not depend on the function-scoped
    `monkeypatch` fixture (avoids ScopeMismatch).
    """
    home = tmp_path_factory.mktemp("home")
    mp = MonkeyPatch()
    mp.setenv("HOME", str(home))
    # boto3 must never pick up real credentials or config
    mp.setenv("AWS_SHARED_CREDENTIALS_FILE", str(home / "aws-credentials"))
    mp.setenv("AWS_CONFIG_FILE", str(home / "aws-config"))
    try:
        yield
    finally:
        mp.undo()


@pytest.fixture(autouse=True)
def hermetic_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Autouse: each test runs in its own tmp cwd with no server config in the env.
    """
    monkeypatch.chdir(tmp_path)
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def sandbox(tmp_path: Path) -> Path:
    """A directory the tools are allowed to touch."""
    root = tmp_path / "sandbox"
    root.mkdir()
    return root


@pytest.fixture
def context(storage: FakeStorage, sandbox: Path) -> OperationContext:
    """Context with every tier enabled."""
    return make_context(storage, sandbox, write=True, delete=True, admin=True)


@pytest.fixture
def dispatcher(context: OperationContext) -> Dispatcher:
    return Dispatcher(build_registry(), context)

