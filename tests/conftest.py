import pytest

from psi_checker.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        PAGESPEED_API_KEY="test-key",
        SESSIONS_FILE=str(tmp_path / ".pagespeed-sessions.json"),
        RESULTS_DIR=str(tmp_path / "results"),
    )
