from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables for tests before the app settings are read
load_dotenv(Path(__file__).resolve().parents[1] / ".env.test")


@pytest.fixture(autouse=True)
def reset_dependency_overrides():
    """Each test installs its own DB and auth overrides."""
    from inkmity.main import app

    yield
    app.dependency_overrides.clear()
