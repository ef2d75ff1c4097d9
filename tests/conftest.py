import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Hypothesis configuration for property-based testing
from hypothesis import settings

settings.register_profile("fast", max_examples=50, deadline=None)
settings.register_profile("thorough", max_examples=1000, deadline=None)
settings.load_profile("fast")

from flask_app import create_app
from queue_store import QueueStore


def fake_title_lookup(url, timeout):
    return f"Title for {url}"


@pytest.fixture
def queue_path(tmp_path):
    return tmp_path / "queue.txt"


@pytest.fixture
def store(queue_path):
    """QueueStore backed by a temp file, with no network title lookup."""
    return QueueStore(str(queue_path), title_lookup=fake_title_lookup)


@pytest.fixture
def catalog():
    return [
        "https://www.youtube.com/watch?v=E8gmARGvPlI",
        "https://www.youtube.com/watch?v=yXQViqx6GMY",
    ]


@pytest.fixture
def app(store, catalog):
    app = create_app(store=store, catalog=catalog)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
