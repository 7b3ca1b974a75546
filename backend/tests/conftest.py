import os
from pathlib import Path

from dotenv import load_dotenv
import pytest

# Anything importing rental_booking.database gets an in-memory engine
os.environ.setdefault("PYTEST_RUN", "1")

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')

from factories import setup_db  # noqa: E402
from rental_booking.services.pricing import surcharges  # noqa: E402


@pytest.fixture(autouse=True)
def reset_surcharge_table():
    """Each test starts from the built-in surcharge table."""
    surcharges.reset_surcharge_table()
    yield
    surcharges.reset_surcharge_table()


@pytest.fixture
def db():
    session = setup_db()
    try:
        yield session
    finally:
        session.close()
