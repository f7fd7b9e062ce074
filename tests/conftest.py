import datetime

import pytest

from app import create_app
from models import db


@pytest.fixture
def app():
    app = create_app('testing', {'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:'})
    with app.app_context():
        # create_app already initializes the db (db.init_app). Just create tables for the test DB.
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class StepClock:
    """Returns a strictly increasing UTC time on every call."""

    def __init__(self, start=None, step=datetime.timedelta(seconds=1)):
        self.now = start or datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def clock():
    return StepClock()
