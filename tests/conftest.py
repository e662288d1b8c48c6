import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from opsync import create_app
from opsync.extensions import db as _db
from opsync.models.company import Company


@pytest.fixture
def app():
    app = create_app('config.TestConfig')
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def company(app):
    c = Company(
        name='Acme',
        gsuite_domain='acme.com',
        printer_url='https://printer.acme.test',
        airtable_base_id_assets='appAssets',
        airtable_base_id_misc='appMisc',
        slack_team_id='T0ACME',
    )
    _db.session.add(c)
    _db.session.commit()
    return c
