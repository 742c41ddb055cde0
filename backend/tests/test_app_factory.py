# Overview: Pytest coverage for application factory configuration.

from fixtrack import create_app
from fixtrack.config import engine_options_for


def test_sqlite_uri_gets_busy_timeout():
    assert engine_options_for("sqlite:///ledger.sqlite3", 15.0) == {"connect_args": {"timeout": 15.0}}


def test_other_drivers_get_no_sqlite_connect_args():
    assert engine_options_for("postgresql://ledger@db/ledger", 15.0) == {}


def test_engine_options_follow_overridden_uri(tmp_path):
    app = create_app({
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.sqlite3'}",
        'SQLITE_BUSY_TIMEOUT': 2.5,
    })
    assert app.config["SQLALCHEMY_ENGINE_OPTIONS"] == {"connect_args": {"timeout": 2.5}}


def test_explicit_engine_options_win(tmp_path):
    app = create_app({
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.sqlite3'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {"echo": False},
    })
    assert app.config["SQLALCHEMY_ENGINE_OPTIONS"] == {"echo": False}
