import pytest
from flask import Flask

import hubspot_oauth_app.app as app_module
from hubspot_oauth_app import create_app
from hubspot_oauth_app.config import (
    DEFAULT_SCOPE,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config_class,
    parse_scopes,
)


class MissingClientIdConfig(TestingConfig):
    CLIENT_ID = None


class MissingSecretsConfig(TestingConfig):
    CLIENT_SECRET = ""
    SECRET_KEY = None


@pytest.mark.parametrize(
    "raw",
    ["a,b, c", "a b c", "a%20b%20c", "a, b,c", " a  b c "],
)
def test_parse_scopes_normalizes_delimiters(raw):
    assert parse_scopes(raw) == "a b c"


def test_parse_scopes_defaults_to_contacts_read():
    assert parse_scopes(None) == DEFAULT_SCOPE
    assert parse_scopes("") == DEFAULT_SCOPE
    assert parse_scopes(" , ") == DEFAULT_SCOPE


def test_create_app_fails_without_client_id():
    with pytest.raises(RuntimeError, match="CLIENT_ID"):
        create_app(config_class=MissingClientIdConfig)


def test_create_app_reports_every_missing_value():
    with pytest.raises(RuntimeError) as excinfo:
        create_app(config_class=MissingSecretsConfig)

    assert "CLIENT_SECRET" in str(excinfo.value)
    assert "SESSION_SECRET" in str(excinfo.value)


def test_startup_aborts_before_binding_port(monkeypatch):
    """The server is never started when configuration is incomplete."""

    started = []
    monkeypatch.setattr(Flask, "run", lambda self, *a, **kw: started.append(kw))
    monkeypatch.setattr(
        app_module, "create_app", lambda: create_app(config_class=MissingClientIdConfig)
    )

    with pytest.raises(RuntimeError):
        app_module.main()

    assert started == []


def test_main_runs_on_configured_port_and_opens_browser(monkeypatch):
    started = []
    opened = []

    class BrowserConfig(TestingConfig):
        PORT = 4321
        OPEN_BROWSER = True

    monkeypatch.setattr(Flask, "run", lambda self, *a, **kw: started.append(kw))
    monkeypatch.setattr(app_module.webbrowser, "open", opened.append)
    monkeypatch.setattr(
        app_module, "create_app", lambda: create_app(config_class=BrowserConfig)
    )

    app_module.main()

    assert opened == ["http://localhost:4321"]
    assert started[0]["port"] == 4321


@pytest.mark.parametrize(
    "env, expected",
    [
        ("production", ProductionConfig),
        ("prod", ProductionConfig),
        ("testing", TestingConfig),
        ("development", DevelopmentConfig),
        ("", DevelopmentConfig),
    ],
)
def test_get_config_class_uses_app_env(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)
    assert get_config_class() is expected
