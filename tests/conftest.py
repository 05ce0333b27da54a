import json
import pathlib
import sys

import pytest
import requests


PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hubspot_oauth_app import create_app
from hubspot_oauth_app.config import TestingConfig
from hubspot_oauth_app.token_store import InMemoryTokenStore


def make_response(status_code=200, payload=None, text=None):
    """Build a real ``requests.Response`` without touching the network."""

    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if payload is not None:
        response._content = json.dumps(payload).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = (text or "").encode("utf-8")
    return response


class ManualClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeHttp:
    """Stand-in for ``requests.Session`` that replays queued responses.

    A queued item may be a response, an exception to raise, or a callable
    producing a response.
    """

    def __init__(self):
        self.posts = []
        self.gets = []
        self.post_responses = []
        self.get_responses = []

    def post(self, url, data=None, timeout=None, **kwargs):  # noqa: ARG002
        self.posts.append({"url": url, "data": data, "timeout": timeout})
        return self._next(self.post_responses)

    def get(self, url, headers=None, params=None, timeout=None, **kwargs):  # noqa: ARG002
        self.gets.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        return self._next(self.get_responses)

    @staticmethod
    def _next(queue):
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item()
        return item


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def store(clock):
    return InMemoryTokenStore(clock=clock)


@pytest.fixture()
def http():
    return FakeHttp()


@pytest.fixture()
def app(store, http):
    app = create_app(config_class=TestingConfig, token_store=store, http=http)
    app.config.update({"TESTING": True})
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def oauth_client(app):
    return app.extensions["oauth_client"]
