"""Shared fixtures: CloudFront origin-response events and a clean settings environment."""
import copy

import pytest

HOST = "d111111abcdef8.cloudfront.net"

ORIGIN_HEADERS = {
    "content-type": [{"key": "Content-Type", "value": "text/html; charset=utf-8"}],
    "x-cache": [{"key": "X-Cache", "value": "Error from cloudfront"}],
}


def origin_response_event(status, uri, headers=None, host=HOST, status_description=None):
    return {
        "Records": [{
            "cf": {
                "config": {
                    "distributionDomainName": host,
                    "distributionId": "EDFDVBD6EXAMPLE",
                    "eventType": "origin-response",
                },
                "request": {
                    "uri": uri,
                    "method": "GET",
                    "querystring": "",
                    "headers": {"host": [{"key": "Host", "value": host}]},
                },
                "response": {
                    "status": status,
                    "statusDescription": status_description or {"200": "OK", "403": "Forbidden", "404": "Not Found"}.get(status, ""),
                    "headers": copy.deepcopy(ORIGIN_HEADERS if headers is None else headers),
                },
            }
        }]
    }


def response_of(event):
    return event["Records"][0]["cf"]["response"]


@pytest.fixture
def make_event():
    return origin_response_event


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FALLBACK_BUCKET", "FALLBACK_REGION", "FALLBACK_STRATEGY", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class FakeProbe:
    """Existence probe backed by a set of candidate paths; records what it was asked."""

    def __init__(self, existing=(), error=None):
        self.existing = set(existing)
        self.error = error
        self.calls = []

    def exists(self, path):
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return path in self.existing
