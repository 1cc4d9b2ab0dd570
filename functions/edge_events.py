"""CloudFront origin-response event shapes.

The event CloudFront hands to an origin-response trigger looks like::

    {"Records": [{"cf": {
        "config": {"distributionDomainName": "d111111abcdef8.cloudfront.net", ...},
        "request": {"uri": "/about", "method": "GET", "headers": {...}, ...},
        "response": {"status": "404", "statusDescription": "Not Found", "headers": {...}},
    }}]}

Headers are keyed by lower-case name, each holding a list of
``{"key": <original casing>, "value": ...}`` entries.
"""
from dataclasses import dataclass, field
from typing import Optional

from errors import MalformedEvent

NOT_FOUND_BODY = "<h1>404 Not Found</h1>"


@dataclass(frozen=True)
class EdgeRequest:
    uri: str
    method: str = "GET"
    headers: dict = field(default_factory=dict)


@dataclass(frozen=True)
class EdgeResponse:
    status: str
    status_description: str = ""
    headers: dict = field(default_factory=dict)
    body: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict) -> "EdgeResponse":
        return cls(status=str(record.get("status", "")),
                   status_description=record.get("statusDescription", ""),
                   headers=record.get("headers") or {},
                   body=record.get("body"))


def parse_event(event: dict):
    """Split an origin-response event into (request, response record, host).

    The response is returned as the raw record so a passthrough hands
    CloudFront back exactly what it sent.
    """
    try:
        cf = event["Records"][0]["cf"]
        record = cf["response"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedEvent(f"no origin response in event: {e!r}") from e

    raw_request = _mapping(cf.get("request"))
    request = EdgeRequest(uri=str(raw_request.get("uri") or "/"),
                          method=str(raw_request.get("method") or "GET"),
                          headers=_mapping(raw_request.get("headers")))
    host = str(_mapping(cf.get("config")).get("distributionDomainName") or "")
    return request, record, host


def _mapping(value) -> dict:
    # a garbled request or config must not cost us the response record
    return value if isinstance(value, dict) else {}


def redirect_response(location: str) -> dict:
    return {
        "status": "302",
        "statusDescription": "Found",
        "headers": {
            "location": [{"key": "Location", "value": location}],
        },
    }


def not_found_response(headers: dict) -> dict:
    return {
        "status": "404",
        "statusDescription": "Not Found",
        "headers": headers,
        "body": NOT_FOUND_BODY,
    }
