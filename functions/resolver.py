"""Origin-response fallback decisions.

The dynamic origin answers first. A 404 from it may mean the path is a
client-rendered route whose static ``index.html`` lives in the assets
bucket, so the viewer is redirected there. A 403 from the bucket means the
key does not exist (S3 hides missing keys behind AccessDenied when listing
is not allowed) and is turned into a plain 404. Everything else passes
through untouched.

Two strategies decide the 404 case:

* ``ProbeFallbackResolver`` asks S3 whether the index document exists and
  only redirects when it does.
* ``InferenceFallbackResolver`` redirects on path shape alone and relies on
  the distribution's origin failover to serve (or 404) the target.
"""
import json, logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from edge_events import EdgeRequest, EdgeResponse, not_found_response, parse_event, redirect_response
from errors import StorageAccessError
from paths import index_candidate, looks_like_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Redirect:
    location: str
    name = "redirect"

    def to_response(self, original: dict) -> dict:
        return redirect_response(self.location)


@dataclass(frozen=True)
class ForceNotFound:
    headers: dict
    name = "not_found"

    def to_response(self, original: dict) -> dict:
        return not_found_response(self.headers)


@dataclass(frozen=True)
class Passthrough:
    name = "passthrough"

    def to_response(self, original: dict) -> dict:
        return original


PASSTHROUGH = Passthrough()


class FallbackResolver(ABC):
    """Maps one origin response to exactly one decision; holds no per-request state."""

    strategy = None

    def decide(self, request: EdgeRequest, response: EdgeResponse, host: str):
        if response.status == "404":
            return self.on_not_found(request, host)
        if response.status == "403":
            return ForceNotFound(headers=response.headers)
        return PASSTHROUGH

    @abstractmethod
    def on_not_found(self, request: EdgeRequest, host: str):
        """Decide what a 404 from the dynamic origin turns into."""

    @staticmethod
    def redirect_to(host: str, path: str) -> Redirect:
        return Redirect(location="https://" + host + path)


class ProbeFallbackResolver(FallbackResolver):
    strategy = "probe"

    def __init__(self, probe):
        self.probe = probe

    def on_not_found(self, request, host):
        candidate = index_candidate(request.uri)
        if self.probe.exists(candidate):
            return self.redirect_to(host, candidate)
        return PASSTHROUGH


class InferenceFallbackResolver(FallbackResolver):
    strategy = "infer"

    def on_not_found(self, request, host):
        # "/assets/app.js" is a file miss, not a route
        if not looks_like_directory(request.uri):
            return PASSTHROUGH
        return self.redirect_to(host, index_candidate(request.uri))


def build_resolver(settings, probe_factory=None):
    """Pick the strategy named in settings.

    ``probe_factory(settings)`` builds the existence probe; it is only called
    for the probe strategy.
    """
    if settings.strategy == "infer":
        return InferenceFallbackResolver()
    if probe_factory is None:
        from storage import S3ExistenceProbe, make_s3_client

        def probe_factory(s):
            return S3ExistenceProbe(s.require_bucket(), make_s3_client(s.region))
    return ProbeFallbackResolver(probe_factory(settings))


def resolve(resolver: FallbackResolver, event: dict) -> dict:
    """Return the response CloudFront should send to the viewer.

    Internal failures fall back to the origin's own response. Storage access
    errors are re-raised so a broken bucket grant shows up as an error.
    """
    request, record, host = parse_event(event)
    try:
        decision = resolver.decide(request, EdgeResponse.from_record(record), host)
    except StorageAccessError:
        logger.error(json.dumps({"decision": "error", "strategy": resolver.strategy, "uri": request.uri}))
        raise
    except Exception:
        logger.exception("fallback resolution failed for %s, passing origin response through", request.uri)
        return record

    logger.info(json.dumps({"decision": decision.name,
                            "strategy": resolver.strategy,
                            "status": record.get("status"),
                            "uri": request.uri}))
    return decision.to_response(record)
