"""Origin-response trigger that redirects a 404 to an index.html it has found in S3."""
from dataclasses import replace

from resolver import build_resolver, resolve
from settings import configure_logging, load_settings

SETTINGS = replace(load_settings(), strategy="probe")
configure_logging(SETTINGS)

# Built on first invocation and reused for the life of the container.
_RESOLVER = None


def get_resolver():
    global _RESOLVER
    if _RESOLVER is None:
        _RESOLVER = build_resolver(SETTINGS)
    return _RESOLVER


def handler(event, context):
    return resolve(get_resolver(), event)
