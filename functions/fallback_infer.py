"""Origin-response trigger that redirects a 404 to the index.html its path implies.

No S3 call is made; pair it with an origin group that fails over to the
assets bucket.
"""
from resolver import InferenceFallbackResolver, resolve
from settings import configure_logging, load_settings

configure_logging(load_settings())

RESOLVER = InferenceFallbackResolver()


def handler(event, context):
    return resolve(RESOLVER, event)
