INDEX_DOCUMENT = "index.html"


def index_candidate(uri: str) -> str:
    # "/about/" -> "/about/index.html", "/about" -> "/about/index.html"
    if uri.endswith("/"):
        return uri + INDEX_DOCUMENT
    return uri + "/" + INDEX_DOCUMENT


def looks_like_directory(uri: str) -> bool:
    """True for "/blog/" and "/blog/post"; false for "/logo.png".

    Any dot counts, so "/docs/v1.2" is treated as a file.
    """
    return uri.endswith("/") or "." not in uri


def object_key(candidate: str) -> str:
    # CloudFront maps "/about/index.html" to key "about/index.html"
    return candidate.lstrip("/")
