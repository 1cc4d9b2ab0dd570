import pytest

from paths import index_candidate, looks_like_directory, object_key


@pytest.mark.parametrize("uri,expected", [
    ("/about/", "/about/index.html"),
    ("/about", "/about/index.html"),
    ("/", "/index.html"),
    ("/blog/post", "/blog/post/index.html"),
])
def test_index_candidate(uri, expected):
    assert index_candidate(uri) == expected


@pytest.mark.parametrize("uri,expected", [
    ("/blog/post/", True),
    ("/blog/post", True),
    ("/", True),
    ("/assets/app.js", False),
    ("/logo.png", False),
    # a dotted directory is treated as a file
    ("/docs/v1.2", False),
    ("/docs/v1.2/", True),
])
def test_looks_like_directory(uri, expected):
    assert looks_like_directory(uri) is expected


def test_object_key_drops_leading_slash():
    assert object_key("/about/index.html") == "about/index.html"
    assert object_key("/index.html") == "index.html"
