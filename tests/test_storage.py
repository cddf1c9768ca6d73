import pytest
from jose import jwt

from sinmungo.core.errors import NotFound, StorageError
from sinmungo.core.security import ALGORITHM, SECRET_KEY


def test_upload_never_overwrites(store):
    store.upload("1/a.pdf", b"first")
    with pytest.raises(StorageError):
        store.upload("1/a.pdf", b"second")
    assert store.open("1/a.pdf").read_bytes() == b"first"


def test_keys_stay_under_root(store):
    with pytest.raises(StorageError):
        store.upload("../outside.pdf", b"x")


def test_remove_skips_missing(store):
    store.upload("1/a.pdf", b"x")
    assert store.remove(["1/a.pdf", "1/missing.pdf"]) == ["1/a.pdf"]
    assert not store.exists("1/a.pdf")


def test_signed_url_round_trip(store):
    store.upload("7/b.png", b"png")
    url, expires_at = store.create_signed_url("7/b.png", 60)
    assert url.startswith("/api/v1/files/")
    assert store.resolve_signed_url(url.rsplit("/", 1)[-1]) == "7/b.png"


def test_signed_url_for_missing_object(store):
    with pytest.raises(NotFound):
        store.create_signed_url("nope.pdf", 60)


def test_expired_or_foreign_tokens_are_rejected(store):
    store.upload("7/b.png", b"png")
    url, _ = store.create_signed_url("7/b.png", -10)
    with pytest.raises(NotFound):
        store.resolve_signed_url(url.rsplit("/", 1)[-1])

    other_bucket = jwt.encode({"b": "avatars", "k": "7/b.png"}, SECRET_KEY, algorithm=ALGORITHM)
    with pytest.raises(NotFound):
        store.resolve_signed_url(other_bucket)
    with pytest.raises(NotFound):
        store.resolve_signed_url("not-a-token")
