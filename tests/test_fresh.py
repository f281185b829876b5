"""Tests for conditional request evaluation (reqctx._fresh)."""

from reqctx import is_fresh

LAST_MODIFIED = "Sat, 01 Jan 2000 00:00:00 GMT"
LATER = "Sun, 02 Jan 2000 00:00:00 GMT"
EARLIER = "Fri, 31 Dec 1999 00:00:00 GMT"


class TestNoValidators:
    def test_unconditional_request(self) -> None:
        assert is_fresh({}, {"etag": '"abc"'}) is False


class TestETag:
    def test_match(self) -> None:
        assert is_fresh({"if-none-match": '"abc"'}, {"etag": '"abc"'}) is True

    def test_mismatch(self) -> None:
        assert is_fresh({"if-none-match": '"abc"'}, {"etag": '"xyz"'}) is False

    def test_list(self) -> None:
        assert is_fresh({"if-none-match": '"a", "b" ,"c"'}, {"etag": '"c"'}) is True

    def test_weak_comparison(self) -> None:
        assert is_fresh({"if-none-match": 'W/"abc"'}, {"etag": '"abc"'}) is True
        assert is_fresh({"if-none-match": '"abc"'}, {"etag": 'W/"abc"'}) is True

    def test_star(self) -> None:
        assert is_fresh({"if-none-match": "*"}, {}) is True

    def test_no_etag(self) -> None:
        assert is_fresh({"if-none-match": '"abc"'}, {}) is False

    def test_etag_checked_before_date(self) -> None:
        req = {"if-none-match": '"abc"', "if-modified-since": LATER}
        res = {"etag": '"xyz"', "last-modified": LAST_MODIFIED}
        assert is_fresh(req, res) is False


class TestModifiedSince:
    def test_not_modified(self) -> None:
        assert is_fresh({"if-modified-since": LATER}, {"last-modified": LAST_MODIFIED}) is True

    def test_same_instant(self) -> None:
        assert is_fresh({"if-modified-since": LAST_MODIFIED}, {"last-modified": LAST_MODIFIED})

    def test_modified(self) -> None:
        assert is_fresh({"if-modified-since": EARLIER}, {"last-modified": LAST_MODIFIED}) is False

    def test_no_last_modified(self) -> None:
        assert is_fresh({"if-modified-since": LATER}, {}) is False

    def test_unparseable_date(self) -> None:
        assert is_fresh({"if-modified-since": "yesterday"}, {"last-modified": LAST_MODIFIED}) is False


class TestCacheControl:
    def test_no_cache_forces_reload(self) -> None:
        req = {"if-none-match": '"abc"', "cache-control": "max-age=0, no-cache"}
        assert is_fresh(req, {"etag": '"abc"'}) is False

    def test_other_directives_ignored(self) -> None:
        req = {"if-none-match": '"abc"', "cache-control": "max-age=0"}
        assert is_fresh(req, {"etag": '"abc"'}) is True
