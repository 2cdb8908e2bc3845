"""Tests for polyroute.http.headers — immutable, case-insensitive Headers."""

import pytest

from polyroute.http.headers import Headers


def _h(*pairs: tuple[str, str]) -> Headers:
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_case_insensitive(self) -> None:
        h = _h(("Accept-Language", "nl"))
        assert h["accept-language"] == "nl"
        assert h["ACCEPT-LANGUAGE"] == "nl"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            _h(("Accept", "*/*"))["X-Missing"]

    def test_get_default(self) -> None:
        assert _h().get("host") is None
        assert _h().get("host", "localhost") == "localhost"

    def test_first_value_wins(self) -> None:
        h = _h(("Cookie", "a=1"), ("Cookie", "b=2"))
        assert h["cookie"] == "a=1"
        assert h.get_list("cookie") == ["a=1", "b=2"]

    def test_iteration_and_len_are_unique(self) -> None:
        h = _h(("Cookie", "a=1"), ("cookie", "b=2"), ("Host", "x"))
        assert list(h) == ["cookie", "host"]
        assert len(h) == 2

    def test_from_dict(self) -> None:
        h = Headers.from_dict({"Host": "dutch.test", "Accept-Language": "nl"})
        assert h["host"] == "dutch.test"
        assert "accept-language" in h
