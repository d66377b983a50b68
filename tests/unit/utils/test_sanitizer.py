"""Тесты маскирования чувствительных данных."""

import pytest

from fluent_http.utils import sanitizer
from fluent_http.utils.sanitizer import add_sensitive_keys, mask_sensitive_data


class TestMaskSensitiveData:
    def test_sensitive_keys(self):
        result = mask_sensitive_data({"Authorization": "Bearer abc", "Accept": "*/*", "user_password": "x"})
        assert result == {
            "Authorization": "***REDACTED***",
            "Accept": "*/*",
            "user_password": "***REDACTED***",
        }

    def test_nested(self):
        data = {"headers": {"X-API-Key": "k"}, "items": [{"token": "t"}, "plain"]}
        result = mask_sensitive_data(data)
        assert result["headers"]["X-API-Key"] == "***REDACTED***"
        assert result["items"] == [{"token": "***REDACTED***"}, "plain"]

    def test_original_untouched(self):
        data = {"token": "t"}
        mask_sensitive_data(data)
        assert data == {"token": "t"}

    @pytest.mark.parametrize("text, secret", [
        ("Authorization: Bearer eyJhbGciOi.abc", "eyJhbGciOi.abc"),
        ("Basic dXNlcjpwYXNz", "dXNlcjpwYXNz"),
        ("https://x.com/?api_key=123&page=1", "123"),
        ("password=hunter2", "hunter2"),
    ])
    def test_patterns_in_strings(self, text, secret):
        assert secret not in mask_sensitive_data(text)

    def test_query_keeps_other_params(self):
        assert mask_sensitive_data("https://x.com/?token=abc&page=1").endswith("&page=1")

    def test_custom_mask(self):
        assert mask_sensitive_data({"secret": "s"}, mask="[hidden]") == {"secret": "[hidden]"}

    @pytest.mark.parametrize("value", [None, 1, 2.5, True])
    def test_scalars_unchanged(self, value):
        assert mask_sensitive_data(value) is value

    def test_tuple_type_preserved(self):
        assert mask_sensitive_data(("a", "token=x")) == ("a", "token=***REDACTED***")


def test_add_sensitive_keys(monkeypatch):
    monkeypatch.setattr(sanitizer, "SENSITIVE_KEYS", set(sanitizer.SENSITIVE_KEYS))
    assert mask_sensitive_data({"X-Signature": "s"}) == {"X-Signature": "s"}
    add_sensitive_keys("X-Signature")
    assert mask_sensitive_data({"X-Signature": "s"}) == {"X-Signature": "***REDACTED***"}
