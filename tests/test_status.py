"""
Tests for HTTP status classification.
"""

import pytest

from http_fetch_core.status import (
    StatusClass,
    classify_status,
    is_auth_error,
    is_error,
    is_http_scheme,
    is_redirect,
    status_label,
)


class TestClassifyStatus:
    """Test mapping of status codes to dispatch classes."""

    @pytest.mark.parametrize(
        "status, expected",
        [
            (100, StatusClass.INFORMATIONAL),
            (199, StatusClass.INFORMATIONAL),
            (200, StatusClass.SUCCESS),
            (204, StatusClass.SUCCESS),
            (299, StatusClass.SUCCESS),
            (300, StatusClass.REDIRECT),
            (302, StatusClass.REDIRECT),
            (399, StatusClass.REDIRECT),
            (400, StatusClass.CLIENT_ERROR),
            (401, StatusClass.AUTH_ERROR),
            (404, StatusClass.CLIENT_ERROR),
            (499, StatusClass.CLIENT_ERROR),
            (500, StatusClass.SERVER_ERROR),
            (599, StatusClass.SERVER_ERROR),
        ],
    )
    def test_classes(self, status, expected):
        assert classify_status(status) is expected

    @pytest.mark.parametrize("status", [0, 99, 600, 1000, -1, "200"])
    def test_out_of_range(self, status):
        with pytest.raises(ValueError):
            classify_status(status)

    def test_error_classes(self):
        errors = {cls for cls in StatusClass if cls.is_error}
        assert errors == {
            StatusClass.AUTH_ERROR,
            StatusClass.CLIENT_ERROR,
            StatusClass.SERVER_ERROR,
        }


class TestPredicates:
    """Test the status predicates."""

    def test_is_auth_error(self):
        assert is_auth_error(401)
        assert not is_auth_error(403)

    @pytest.mark.parametrize("status", range(100, 600, 7))
    def test_predicates_agree_with_classes(self, status):
        status_class = classify_status(status)
        assert is_error(status) == status_class.is_error
        assert is_redirect(status) == (status_class is StatusClass.REDIRECT)


class TestStatusLabel:
    """Test reason phrase lookup."""

    def test_known(self):
        assert status_label(200) == "OK"
        assert status_label(404) == "Not Found"
        assert status_label(503) == "Service Unavailable"

    def test_unknown(self):
        assert status_label(599) is None


class TestSchemes:
    """Test the supported scheme check."""

    @pytest.mark.parametrize("scheme", ["http", "https", "HTTPS"])
    def test_supported(self, scheme):
        assert is_http_scheme(scheme)

    @pytest.mark.parametrize("scheme", ["ftp", "file", ""])
    def test_unsupported(self, scheme):
        assert not is_http_scheme(scheme)
