"""Unit tests for request log tagging."""

import pytest
from libs.common.middleware import access_code_action, request_log_fields
from starlette.requests import Request
from tests.conftest import make_user


def _request(path):
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": path,
            "headers": [],
            "query_string": b"",
        }
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "path, action",
    [
        ("/access-codes", "generate"),
        ("/access-codes/recent", "recent"),
        ("/access-codes/redeem/athlete", "redeem:athlete"),
        ("/access-codes/preview/coach", "preview:coach"),
        ("/profiles/me", None),
        ("/", None),
    ],
)
def test_access_code_action(path, action):
    assert access_code_action(path) == action


@pytest.mark.unit
def test_fields_include_user_and_action():
    request = _request("/access-codes/redeem/admin")
    request.state.user = make_user(user_id="user-123")

    fields = request_log_fields(request, 200, 12.3456)

    assert fields == {
        "status_code": 200,
        "duration_ms": 12.35,
        "user_id": "user-123",
        "access_code_action": "redeem:admin",
    }


@pytest.mark.unit
def test_fields_for_anonymous_request():
    fields = request_log_fields(_request("/sports"), 404, 1.0)

    assert fields == {"status_code": 404, "duration_ms": 1.0}
