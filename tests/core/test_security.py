from datetime import timedelta

import pytest
from httpx import AsyncClient

from edutrack.api.deps import principal_from_token
from edutrack.core.security import create_access_token, decode_token
from edutrack.models.identity import UserType


def test_token_round_trip_carries_principal():
    token = create_access_token("teacher-1", "teacher", "Tom Teacher", "school-1")

    principal = principal_from_token(token)

    assert principal.id == "teacher-1"
    assert principal.role == UserType.TEACHER
    assert principal.name == "Tom Teacher"
    assert principal.school_id == "school-1"


def test_expired_token_is_rejected():
    token = create_access_token("teacher-1", "teacher", "Tom", None, expires_delta=timedelta(seconds=-5))
    assert decode_token(token) is None


def test_unknown_role_is_rejected():
    token = create_access_token("x", "janitor", "Jan", "school-1")
    assert decode_token(token) is not None
    assert principal_from_token(token) is None


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"
