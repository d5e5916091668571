"""
Unit tests for access token verification.
"""

import uuid

import jwt
import pytest

from backend.api.deps.auth import decode_access_token
from backend.configs import get_settings
from backend.core.exceptions import UnauthorizedError
from backend.models.auth import Role
from tests.factories import make_token


class TestDecodeAccessToken:
    """Test suite for decode_access_token."""

    def test_valid_token_yields_principal(self, organisation_id):
        principal = decode_access_token(make_token(organisation_id, role="admin", email="a@b.co"))

        assert principal.organisation_id == organisation_id
        assert principal.role == Role.ADMIN
        assert principal.email == "a@b.co"

    def test_unknown_role_is_rejected(self, organisation_id):
        with pytest.raises(UnauthorizedError, match="Invalid authentication token"):
            decode_access_token(make_token(organisation_id, role="owner"))

    def test_malformed_claim_is_rejected(self, organisation_id):
        with pytest.raises(UnauthorizedError, match="Invalid authentication token"):
            decode_access_token(make_token(organisation_id, userId="not-a-uuid"))

    def test_wrong_secret_is_rejected(self):
        token = jwt.encode(
            {
                "userId": str(uuid.uuid4()),
                "email": "user@example.com",
                "organisationId": str(uuid.uuid4()),
                "role": "editor",
            },
            "some-other-secret-that-is-long-enough",
            algorithm=get_settings().auth.jwt_algorithm,
        )

        with pytest.raises(UnauthorizedError, match="Invalid authentication token"):
            decode_access_token(token)

    def test_garbage_is_rejected(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            decode_access_token("not.a.jwt")

        assert exc_info.value.status_code == 401
