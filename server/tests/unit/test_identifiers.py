"""Unit tests for identifiers and bearer tokens."""

from datetime import timedelta

import pytest

from backoffice.core.exceptions import AuthenticationError, ValidationError
from backoffice.core.identifiers import OBJECT_ID_LENGTH, is_object_id, new_object_id, parse_object_id
from backoffice.core.security import (
    Principal,
    create_access_token,
    decode_access_token,
    hash_password,
    principal_from_header,
    verify_password,
)
from backoffice.models.states import UserRole


def test_new_object_id_is_canonical():
    value = new_object_id()
    assert len(value) == OBJECT_ID_LENGTH
    assert is_object_id(value)
    assert new_object_id() != value


def test_parse_object_id_normalizes_case_and_whitespace():
    assert parse_object_id("  507F1F77BCF86CD799439011 ") == "507f1f77bcf86cd799439011"


@pytest.mark.parametrize(
    "value",
    ["", "507f1f77bcf86cd79943901", "507f1f77bcf86cd7994390111", "zzzf1f77bcf86cd799439011", None, 42],
)
def test_parse_object_id_rejects_malformed(value):
    with pytest.raises(ValidationError) as exc_info:
        parse_object_id(value, field="companyId")

    assert exc_info.value.status_code == 400
    assert "companyId" in exc_info.value.errors


def test_token_round_trip_keeps_principal():
    principal = Principal(
        id="64b000000000000000000a02",
        role=UserRole.AGENT,
        tenant_id="507f1f77bcf86cd799439011",
        name="Bob Agent",
    )

    assert decode_access_token(create_access_token(principal)) == principal


def test_super_admin_token_has_no_company():
    principal = Principal(id="64b000000000000000000f01", role=UserRole.SUPER_ADMIN)

    decoded = principal_from_header(f"Bearer {create_access_token(principal)}")

    assert decoded.is_super_admin
    assert decoded.is_admin
    assert decoded.tenant_id is None


def test_expired_token_is_rejected():
    principal = Principal(id="64b000000000000000000a02", role=UserRole.AGENT, tenant_id="507f1f77bcf86cd799439011")
    token = create_access_token(principal, expires_delta=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


@pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer not-a-jwt"])
def test_bad_authorization_headers(header):
    with pytest.raises(AuthenticationError) as exc_info:
        principal_from_header(header)

    assert exc_info.value.status_code == 401


def test_password_hashing():
    hashed = hash_password("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)
    assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")
