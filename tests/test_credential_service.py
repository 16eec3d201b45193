import pytest

from backtrack.core.errors import ConflictError, InvalidCredentials, Unauthorized, ValidationError
from backtrack.services.credential_service import CredentialService


@pytest.fixture
def credentials(settings, session):
    return CredentialService(settings, session)


def test_register_hashes_password(credentials):
    user = credentials.register("alice", "hunter22", name="Alice", contact="alice@example.com")

    assert user.id is not None
    assert user.role == "member"
    assert user.password_hash != "hunter22"
    assert "password_hash" not in user.public_view()


def test_register_rejects_taken_username(credentials):
    credentials.register("alice", "hunter22")

    with pytest.raises(ConflictError):
        credentials.register("alice", "another1")


def test_register_rejects_unknown_role(credentials):
    with pytest.raises(ValidationError):
        credentials.register("mallory", "hunter22", role="superuser")


def test_register_rejects_password_over_bcrypt_limit(credentials):
    with pytest.raises(ValidationError):
        credentials.register("bob", "é" * 40)


def test_authenticate_issues_verifiable_token(credentials):
    user = credentials.register("alice", "hunter22", role="admin")

    token, authenticated = credentials.authenticate("alice", "hunter22")
    claims = credentials.verify(token)

    assert authenticated.id == user.id
    assert claims.actor_id == user.id
    assert claims.role == "admin"
    assert claims.is_admin


@pytest.mark.parametrize("username, password", [("alice", "wrong-pass"), ("nobody", "hunter22")])
def test_authenticate_rejects_bad_credentials(credentials, username, password):
    credentials.register("alice", "hunter22")

    with pytest.raises(InvalidCredentials):
        credentials.authenticate(username, password)


def test_verify_rejects_tampered_token(credentials):
    user = credentials.register("alice", "hunter22")
    token = credentials.issue_token(user)

    with pytest.raises(Unauthorized):
        credentials.verify(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))


def test_verify_rejects_expired_token(settings, session):
    settings.access_token_expire_minutes = -1
    credentials = CredentialService(settings, session)
    user = credentials.register("alice", "hunter22")

    with pytest.raises(Unauthorized):
        credentials.verify(credentials.issue_token(user))


def test_verify_rejects_token_signed_with_other_secret(settings, session):
    credentials = CredentialService(settings, session)
    user = credentials.register("alice", "hunter22")
    token = credentials.issue_token(user)

    settings.jwt_secret = "rotated-secret"

    with pytest.raises(Unauthorized):
        credentials.verify(token)
