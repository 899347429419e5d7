import pytest

from vinculo.core.config import get_settings
from vinculo.core.errors import (
    InactiveAccountError,
    LoginFailedError,
    OrphanedIdentityError,
    UnknownAccountError,
    WrongPasswordError,
)
from vinculo.core.identity import AuthFailure, AuthResult


def last_client(auth_backend):
    return auth_backend.clients[-1]


def test_active_profile_logs_in(db, auth_backend, login_service):
    uid = auth_backend.add_identity("ana@escola.com", "segredo1")
    db.add_profile(Email="ana@escola.com", auth_uid=uid, Status="Ativo")

    res = login_service.login(db, "ana@escola.com", "segredo1")

    assert res.access_token == f"access-{uid}"
    assert res.profile.auth_uid == uid
    assert last_client(auth_backend).auth.sign_out_calls == 0


def test_wrong_password_for_known_email(db, auth_backend, login_service):
    auth_backend.add_identity("ana@escola.com", "segredo1")
    db.add_profile(Email="Ana@Escola.com")

    with pytest.raises(WrongPasswordError) as exc:
        login_service.login(db, "ANA@escola.com", "errada")

    assert exc.value.detail == "E-mail ou senha incorretos."


def test_unknown_account_carries_contact_hint(db, login_service):
    with pytest.raises(UnknownAccountError) as exc:
        login_service.login(db, "ghost@x.com", "whatever")

    assert get_settings().CONTACT_HINT in exc.value.detail


def test_other_provider_failure_is_verbatim(db, login_service, monkeypatch):
    monkeypatch.setattr(
        login_service.identity,
        "sign_in_with_password",
        lambda email, password: AuthResult(failure=AuthFailure.OTHER, message="Email not confirmed"),
    )

    with pytest.raises(LoginFailedError) as exc:
        login_service.login(db, "ana@escola.com", "segredo1")

    assert exc.value.detail == "Email not confirmed"


def test_identity_without_profile_is_signed_out(db, auth_backend, login_service):
    auth_backend.add_identity("orfao@escola.com", "segredo1")

    with pytest.raises(OrphanedIdentityError):
        login_service.login(db, "orfao@escola.com", "segredo1")

    client = last_client(auth_backend)
    assert client.auth.sign_out_calls == 1
    assert client.auth.session is None


def test_profile_lookup_error_counts_as_orphan(db, auth_backend, login_service):
    uid = auth_backend.add_identity("ana@escola.com", "segredo1")
    db.add_profile(Email="ana@escola.com", auth_uid=uid)
    db.fail("Usuarios", "select", "connection reset")

    with pytest.raises(OrphanedIdentityError):
        login_service.login(db, "ana@escola.com", "segredo1")

    assert last_client(auth_backend).auth.sign_out_calls == 1


@pytest.mark.parametrize("status", ["Inativo", None])
def test_inactive_profile_is_signed_out(db, auth_backend, login_service, status):
    uid = auth_backend.add_identity("ana@escola.com", "segredo1")
    db.add_profile(Email="ana@escola.com", auth_uid=uid, Status=status)

    with pytest.raises(InactiveAccountError):
        login_service.login(db, "ana@escola.com", "segredo1")

    assert last_client(auth_backend).auth.sign_out_calls == 1


def test_each_attempt_gets_its_own_client(db, auth_backend, login_service):
    uid = auth_backend.add_identity("ana@escola.com", "segredo1")
    db.add_profile(Email="ana@escola.com", auth_uid=uid)

    login_service.login(db, "ana@escola.com", "segredo1")
    with pytest.raises(UnknownAccountError):
        login_service.login(db, "ghost@x.com", "whatever")

    first, second = auth_backend.clients
    assert first.auth.session is not None
    assert second.auth.session is None


def test_failed_email_check_after_refused_login_reads_as_unknown(db, login_service):
    db.add_profile(Email="ana@escola.com")
    db.fail("Usuarios", "select", "connection reset")

    with pytest.raises(UnknownAccountError):
        login_service.login(db, "ana@escola.com", "errada")
