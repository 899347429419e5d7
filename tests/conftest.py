"""Pytest shared fixtures: in-memory stand-ins for the Supabase APIs."""
import itertools
import os
import re
import uuid
from types import SimpleNamespace

# Configure test environment BEFORE any vinculo imports
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "anon-test-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-test-key")

import pytest
from postgrest.exceptions import APIError
from supabase import AuthApiError

from vinculo.core.identity import IdentityProvider
from vinculo.repositories.note_repo import NoteRepository
from vinculo.repositories.teacher_repo import TeacherRepository
from vinculo.repositories.user_repo import ProfileRepository
from vinculo.services.login_service import LoginService
from vinculo.services.maintenance_service import MaintenanceService
from vinculo.services.user_service import UserService


# ─────────────────────────────────────────────────────────────────────────────
# Table API
# ─────────────────────────────────────────────────────────────────────────────
PRIMARY_KEYS = {"Usuarios": "Usuario_ID", "Professores": "Professor_ID"}


def _like_to_regex(pattern: str) -> re.Pattern:
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


class FakeQuery:
    """Chainable query mimicking the supabase table builder."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.limit_n = None
        self.order_by = None

    def select(self, *columns, **kwargs):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows if isinstance(rows, list) else [rows]
        return self

    def update(self, patch):
        self.op = "update"
        self.payload = patch
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column, pattern):
        regex = _like_to_regex(pattern)
        self.filters.append(
            lambda row: row.get(column) is not None and regex.fullmatch(row[column]) is not None
        )
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matches(self):
        return [r for r in self.db.rows(self.table) if all(f(r) for f in self.filters)]

    def execute(self):
        self.db.calls.append((self.table, self.op))
        error = self.db.failures.get((self.table, self.op))
        if error:
            raise APIError({"message": error, "code": "XX000", "hint": None, "details": None})

        if self.op == "insert":
            created = []
            pk = PRIMARY_KEYS.get(self.table, "id")
            for row in self.payload:
                row = dict(row)
                row.setdefault(pk, next(self.db.ids))
                self.db.rows(self.table).append(row)
                created.append(dict(row))
            return SimpleNamespace(data=created)

        matched = self._matches()
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])
        if self.op == "delete":
            table_rows = self.db.rows(self.table)
            for row in matched:
                table_rows.remove(row)
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda r: r.get(column) or "", reverse=desc)
        if self.limit_n is not None:
            matched = matched[: self.limit_n]
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeDB:
    """In-memory tables behind the supabase `table()` API."""

    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.calls = []
        self.ids = itertools.count(1)

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, message="boom"):
        self.failures[(table, op)] = message

    def add_profile(self, **values):
        row = {
            "Usuario_ID": next(self.ids),
            "Nome": "Fulano",
            "Email": "fulano@escola.com",
            "Tipo": "Tutor",
            "Status": "Ativo",
            "auth_uid": None,
        }
        row.update(values)
        self.rows("Usuarios").append(row)
        return row


# ─────────────────────────────────────────────────────────────────────────────
# Auth API
# ─────────────────────────────────────────────────────────────────────────────
class FakeAuthBackend:
    """
    Identities shared by every client handed out by the provider.

    trigger_db: when set, sign-up inserts a Usuarios row like the
    handle_new_auth_user trigger of the hosted project does.
    """

    def __init__(self):
        self.identities = {}
        self.clients = []
        self.sign_up_error = None
        self.trigger_db = None
        self.deleted = []

    def add_identity(self, email, password, uid=None):
        uid = uid or str(uuid.uuid4())
        self.identities[email] = {"id": uid, "email": email, "password": password}
        return uid

    def user(self, record):
        return SimpleNamespace(id=record["id"], email=record["email"], email_confirmed_at=None)


class FakeAuth:
    def __init__(self, backend):
        self.backend = backend
        self.session = None
        self.sign_out_calls = 0
        self.admin = FakeAdminAuth(backend)

    def sign_up(self, credentials):
        backend = self.backend
        if backend.sign_up_error:
            raise AuthApiError(*backend.sign_up_error)
        email = credentials["email"]
        if email in backend.identities:
            raise AuthApiError("User already registered", 422, "user_already_exists")
        uid = backend.add_identity(email, credentials["password"])
        if backend.trigger_db is not None:
            backend.trigger_db.add_profile(
                Nome=credentials["options"]["data"]["nome"],
                Email=email,
                Tipo=None,
                Status=None,
            )
        return SimpleNamespace(user=backend.user(backend.identities[email]), session=None)

    def sign_in_with_password(self, credentials):
        record = self.backend.identities.get(credentials["email"])
        if record is None or record["password"] != credentials["password"]:
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        self.session = SimpleNamespace(access_token=f"access-{record['id']}", refresh_token="refresh")
        return SimpleNamespace(user=self.backend.user(record), session=self.session)

    def sign_out(self):
        self.sign_out_calls += 1
        self.session = None


class FakeAdminAuth:
    def __init__(self, backend):
        self.backend = backend

    def delete_user(self, uid):
        self.backend.deleted.append(uid)
        for email, record in list(self.backend.identities.items()):
            if record["id"] == uid:
                del self.backend.identities[email]

    def list_users(self, page=1, per_page=50):
        users = [self.backend.user(r) for r in self.backend.identities.values()]
        start = (page - 1) * per_page
        return users[start : start + per_page]


class FakeAuthClient:
    def __init__(self, backend):
        self.auth = FakeAuth(backend)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def db():
    return FakeDB()


@pytest.fixture
def auth_backend():
    return FakeAuthBackend()


@pytest.fixture
def identity(auth_backend):
    def new_client():
        client = FakeAuthClient(auth_backend)
        auth_backend.clients.append(client)
        return client

    return IdentityProvider(
        client_factory=new_client,
        admin_factory=lambda: FakeAuthClient(auth_backend),
    )


@pytest.fixture
def user_service(identity):
    return UserService(ProfileRepository(), TeacherRepository(), NoteRepository(), identity)


@pytest.fixture
def login_service(identity):
    return LoginService(ProfileRepository(), identity)


@pytest.fixture
def maintenance_service(identity):
    return MaintenanceService(ProfileRepository(), identity)
