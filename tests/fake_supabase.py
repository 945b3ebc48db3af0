"""
In-memory stand-in for the supabase-py Client used by the tests.

Supports the subset of the PostgREST query builder the services use
(select with one level of embedding, insert, update, upsert, delete,
eq / is_ filters, order, limit) and the GoTrue calls made by AuthService.
Each execute() runs under one lock, like a single SQL statement, and the
unique constraints of the real schema are enforced.
"""

import re
import threading
import uuid
from copy import deepcopy
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError

UNIQUE_KEYS = {
    "product": [("prodcode",)],
    "pricehist": [("prodcode", "effdate")],
    "user_permissions": [("id",), ("user_id",)],
    "product_audit": [("id",)],
}

GENERATED_IDS = {"user_permissions", "product_audit"}

# (parent table, embedded table) -> (parent column, child column)
EMBEDS = {
    ("product", "pricehist"): ("prodcode", "prodcode"),
}

FOREIGN_KEYS = {
    "pricehist": ("prodcode", "product", "prodcode"),
}

EMBED_PATTERN = re.compile(r"(\w+)\s*\(([^)]*)\)")


class FakeResponse:
    def __init__(self, data):
        self.data = data
        self.count = None


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.payload: Any = None
        self.filters: List[Tuple[str, str, Any]] = []
        self.order_by: List[Tuple[str, bool]] = []
        self.row_limit: Optional[int] = None
        self.on_conflict: Optional[str] = None
        self.ignore_duplicates = False

    # builders

    def select(self, columns: str = "*", **kwargs):
        self.operation = "select"
        self.columns = columns
        return self

    def insert(self, payload, **kwargs):
        self.operation = "insert"
        self.payload = payload
        return self

    def upsert(self, payload, on_conflict: str = "", ignore_duplicates: bool = False, **kwargs):
        self.operation = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, payload, **kwargs):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self, **kwargs):
        self.operation = "delete"
        return self

    def eq(self, column: str, value):
        self.filters.append(("eq", column, value))
        return self

    def is_(self, column: str, value):
        self.filters.append(("is", column, value))
        return self

    def in_(self, column: str, values):
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column: str, desc: bool = False, **kwargs):
        self.order_by.append((column, desc))
        return self

    def limit(self, size: int, **kwargs):
        self.row_limit = size
        return self

    # execution

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table, self.operation))
        if self.db.before_execute:
            self.db.before_execute(self.table, self.operation)
        failure = self.db.failures.get((self.table, self.operation))
        if failure is not None:
            raise failure
        with self.db.lock:
            return FakeResponse(getattr(self, f"_run_{self.operation}")())

    def _matches(self, row: Dict[str, Any]) -> bool:
        for kind, column, value in self.filters:
            current = row.get(column)
            if kind == "eq" and _normalize(current) != _normalize(value):
                return False
            if kind == "is" and value in ("null", None) and current is not None:
                return False
            if kind == "in" and _normalize(current) not in [_normalize(v) for v in value]:
                return False
        return True

    def _rows(self) -> List[Dict[str, Any]]:
        return [row for row in self.db.tables[self.table] if self._matches(row)]

    def _run_select(self):
        rows = self._rows()
        for column, desc in reversed(self.order_by):
            rows = sorted(rows, key=lambda r: _sort_key(r.get(column)), reverse=desc)
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        return [self._shape(row) for row in rows]

    def _shape(self, row: Dict[str, Any]) -> Dict[str, Any]:
        shaped = deepcopy(row)
        for embedded, columns in EMBED_PATTERN.findall(self.columns):
            parent_col, child_col = EMBEDS[(self.table, embedded)]
            wanted = [c.strip() for c in columns.split(",") if c.strip()]
            shaped[embedded] = [
                {c: child.get(c) for c in wanted}
                for child in self.db.tables[embedded]
                if child.get(child_col) == row.get(parent_col)
            ]
        return shaped

    def _prepare(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(payload)
        if self.table in GENERATED_IDS:
            row.setdefault("id", str(uuid.uuid4()))
        if self.table == "user_permissions":
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            row.setdefault("user_id", None)
        if self.table == "product_audit":
            row.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        if self.table == "product":
            row.setdefault("deleted", False)
        return row

    def _run_insert(self):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = []
        for item in payload:
            row = self._prepare(item)
            self.db.check_row(self.table, row)
            self.db.tables[self.table].append(row)
            inserted.append(deepcopy(row))
        return inserted

    def _run_upsert(self):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        conflict_cols = tuple(c.strip() for c in (self.on_conflict or "id").split(","))
        written = []
        for item in payload:
            row = self._prepare(item)
            existing = self.db.find_conflict(self.table, row, conflict_cols)
            if existing is not None:
                if self.ignore_duplicates:
                    continue
                existing.update({k: v for k, v in item.items()})
                written.append(deepcopy(existing))
                continue
            self.db.check_row(self.table, row)
            self.db.tables[self.table].append(row)
            written.append(deepcopy(row))
        return written

    def _run_update(self):
        updated = []
        for row in self._rows():
            candidate = {**row, **self.payload}
            self.db.check_row(self.table, candidate, ignore=row)
            row.update(self.payload)
            updated.append(deepcopy(row))
        return updated

    def _run_delete(self):
        doomed = self._rows()
        self.db.tables[self.table] = [r for r in self.db.tables[self.table] if r not in doomed]
        return [deepcopy(r) for r in doomed]


class FakeAdminAuth:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth
        self.signed_out: List[str] = []

    def update_user_by_id(self, user_id: str, attributes: Dict[str, Any]):
        user = self.auth.users_by_id.get(user_id)
        if user is None:
            return SimpleNamespace(user=None)
        if "email" in attributes:
            user.email = attributes["email"]
        if "user_metadata" in attributes:
            user.user_metadata = {**user.user_metadata, **attributes["user_metadata"]}
        return SimpleNamespace(user=user)

    def sign_out(self, jwt: str, scope: str = "global"):
        self.signed_out.append(jwt)
        self.auth.tokens.pop(jwt, None)


class FakeAuth:
    """GoTrue stand-in. A FakeAuth built from another shares its users and sessions."""

    def __init__(self, shared: Optional["FakeAuth"] = None):
        self.users_by_id: Dict[str, SimpleNamespace] = shared.users_by_id if shared else {}
        self.passwords: Dict[str, str] = shared.passwords if shared else {}
        self.tokens: Dict[str, str] = shared.tokens if shared else {}
        self.admin = FakeAdminAuth(self)
        self.signed_in_listeners: List[Callable[[str], None]] = []

    def add_user(self, email: str, full_name: Optional[str] = None, token: Optional[str] = None,
                 password: str = "password123", account_type: str = "user", user_id: Optional[str] = None):
        metadata = {"account_type": account_type}
        if full_name:
            metadata["full_name"] = full_name
        user = SimpleNamespace(
            id=user_id or str(uuid.uuid4()),
            email=email,
            user_metadata=metadata,
            app_metadata={},
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.users_by_id[user.id] = user
        self.passwords[email] = password
        if token:
            self.tokens[token] = user.id
        return user

    def _by_email(self, email: str):
        for user in self.users_by_id.values():
            if user.email == email:
                return user
        return None

    def sign_up(self, credentials: Dict[str, Any]):
        if self._by_email(credentials["email"]) is not None:
            raise Exception("User already registered")
        data = credentials.get("options", {}).get("data", {})
        user = self.add_user(
            credentials["email"],
            full_name=data.get("full_name"),
            password=credentials["password"],
            account_type=data.get("account_type", "user"),
        )
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials: Dict[str, Any]):
        user = self._by_email(credentials["email"])
        if user is None or self.passwords.get(user.email) != credentials["password"]:
            raise Exception("Invalid login credentials")
        token = f"token-{uuid.uuid4()}"
        self.tokens[token] = user.id
        session = SimpleNamespace(access_token=token, refresh_token=f"refresh-{token}")
        for listener in self.signed_in_listeners:
            listener(token)
        return SimpleNamespace(user=user, session=session)

    def get_user(self, jwt: Optional[str] = None):
        user_id = self.tokens.get(jwt)
        if user_id is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.users_by_id[user_id])


class FakeSupabase:
    def __init__(self, auth: Optional[FakeAuth] = None, key: str = "service-role-key"):
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in UNIQUE_KEYS}
        self.lock = threading.RLock()
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self.before_execute: Optional[Callable[[str, str], None]] = None
        self.auth = auth or FakeAuth()
        self.headers: Dict[str, str] = {"apiKey": key, "Authorization": f"Bearer {key}"}
        # supabase-py re-keys a client to the session of every sign-in made through it
        self.auth.signed_in_listeners.append(self._on_signed_in)

    def _on_signed_in(self, access_token: str) -> None:
        self.headers["Authorization"] = f"Bearer {access_token}"

    def auth_client(self) -> "FakeSupabase":
        """Separate anon client over the same auth users, for GoTrue calls"""
        return FakeSupabase(auth=FakeAuth(shared=self.auth), key="anon-key")

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def calls_to(self, table: str, operation: Optional[str] = None) -> List[Tuple[str, str]]:
        return [c for c in self.calls if c[0] == table and (operation is None or c[1] == operation)]

    def find_conflict(self, table: str, row: Dict[str, Any], columns: Tuple[str, ...]):
        values = tuple(_normalize(row.get(c)) for c in columns)
        if any(v is None for v in values):
            return None
        for existing in self.tables[table]:
            if tuple(_normalize(existing.get(c)) for c in columns) == values:
                return existing
        return None

    def check_row(self, table: str, row: Dict[str, Any], ignore: Optional[Dict[str, Any]] = None) -> None:
        for columns in UNIQUE_KEYS.get(table, []):
            existing = self.find_conflict(table, row, columns)
            if existing is not None and existing is not ignore:
                raise APIError({
                    "message": f'duplicate key value violates unique constraint "{table}_{"_".join(columns)}_key"',
                    "code": "23505",
                    "hint": None,
                    "details": None,
                })
        if table in FOREIGN_KEYS:
            column, parent, parent_column = FOREIGN_KEYS[table]
            if not any(p.get(parent_column) == row.get(column) for p in self.tables[parent]):
                raise APIError({
                    "message": f'insert or update on table "{table}" violates foreign key constraint',
                    "code": "23503",
                    "hint": None,
                    "details": None,
                })

    # seeding helpers

    def seed_product(self, code: str, description: str = "", unit: str = "ea", deleted: bool = False,
                     prices: Optional[List[Tuple[str, float]]] = None) -> None:
        self.tables["product"].append({
            "prodcode": code, "description": description, "unit": unit, "deleted": deleted
        })
        for effdate, price in prices or []:
            self.tables["pricehist"].append({"prodcode": code, "effdate": effdate, "unitprice": price})

    def seed_permissions(self, user_name: str, user_id: Optional[str] = None, **flags) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "user_name": user_name,
            "add_product": False,
            "edit_product": False,
            "delete_product": False,
            "add_price_history": False,
            "edit_price_history": False,
            "delete_price_history": False,
            "is_admin": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        row.update(flags)
        self.tables["user_permissions"].append(row)
        return row


def _normalize(value):
    if isinstance(value, (uuid.UUID,)):
        return str(value)
    return value


def _sort_key(value):
    return (value is None, "" if value is None else value)
