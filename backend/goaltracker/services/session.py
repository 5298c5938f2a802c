"""Current user, session slot and backend selection.

`initialize()` provisions the remote database once; whether that worked
decides the persistence mode for the rest of the process. Remote failure is
not fatal: the app keeps working from local storage.

Offline demo auth: with `offline_demo_auth` on, login and register in local
mode (or after a remote failure) succeed without checking a password, so the
app stays usable offline. Turn it off to require a credential stored locally
at registration.
"""
import logging
from enum import Enum

from pydantic import ValidationError

from goaltracker.core.constants import ENTITY_ACCOUNTS, ENTITY_USER, USER_UPDATABLE_FIELDS
from goaltracker.core.result import Result, validation_message
from goaltracker.core.security import hash_password, verify_password
from goaltracker.core.time_utils import timestamp_id
from goaltracker.persistence.local import LocalStore
from goaltracker.persistence.mode import PersistenceMode
from goaltracker.persistence.remote import RemoteDatabase
from goaltracker.schemas.user import UserRead, UserUpdate

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    uninitialized = "uninitialized"
    initializing = "initializing"
    ready = "ready"


def public_user(record: dict) -> dict:
    return UserRead.model_validate(record).model_dump()


class SessionManager:
    def __init__(self, remote: RemoteDatabase, local: LocalStore, offline_demo_auth: bool = True):
        self.remote = remote
        self.local = local
        self.offline_demo_auth = offline_demo_auth
        self.state = SessionState.uninitialized
        self.db_initialized = False
        self.user: dict | None = None

    @property
    def mode(self) -> PersistenceMode:
        return PersistenceMode.remote if self.db_initialized else PersistenceMode.local

    @property
    def session_key(self) -> str:
        return self.local.key(ENTITY_USER)

    @property
    def accounts_key(self) -> str:
        return self.local.key(ENTITY_ACCOUNTS)

    def initialize(self) -> Result:
        self.state = SessionState.initializing
        result = self.remote.initialize()
        self.db_initialized = result.success
        if not result.success:
            logger.warning("Remote database unavailable (%s), running on local storage", result.error)
        self._restore_session()
        self.state = SessionState.ready
        return Result.ok(self.mode)

    def _restore_session(self) -> None:
        if not self.local.exists(self.session_key):
            return
        saved = self.local.read(self.session_key)
        try:
            self.user = public_user(saved) if isinstance(saved, dict) else None
        except ValidationError as e:
            logger.error("Error parsing saved user data: %s", e)
            self.user = None
        if self.user is None:
            self.local.remove(self.session_key)

    def _start_session(self, user: dict) -> Result:
        self.user = public_user(user)
        self.local.write(self.session_key, self.user)
        return Result.ok(self.user)

    # -- local accounts --------------------------------------------------------

    def _accounts(self) -> dict:
        accounts = self.local.read(self.accounts_key, {})
        return accounts if isinstance(accounts, dict) else {}

    def _save_account(self, record: dict) -> None:
        accounts = self._accounts()
        accounts[record["email"].lower()] = record
        self.local.write(self.accounts_key, accounts)

    def _local_login(self, email: str, password: str) -> Result:
        account = self._accounts().get(email.lower())
        if self.offline_demo_auth:
            if account is None:
                account = {"id": timestamp_id(), "email": email, "name": email.split("@")[0],
                           "onboarding_completed": False}
                self._save_account(account)
            logger.warning("Offline demo login for %s (password not verified)", email)
            return self._start_session(account)
        if account is None or not verify_password(password, account.get("password_hash")):
            return Result.fail("Invalid email or password")
        return self._start_session(account)

    def _local_register(self, name: str, email: str, password: str) -> Result:
        existing = self._accounts().get(email.lower())
        if existing is not None and not self.offline_demo_auth:
            return Result.fail("An account with this email already exists")
        # One email keeps one id, so goals stored under it stay reachable
        account_id = existing["id"] if existing is not None else timestamp_id()
        account = {"id": account_id, "email": email, "name": name, "onboarding_completed": False}
        if not self.offline_demo_auth:
            account["password_hash"] = hash_password(password)
        else:
            logger.warning("Offline demo registration for %s", email)
        self._save_account(account)
        return self._start_session(account)

    # -- operations ------------------------------------------------------------

    def login(self, email: str, password: str) -> Result:
        if self.db_initialized:
            r = self.remote.execute(
                f"""SELECT id, email, name, password_hash, onboarding_completed, created_at
                FROM {self.remote.table('users')}
                WHERE email = $1""",
                [email],
            )
            if r.success:
                if r.first is None or not verify_password(password, r.first.get("password_hash")):
                    return Result.fail("Invalid email or password")
                return self._start_session(r.first)
            logger.warning("Remote login failed (%s), using local accounts", r.error)
        return self._local_login(email, password)

    def register(self, name: str, email: str, password: str) -> Result:
        if self.db_initialized:
            r = self.remote.execute(
                f"""INSERT INTO {self.remote.table('users')} (email, name, password_hash)
                VALUES ($1, $2, $3)
                RETURNING id, email, name, onboarding_completed, created_at""",
                [email, name, hash_password(password)],
            )
            if r.success and r.first:
                return self._start_session(r.first)
            logger.warning("Remote registration failed (%s), using local accounts", r.error)
        return self._local_register(name, email, password)

    def logout(self) -> None:
        # The stored account is kept; only the session slot goes away
        self.user = None
        self.local.remove(self.session_key)

    def update_user(self, fields) -> Result:
        if self.user is None:
            return Result.fail("User not authenticated")
        try:
            changes = UserUpdate.model_validate(fields).model_dump(exclude_unset=True)
        except ValidationError as e:
            return Result.fail(validation_message(e))
        if not changes:
            return Result.ok(self.user)

        if self.db_initialized:
            columns = [c for c in changes if c in USER_UPDATABLE_FIELDS]
            clause = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=2))
            r = self.remote.execute(
                f"""UPDATE {self.remote.table('users')}
                SET {clause}, updated_at = CURRENT_TIMESTAMP
                WHERE id = $1
                RETURNING id, email, name, onboarding_completed""",
                [self.user["id"], *[changes[c] for c in columns]],
            )
            if not r.success:
                logger.warning("Remote user update failed (%s), keeping the change locally", r.error)

        old_email = self.user["email"].lower()
        accounts = self._accounts()
        if old_email in accounts:
            account = {**accounts.pop(old_email), **changes}
            accounts[account["email"].lower()] = account
            self.local.write(self.accounts_key, accounts)
        return self._start_session({**self.user, **changes})

    def teardown(self) -> None:
        self.remote.close()
        self.state = SessionState.uninitialized
