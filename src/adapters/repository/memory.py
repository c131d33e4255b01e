"""
In-memory repository adapter - Implements the UnitOfWork and store protocols.

Backs the services with plain dictionaries for tests and local runs
without PostgreSQL. Transactions are serialized by a re-entrant lock;
on exception the tables are restored from a snapshot taken when the
transaction began, which gives the same all-or-nothing behavior as the
PostgreSQL adapter.
"""

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from src.domain.exceptions import EmailAlreadyRegistered, UserNotFound
from src.domain.models import Competition, OtpCode, OtpPurpose, Team, TeamMember, User

DEFAULT_COMPETITIONS = (
    Competition(competition_id=1, competition_name="Unassigned"),
    Competition(competition_id=2, competition_name="UI/UX Design"),
    Competition(competition_id=3, competition_name="Business Plan"),
)


class InMemoryDatabase:
    """Tables keyed by primary key. Mutate only inside a transaction."""

    def __init__(self, competitions: tuple[Competition, ...] = DEFAULT_COMPETITIONS) -> None:
        self.users: dict[UUID, User] = {}
        self.teams: dict[UUID, Team] = {}
        self.team_members: dict[UUID, TeamMember] = {}
        self.otps: dict[UUID, OtpCode] = {}
        self.competitions: dict[int, Competition] = {
            c.competition_id: c for c in competitions
        }
        self.lock = threading.RLock()

    def snapshot(self) -> dict:
        return copy.deepcopy(
            {
                "users": self.users,
                "teams": self.teams,
                "team_members": self.team_members,
                "otps": self.otps,
            }
        )

    def restore(self, snapshot: dict) -> None:
        self.users = snapshot["users"]
        self.teams = snapshot["teams"]
        self.team_members = snapshot["team_members"]
        self.otps = snapshot["otps"]


class InMemoryUserStore:
    """Implements UserStore protocol over InMemoryDatabase."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def get(self, user_id: UUID | None = None, email: str | None = None) -> User | None:
        if user_id is not None:
            user = self._db.users.get(user_id)
        elif email is not None:
            user = next((u for u in self._db.users.values() if u.email == email), None)
        else:
            user = None
        return copy.copy(user) if user is not None else None

    def create(self, user: User) -> UUID:
        if any(u.email == user.email for u in self._db.users.values()):
            raise EmailAlreadyRegistered(user.email)
        self._db.users[user.user_id] = copy.copy(user)
        return user.user_id

    def update(self, user: User) -> None:
        if user.user_id not in self._db.users:
            raise UserNotFound()
        self._db.users[user.user_id] = copy.copy(user)

    def list_all(self) -> list[User]:
        return [copy.copy(u) for u in self._db.users.values()]


class InMemoryTeamStore:
    """Implements TeamStore protocol over InMemoryDatabase."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def create(self, team: Team) -> None:
        self._db.teams[team.team_id] = copy.copy(team)

    def get_by_user(self, user_id: UUID) -> Team | None:
        team = next((t for t in self._db.teams.values() if t.user_id == user_id), None)
        return copy.copy(team) if team is not None else None

    def update(self, team: Team) -> None:
        self._db.teams[team.team_id] = copy.copy(team)

    def list_members(self, team_id: UUID) -> list[TeamMember]:
        members = [m for m in self._db.team_members.values() if m.team_id == team_id]
        return sorted((copy.copy(m) for m in members), key=lambda m: m.member_name)


class InMemoryOtpStore:
    """Implements OtpStore protocol over InMemoryDatabase."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def create(self, otp: OtpCode) -> None:
        self._db.otps[otp.otp_id] = copy.copy(otp)

    def find(
        self,
        user_id: UUID,
        purpose: OtpPurpose,
        code: str | None = None,
        for_update: bool = False,
    ) -> OtpCode | None:
        # for_update is implicit: the transaction lock is already held
        matches = [
            otp
            for otp in self._db.otps.values()
            if otp.user_id == user_id
            and otp.purpose == purpose
            and (code is None or otp.code == code)
        ]
        if not matches:
            return None
        return copy.copy(max(matches, key=lambda otp: otp.updated_at))

    def delete(self, otp: OtpCode) -> bool:
        return self._db.otps.pop(otp.otp_id, None) is not None

    def delete_for_user(self, user_id: UUID, purpose: OtpPurpose) -> int:
        doomed = [
            otp_id
            for otp_id, otp in self._db.otps.items()
            if otp.user_id == user_id and otp.purpose == purpose
        ]
        for otp_id in doomed:
            del self._db.otps[otp_id]
        return len(doomed)


class InMemoryCompetitionStore:
    """Implements CompetitionStore protocol over InMemoryDatabase."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def get(self, competition_id: int) -> Competition | None:
        return self._db.competitions.get(competition_id)


class InMemoryTransaction:
    def __init__(self, db: InMemoryDatabase) -> None:
        self.users = InMemoryUserStore(db)
        self.teams = InMemoryTeamStore(db)
        self.otps = InMemoryOtpStore(db)
        self.competitions = InMemoryCompetitionStore(db)


class InMemoryUnitOfWork:
    """
    Implements UnitOfWork protocol over an InMemoryDatabase.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, database: InMemoryDatabase | None = None) -> None:
        self.database = database if database is not None else InMemoryDatabase()

    @contextmanager
    def begin(self) -> Iterator[InMemoryTransaction]:
        db = self.database
        with db.lock:
            snapshot = db.snapshot()
            try:
                yield InMemoryTransaction(db)
            except BaseException:
                db.restore(snapshot)
                raise
