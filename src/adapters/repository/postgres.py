"""
PostgreSQL repository adapter - Implements the UnitOfWork and store protocols.

This module provides the PostgreSQL implementation of the domain's
persistence ports using psycopg3 with raw SQL.

Transaction Design:
-------------------
PostgresUnitOfWork.begin() borrows one pooled connection for the whole
logical operation. Every store in the yielded transaction executes on
that connection, and psycopg_pool commits it when the block exits
normally or rolls it back when the block raises.

OTP consumption is race-safe: OtpStore.find(for_update=True) takes a
row-level lock (SELECT ... FOR UPDATE) and delete() reports whether the
row still existed, so two concurrent verifications of the same code can
activate an account at most once.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from uuid import UUID

from psycopg import Connection
from psycopg.errors import UniqueViolation
from psycopg_pool import ConnectionPool

from src.domain.exceptions import EmailAlreadyRegistered, UserNotFound
from src.domain.models import (
    AccountStatus,
    Competition,
    OtpCode,
    OtpPurpose,
    Role,
    Team,
    TeamMember,
    TeamStatus,
    User,
)

logger = logging.getLogger(__name__)

_USER_COLUMNS = """
    user_id, email, password_hash, status_account, role_id,
    full_name, student_number, university, major, payment_proof_url
"""


def _user_from_row(row: tuple) -> User:
    return User(
        user_id=row[0],
        email=row[1],
        password_hash=row[2],
        status=AccountStatus(row[3]),
        role=Role(row[4]),
        full_name=row[5],
        student_number=row[6],
        university=row[7],
        major=row[8],
        payment_proof_url=row[9],
    )


def _team_from_row(row: tuple) -> Team:
    return Team(
        team_id=row[0],
        user_id=row[1],
        team_name=row[2],
        team_status=TeamStatus(row[3]),
        competition_id=row[4],
    )


def _otp_from_row(row: tuple) -> OtpCode:
    return OtpCode(
        otp_id=row[0],
        user_id=row[1],
        code=row[2],
        purpose=OtpPurpose(row[3]),
        created_at=row[4],
        updated_at=row[5],
    )


class PostgresUserStore:
    """
    Implements UserStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get(self, user_id: UUID | None = None, email: str | None = None) -> User | None:
        if user_id is not None:
            sql = f"SELECT {_USER_COLUMNS} FROM users WHERE user_id = %s"
            params: tuple = (user_id,)
        elif email is not None:
            sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s"
            params = (email,)
        else:
            return None

        with self._conn.cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
        return _user_from_row(row) if row is not None else None

    def create(self, user: User) -> UUID:
        """
        Insert a user row.

        The UNIQUE constraint on email closes the race between the
        service's existence check and this insert.
        """
        sql = """
            INSERT INTO users (
                user_id, email, password_hash, status_account, role_id,
                full_name, student_number, university, major, payment_proof_url
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        try:
            with self._conn.cursor() as cursor:
                cursor.execute(
                    sql,
                    (
                        user.user_id,
                        user.email,
                        user.password_hash,
                        user.status.value,
                        int(user.role),
                        user.full_name,
                        user.student_number,
                        user.university,
                        user.major,
                        user.payment_proof_url,
                    ),
                )
        except UniqueViolation as e:
            raise EmailAlreadyRegistered(user.email) from e
        return user.user_id

    def update(self, user: User) -> None:
        sql = """
            UPDATE users
            SET email = %s,
                password_hash = %s,
                status_account = %s,
                role_id = %s,
                full_name = %s,
                student_number = %s,
                university = %s,
                major = %s,
                payment_proof_url = %s,
                updated_at = NOW()
            WHERE user_id = %s
        """
        with self._conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    user.email,
                    user.password_hash,
                    user.status.value,
                    int(user.role),
                    user.full_name,
                    user.student_number,
                    user.university,
                    user.major,
                    user.payment_proof_url,
                    user.user_id,
                ),
            )
            if cursor.rowcount == 0:
                raise UserNotFound()

    def list_all(self) -> list[User]:
        with self._conn.cursor() as cursor:
            cursor.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at")
            return [_user_from_row(row) for row in cursor.fetchall()]


class PostgresTeamStore:
    """Implements TeamStore protocol via psycopg3."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def create(self, team: Team) -> None:
        sql = """
            INSERT INTO teams (team_id, user_id, team_name, team_status, competition_id)
            VALUES (%s, %s, %s, %s, %s)
        """
        with self._conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    team.team_id,
                    team.user_id,
                    team.team_name,
                    team.team_status.value,
                    team.competition_id,
                ),
            )

    def get_by_user(self, user_id: UUID) -> Team | None:
        sql = """
            SELECT team_id, user_id, team_name, team_status, competition_id
            FROM teams
            WHERE user_id = %s
        """
        with self._conn.cursor() as cursor:
            cursor.execute(sql, (user_id,))
            row = cursor.fetchone()
        return _team_from_row(row) if row is not None else None

    def update(self, team: Team) -> None:
        sql = """
            UPDATE teams
            SET team_name = %s, team_status = %s, competition_id = %s
            WHERE team_id = %s
        """
        with self._conn.cursor() as cursor:
            cursor.execute(
                sql,
                (team.team_name, team.team_status.value, team.competition_id, team.team_id),
            )

    def list_members(self, team_id: UUID) -> list[TeamMember]:
        sql = """
            SELECT member_id, team_id, member_name, student_number
            FROM team_members
            WHERE team_id = %s
            ORDER BY member_name
        """
        with self._conn.cursor() as cursor:
            cursor.execute(sql, (team_id,))
            return [
                TeamMember(
                    member_id=row[0],
                    team_id=row[1],
                    member_name=row[2],
                    student_number=row[3],
                )
                for row in cursor.fetchall()
            ]


class PostgresOtpStore:
    """Implements OtpStore protocol via psycopg3."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def create(self, otp: OtpCode) -> None:
        sql = """
            INSERT INTO otp_codes (otp_id, user_id, code, purpose, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s)
        """
        with self._conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    otp.otp_id,
                    otp.user_id,
                    otp.code,
                    otp.purpose.value,
                    otp.created_at,
                    otp.updated_at,
                ),
            )

    def find(
        self,
        user_id: UUID,
        purpose: OtpPurpose,
        code: str | None = None,
        for_update: bool = False,
    ) -> OtpCode | None:
        sql = """
            SELECT otp_id, user_id, code, purpose, created_at, updated_at
            FROM otp_codes
            WHERE user_id = %s AND purpose = %s
        """
        params: list = [user_id, purpose.value]
        if code is not None:
            sql += " AND code = %s"
            params.append(code)
        sql += " ORDER BY updated_at DESC LIMIT 1"
        if for_update:
            sql += " FOR UPDATE"

        with self._conn.cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
        return _otp_from_row(row) if row is not None else None

    def delete(self, otp: OtpCode) -> bool:
        with self._conn.cursor() as cursor:
            cursor.execute("DELETE FROM otp_codes WHERE otp_id = %s", (otp.otp_id,))
            return cursor.rowcount == 1

    def delete_for_user(self, user_id: UUID, purpose: OtpPurpose) -> int:
        with self._conn.cursor() as cursor:
            cursor.execute(
                "DELETE FROM otp_codes WHERE user_id = %s AND purpose = %s",
                (user_id, purpose.value),
            )
            return cursor.rowcount


class PostgresCompetitionStore:
    """Implements CompetitionStore protocol via psycopg3."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get(self, competition_id: int) -> Competition | None:
        sql = """
            SELECT competition_id, competition_name
            FROM competitions
            WHERE competition_id = %s
        """
        with self._conn.cursor() as cursor:
            cursor.execute(sql, (competition_id,))
            row = cursor.fetchone()
        if row is None:
            return None
        return Competition(competition_id=row[0], competition_name=row[1])


class PostgresTransaction:
    """Store handles sharing one open connection."""

    def __init__(self, conn: Connection) -> None:
        self.users = PostgresUserStore(conn)
        self.teams = PostgresTeamStore(conn)
        self.otps = PostgresOtpStore(conn)
        self.competitions = PostgresCompetitionStore(conn)


class PostgresUnitOfWork:
    """
    Implements UnitOfWork protocol via psycopg_pool.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize unit of work with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    @contextmanager
    def begin(self) -> Iterator[PostgresTransaction]:
        """
        Open a transaction on a pooled connection.

        The pool's connection context commits on normal exit and rolls
        back when an exception propagates out of the block.
        """
        with self._pool.connection() as conn:
            yield PostgresTransaction(conn)


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
