"""
Domain models - Entities and value objects for competition registration.

Plain dataclasses shared by the services and the repository adapters.
Nothing here knows about SQL, HTTP or any framework.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from uuid import UUID

# Competition every new team is bound to until the leader enrolls.
DEFAULT_COMPETITION_ID = 1

# bcrypt only reads the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


class AccountStatus(str, Enum):
    """
    Account lifecycle states.

    State Transitions (forward-only):
    - INACTIVE -> ACTIVE (successful OTP verification)

    ACTIVE is terminal; no deactivation path exists.
    """

    INACTIVE = "inactive"
    ACTIVE = "active"


class Role(IntEnum):
    """User roles, stored by numeric id."""

    ADMIN = 1
    PARTICIPANT = 2


class OtpPurpose(str, Enum):
    """What a one-time code authorizes."""

    ACTIVATION = "activation"
    PASSWORD_RESET = "password_reset"


class TeamStatus(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


@dataclass
class User:
    """Registered account with profile and payment proof."""

    user_id: UUID
    email: str
    password_hash: str
    status: AccountStatus = AccountStatus.INACTIVE
    role: Role = Role.PARTICIPANT
    full_name: str = ""
    student_number: str = ""
    university: str = ""
    major: str = ""
    payment_proof_url: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class Team:
    team_id: UUID
    user_id: UUID
    team_name: str = ""
    team_status: TeamStatus = TeamStatus.UNVERIFIED
    competition_id: int = DEFAULT_COMPETITION_ID


@dataclass
class TeamMember:
    member_id: UUID
    team_id: UUID
    member_name: str
    student_number: str


@dataclass
class Competition:
    competition_id: int
    competition_name: str


@dataclass
class OtpCode:
    """
    One-time code issued to a user.

    Freshness is judged on updated_at, which equals created_at unless
    the row is touched after issuance.
    """

    otp_id: UUID
    user_id: UUID
    code: str
    purpose: OtpPurpose
    created_at: datetime
    updated_at: datetime


@dataclass
class ProfileUpdate:
    """Profile fields a participant may overwrite."""

    full_name: str
    student_number: str
    university: str
    major: str


@dataclass
class UserProfile:
    full_name: str
    student_number: str
    university: str
    major: str
    email: str


@dataclass
class MemberProfile:
    full_name: str
    student_number: str


@dataclass
class TeamProfile:
    leader_name: str
    student_number: str
    competition_category: str
    members: list[MemberProfile] = field(default_factory=list)


@dataclass
class PaymentStatus:
    """One row of the admin payment report."""

    full_name: str
    student_number: str
    email: str
    payment_proof_url: str | None
    team_name: str
    team_status: str
    competition_name: str


@dataclass
class TokenClaims:
    """Identity carried by an access token."""

    user_id: UUID
    is_admin: bool
