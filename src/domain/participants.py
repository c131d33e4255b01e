"""
Participant domain service - Profiles, teams, payment and enrollment.

These operations share the transactional-update pattern of the
registration workflow but carry no OTP state.
"""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from uuid import UUID, uuid4

from .exceptions import CompetitionNotFound, TeamNotFound, UserNotFound
from .models import (
    DEFAULT_COMPETITION_ID,
    MemberProfile,
    PaymentStatus,
    ProfileUpdate,
    TeamProfile,
    User,
    UserProfile,
)
from .ports import FileStorage, Transaction, UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class ParticipantService:
    """Domain service for participant data and admin reporting."""

    unit_of_work: UnitOfWork
    file_storage: FileStorage

    def get_user(self, user_id: UUID | None = None, email: str | None = None) -> User:
        """
        Look up a user by id or email.

        Raises:
            UserNotFound: If no user matches
        """
        if email is not None:
            email = email.strip().lower()
        with self.unit_of_work.begin() as tx:
            user = tx.users.get(user_id=user_id, email=email)
        if user is None:
            raise UserNotFound()
        return user

    def get_profile(self, user_id: UUID) -> UserProfile:
        user = self.get_user(user_id=user_id)
        return UserProfile(
            full_name=user.full_name,
            student_number=user.student_number,
            university=user.university,
            major=user.major,
            email=user.email,
        )

    def update_profile(self, user_id: UUID, profile: ProfileUpdate) -> ProfileUpdate:
        """Overwrite the profile fields of a user and return what was stored."""
        with self.unit_of_work.begin() as tx:
            user = self._require_user(tx, user_id)
            self._apply_profile(user, profile)
            tx.users.update(user)

        return ProfileUpdate(
            full_name=user.full_name,
            student_number=user.student_number,
            university=user.university,
            major=user.major,
        )

    def get_team_profile(self, user_id: UUID) -> TeamProfile:
        """
        Assemble the team view of a leader: their name, competition and members.

        Raises:
            UserNotFound: If the user does not exist
            TeamNotFound: If the user has no team
            CompetitionNotFound: If the team's competition is unknown
        """
        with self.unit_of_work.begin() as tx:
            user = self._require_user(tx, user_id)

            team = tx.teams.get_by_user(user_id)
            if team is None:
                raise TeamNotFound()

            members = tx.teams.list_members(team.team_id)

            competition = tx.competitions.get(team.competition_id)
            if competition is None:
                raise CompetitionNotFound(team.competition_id)

        return TeamProfile(
            leader_name=user.full_name,
            student_number=user.student_number,
            competition_category=competition.competition_name,
            members=[
                MemberProfile(full_name=m.member_name, student_number=m.student_number)
                for m in members
            ],
        )

    def upload_payment(
        self, user_id: UUID, filename: str, content: bytes, content_type: str
    ) -> str:
        """
        Store a payment proof and record its URL on the user.

        Returns:
            Public URL of the stored file

        Raises:
            UserNotFound: If the user does not exist
            StorageFailed: If the upload fails
        """
        with self.unit_of_work.begin() as tx:
            user = self._require_user(tx, user_id)

            key = f"payments/{user_id}/{uuid4().hex}{PurePosixPath(filename).suffix.lower()}"
            payment_url = self.file_storage.upload(key, content, content_type)

            user.payment_proof_url = payment_url
            tx.users.update(user)

        logger.info("Stored payment proof for user %s", user_id)
        return payment_url

    def register_competition(
        self, user_id: UUID, competition_id: int, profile: ProfileUpdate
    ) -> None:
        """
        Enroll the user's team in a competition, updating the leader profile.

        Raises:
            UserNotFound: If the user does not exist
            CompetitionNotFound: If the competition id is unknown
            TeamNotFound: If the user has no team
        """
        with self.unit_of_work.begin() as tx:
            user = self._require_user(tx, user_id)

            if tx.competitions.get(competition_id) is None:
                raise CompetitionNotFound(competition_id)

            self._apply_profile(user, profile)
            tx.users.update(user)

            team = tx.teams.get_by_user(user_id)
            if team is None:
                raise TeamNotFound()

            team.competition_id = competition_id
            tx.teams.update(team)

        logger.info("User %s enrolled in competition %s", user_id, competition_id)

    def payment_status_report(self) -> list[PaymentStatus]:
        """
        List payment state of every participant.

        Users without a team or whose competition cannot be resolved are
        left out of the report.
        """
        report: list[PaymentStatus] = []

        with self.unit_of_work.begin() as tx:
            for user in tx.users.list_all():
                team = tx.teams.get_by_user(user.user_id)
                if team is None:
                    continue
                competition = tx.competitions.get(team.competition_id)
                if competition is None:
                    continue
                report.append(
                    PaymentStatus(
                        full_name=user.full_name,
                        student_number=user.student_number,
                        email=user.email,
                        payment_proof_url=user.payment_proof_url,
                        team_name=team.team_name,
                        team_status=team.team_status.value,
                        competition_name=competition.competition_name,
                    )
                )

        return report

    def participant_totals(self) -> dict[str, int]:
        """Count enrolled teams per competition name, placeholder excluded."""
        totals: dict[str, int] = {}

        with self.unit_of_work.begin() as tx:
            for user in tx.users.list_all():
                team = tx.teams.get_by_user(user.user_id)
                if team is None or team.competition_id == DEFAULT_COMPETITION_ID:
                    continue
                competition = tx.competitions.get(team.competition_id)
                if competition is None:
                    continue
                name = competition.competition_name
                totals[name] = totals.get(name, 0) + 1

        return totals

    def _require_user(self, tx: Transaction, user_id: UUID) -> User:
        user = tx.users.get(user_id=user_id)
        if user is None:
            raise UserNotFound()
        return user

    @staticmethod
    def _apply_profile(user: User, profile: ProfileUpdate) -> None:
        user.full_name = profile.full_name
        user.student_number = profile.student_number
        user.university = profile.university
        user.major = profile.major
