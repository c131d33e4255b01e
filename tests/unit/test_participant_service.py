"""
Unit tests for ParticipantService.

Covers profile reads and updates, team view, payment proof upload,
competition enrollment and the two admin reports.
"""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.adapters.repository.memory import InMemoryUnitOfWork
from src.domain.exceptions import (
    CompetitionNotFound,
    StorageFailed,
    TeamNotFound,
    UserNotFound,
)
from src.domain.models import ProfileUpdate, TeamMember
from src.domain.participants import ParticipantService

PROFILE = ProfileUpdate(
    full_name="Ayu Lestari",
    student_number="2201234",
    university="Universitas Brawijaya",
    major="Informatics",
)


def _team_of(unit_of_work: InMemoryUnitOfWork, user_id):
    return next(t for t in unit_of_work.database.teams.values() if t.user_id == user_id)


class TestGetUser:
    def test_by_id(self, participant_service: ParticipantService, register_user) -> None:
        user_id = register_user("a@x.com")

        assert participant_service.get_user(user_id=user_id).email == "a@x.com"

    def test_by_email_is_normalized(
        self, participant_service: ParticipantService, register_user
    ) -> None:
        user_id = register_user("a@x.com")

        assert participant_service.get_user(email=" A@X.COM ").user_id == user_id

    def test_unknown_user(self, participant_service: ParticipantService) -> None:
        with pytest.raises(UserNotFound):
            participant_service.get_user(user_id=uuid4())


class TestProfile:
    """Tests for get_profile() and update_profile()."""

    def test_new_user_has_empty_profile(
        self, participant_service: ParticipantService, register_user
    ) -> None:
        user_id = register_user("a@x.com")

        profile = participant_service.get_profile(user_id)

        assert profile.full_name == ""
        assert profile.email == "a@x.com"

    def test_update_overwrites_fields(
        self, participant_service: ParticipantService, register_user
    ) -> None:
        user_id = register_user("a@x.com")

        stored = participant_service.update_profile(user_id, PROFILE)

        assert stored == PROFILE
        profile = participant_service.get_profile(user_id)
        assert profile.full_name == "Ayu Lestari"
        assert profile.student_number == "2201234"
        assert profile.university == "Universitas Brawijaya"
        assert profile.major == "Informatics"

    def test_update_unknown_user(self, participant_service: ParticipantService) -> None:
        with pytest.raises(UserNotFound):
            participant_service.update_profile(uuid4(), PROFILE)


class TestTeamProfile:
    """Tests for get_team_profile()."""

    def test_new_team_is_in_placeholder_competition(
        self, participant_service: ParticipantService, register_user
    ) -> None:
        user_id = register_user("a@x.com")
        participant_service.update_profile(user_id, PROFILE)

        team = participant_service.get_team_profile(user_id)

        assert team.leader_name == "Ayu Lestari"
        assert team.student_number == "2201234"
        assert team.competition_category == "Unassigned"
        assert team.members == []

    def test_members_are_listed(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")
        team_id = _team_of(unit_of_work, user_id).team_id
        for name, number in [("Budi", "2201111"), ("Citra", "2202222")]:
            member = TeamMember(
                member_id=uuid4(), team_id=team_id, member_name=name, student_number=number
            )
            unit_of_work.database.team_members[member.member_id] = member

        team = participant_service.get_team_profile(user_id)

        assert [(m.full_name, m.student_number) for m in team.members] == [
            ("Budi", "2201111"),
            ("Citra", "2202222"),
        ]

    def test_missing_team(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")
        unit_of_work.database.teams.clear()

        with pytest.raises(TeamNotFound):
            participant_service.get_team_profile(user_id)

    def test_unknown_competition(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")
        _team_of(unit_of_work, user_id).competition_id = 99

        with pytest.raises(CompetitionNotFound):
            participant_service.get_team_profile(user_id)


class TestUploadPayment:
    """Tests for upload_payment()."""

    def test_stores_file_and_records_url(
        self,
        participant_service: ParticipantService,
        register_user,
        file_storage: Mock,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")
        file_storage.upload.return_value = "https://bucket.example/proof.png"

        url = participant_service.upload_payment(user_id, "Proof.PNG", b"\x89PNG", "image/png")

        assert url == "https://bucket.example/proof.png"
        assert unit_of_work.database.users[user_id].payment_proof_url == url
        key, content, content_type = file_storage.upload.call_args[0]
        assert key.startswith(f"payments/{user_id}/")
        assert key.endswith(".png")
        assert content == b"\x89PNG"
        assert content_type == "image/png"

    def test_storage_failure_keeps_previous_url(
        self,
        participant_service: ParticipantService,
        register_user,
        file_storage: Mock,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")
        file_storage.upload.side_effect = StorageFailed("bucket unavailable")

        with pytest.raises(StorageFailed):
            participant_service.upload_payment(user_id, "proof.pdf", b"%PDF", "application/pdf")

        assert unit_of_work.database.users[user_id].payment_proof_url is None

    def test_unknown_user_uploads_nothing(
        self, participant_service: ParticipantService, file_storage: Mock
    ) -> None:
        with pytest.raises(UserNotFound):
            participant_service.upload_payment(uuid4(), "proof.pdf", b"%PDF", "application/pdf")

        file_storage.upload.assert_not_called()


class TestRegisterCompetition:
    """Tests for register_competition()."""

    def test_binds_team_and_updates_profile(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")

        participant_service.register_competition(user_id, 2, PROFILE)

        assert _team_of(unit_of_work, user_id).competition_id == 2
        assert unit_of_work.database.users[user_id].full_name == "Ayu Lestari"
        assert participant_service.get_team_profile(user_id).competition_category == "UI/UX Design"

    def test_unknown_competition_changes_nothing(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")

        with pytest.raises(CompetitionNotFound):
            participant_service.register_competition(user_id, 42, PROFILE)

        assert _team_of(unit_of_work, user_id).competition_id == 1
        assert unit_of_work.database.users[user_id].full_name == ""

    def test_missing_team_rolls_back_profile(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        user_id = register_user("a@x.com")
        unit_of_work.database.teams.clear()

        with pytest.raises(TeamNotFound):
            participant_service.register_competition(user_id, 3, PROFILE)

        assert unit_of_work.database.users[user_id].full_name == ""


class TestReports:
    """Tests for payment_status_report() and participant_totals()."""

    def test_payment_report_lists_each_participant(
        self,
        participant_service: ParticipantService,
        register_user,
        file_storage: Mock,
    ) -> None:
        paid = register_user("paid@x.com")
        register_user("unpaid@x.com")
        participant_service.register_competition(paid, 3, PROFILE)
        file_storage.upload.return_value = "https://bucket.example/p.pdf"
        participant_service.upload_payment(paid, "p.pdf", b"%PDF", "application/pdf")

        report = {row.email: row for row in participant_service.payment_status_report()}

        assert set(report) == {"paid@x.com", "unpaid@x.com"}
        assert report["paid@x.com"].payment_proof_url == "https://bucket.example/p.pdf"
        assert report["paid@x.com"].competition_name == "Business Plan"
        assert report["paid@x.com"].full_name == "Ayu Lestari"
        assert report["unpaid@x.com"].payment_proof_url is None
        assert report["unpaid@x.com"].team_status == "unverified"

    def test_payment_report_skips_unresolvable_competition(
        self,
        participant_service: ParticipantService,
        register_user,
        unit_of_work: InMemoryUnitOfWork,
    ) -> None:
        broken = register_user("broken@x.com")
        register_user("fine@x.com")
        _team_of(unit_of_work, broken).competition_id = 99

        report = participant_service.payment_status_report()

        assert [row.email for row in report] == ["fine@x.com"]

    def test_totals_count_enrolled_teams(
        self, participant_service: ParticipantService, register_user
    ) -> None:
        for i, competition_id in enumerate([2, 2, 3]):
            user_id = register_user(f"u{i}@x.com")
            participant_service.register_competition(user_id, competition_id, PROFILE)
        register_user("idle@x.com")

        totals = participant_service.participant_totals()

        assert totals == {"UI/UX Design": 2, "Business Plan": 1}

    def test_totals_empty(self, participant_service: ParticipantService) -> None:
        assert participant_service.participant_totals() == {}
