"""Unit tests for public registration."""
from datetime import datetime, timedelta, timezone

import pytest

from rollcall.core.exceptions import NotFoundError, RateLimitedError, StorageError, ValidationError
from rollcall.core.keys import derive_key_from_name, is_valid_key
from rollcall.db.models import AuditLog, Participant, RateLimitCounter, RegistrationResponse
from rollcall.services import registration as registration_service
from rollcall.services.registration import (
    lookup_by_code,
    send_code_by_email,
    submit_registration,
    update_registration,
)
from rollcall.services.mailer import MailerError

T0 = datetime(2026, 7, 1, 14, 0, tzinfo=timezone.utc)

FIELDS = {"name": "Jane Doe", "email": "Jane@Example.com", "birth_date": "1992-03-04"}


class RecordingMailer:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, to, subject, body):
        if self.fail:
            raise MailerError("connection refused")
        self.sent.append((to, subject, body))


@pytest.mark.unit
class TestSubmitRegistration:
    def test_submit_creates_participant_and_response(self, db_session, make_survey):
        survey = make_survey()

        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        assert is_valid_key(result.personal_code)
        response = db_session.get(RegistrationResponse, result.response_id)
        participant = db_session.get(Participant, result.participant_id)
        assert response.survey_id == survey.id
        assert response.personal_code == result.personal_code
        assert response.submitted_data == {"shirt": "M"}
        assert response.email == "jane@example.com"
        assert participant.name == "Jane Doe"
        assert participant.registration_survey_id == survey.id
        assert participant.lookup_key == derive_key_from_name("Jane Doe", "1992-03-04")

    def test_inactive_survey_writes_nothing(self, db_session, make_survey):
        survey = make_survey(is_active=False)

        with pytest.raises(NotFoundError):
            submit_registration(db_session, survey.id, {}, FIELDS, "1.2.3.4", now=T0)

        assert db_session.query(Participant).count() == 0
        assert db_session.query(RegistrationResponse).count() == 0
        assert db_session.query(RateLimitCounter).count() == 0

    def test_missing_survey(self, db_session):
        with pytest.raises(NotFoundError):
            submit_registration(db_session, "nope", {}, FIELDS, "1.2.3.4", now=T0)

    def test_invalid_fields_rejected_before_admission(self, db_session, make_survey):
        survey = make_survey()
        with pytest.raises(ValidationError):
            submit_registration(db_session, survey.id, {}, {"name": "Jane", "birth_date": "03/04/1992"}, "1.2.3.4")
        with pytest.raises(ValidationError):
            submit_registration(db_session, survey.id, {}, {"name": "Jane", "room_number": "101"}, "1.2.3.4")
        assert db_session.query(RateLimitCounter).count() == 0

    def test_admission_applies(self, db_session, make_survey):
        survey = make_survey()
        submit_registration(db_session, survey.id, {}, FIELDS, "1.2.3.4", now=T0)

        with pytest.raises(RateLimitedError):
            submit_registration(db_session, survey.id, {}, FIELDS, "1.2.3.4", now=T0 + timedelta(seconds=1))
        assert db_session.query(Participant).count() == 1

    def test_code_collision_retries(self, db_session, make_survey, monkeypatch):
        survey = make_survey()
        codes = iter(["AAAAAAAA", "AAAAAAAA", "BBBBBBBB"])
        monkeypatch.setattr(registration_service, "generate_personal_code", lambda: next(codes))

        first = submit_registration(db_session, survey.id, {}, FIELDS, "1.1.1.1", now=T0)
        second = submit_registration(db_session, survey.id, {}, FIELDS, "2.2.2.2", now=T0)

        assert first.personal_code == "AAAAAAAA"
        assert second.personal_code == "BBBBBBBB"
        assert db_session.query(Participant).count() == 2

    def test_code_exhaustion(self, db_session, make_survey, monkeypatch):
        survey = make_survey()
        monkeypatch.setattr(registration_service, "generate_personal_code", lambda: "AAAAAAAA")

        submit_registration(db_session, survey.id, {}, FIELDS, "1.1.1.1", now=T0)
        with pytest.raises(StorageError):
            submit_registration(db_session, survey.id, {}, FIELDS, "2.2.2.2", now=T0)
        assert db_session.query(RegistrationResponse).count() == 1


@pytest.mark.unit
class TestLookupAndUpdate:
    def test_lookup_by_code(self, db_session, make_survey):
        survey = make_survey()
        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        found = lookup_by_code(db_session, result.personal_code.lower(), "1.2.3.4", now=T0)
        assert found.id == result.response_id

        found = lookup_by_code(
            db_session, result.personal_code, "1.2.3.4", survey_id=survey.id, now=T0 + timedelta(minutes=1)
        )
        assert found.id == result.response_id

    def test_lookup_unknown_code(self, db_session):
        with pytest.raises(NotFoundError):
            lookup_by_code(db_session, "ZZZZZZZZ", "1.2.3.4", now=T0)

    def test_lookup_malformed_code(self, db_session):
        with pytest.raises(ValidationError):
            lookup_by_code(db_session, "ZZ-ZZ", "1.2.3.4", now=T0)

    def test_lookup_is_rate_limited(self, db_session):
        with pytest.raises(NotFoundError):
            lookup_by_code(db_session, "ZZZZZZZZ", "1.2.3.4", now=T0)
        with pytest.raises(RateLimitedError):
            lookup_by_code(db_session, "ZZZZZZZZ", "1.2.3.4", now=T0 + timedelta(seconds=1))

    def test_update_in_place(self, db_session, make_survey):
        survey = make_survey()
        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)
        old_key = db_session.get(Participant, result.participant_id).lookup_key

        updated = update_registration(
            db_session,
            survey.id,
            result.personal_code,
            {"shirt": "L"},
            {"birth_date": "1992-03-05", "ward": "Riverside"},
            "1.2.3.4",
            now=T0 + timedelta(minutes=5),
        )

        assert updated == result
        assert db_session.query(Participant).count() == 1
        response = db_session.get(RegistrationResponse, result.response_id)
        participant = db_session.get(Participant, result.participant_id)
        assert response.submitted_data == {"shirt": "L"}
        assert participant.ward == "Riverside"
        assert participant.lookup_key != old_key
        assert participant.lookup_key == derive_key_from_name("Jane Doe", "1992-03-05")

    def test_participant_only_edit_keeps_form_answers(self, db_session, make_survey):
        survey = make_survey()
        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        update_registration(
            db_session,
            survey.id,
            result.personal_code,
            None,
            {"ward": "Riverside"},
            "1.2.3.4",
            now=T0 + timedelta(minutes=5),
        )

        db_session.expire_all()
        response = db_session.get(RegistrationResponse, result.response_id)
        assert response.submitted_data == {"shirt": "M"}
        assert db_session.get(Participant, result.participant_id).ward == "Riverside"

    def test_empty_form_data_clears_answers(self, db_session, make_survey):
        survey = make_survey()
        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        update_registration(
            db_session, survey.id, result.personal_code, {}, {}, "1.2.3.4", now=T0 + timedelta(minutes=5)
        )

        db_session.expire_all()
        assert db_session.get(RegistrationResponse, result.response_id).submitted_data == {}

    def test_update_wrong_code(self, db_session, make_survey):
        survey = make_survey()
        with pytest.raises(NotFoundError):
            update_registration(db_session, survey.id, "ZZZZZZZZ", {}, {}, "1.2.3.4", now=T0)


@pytest.mark.unit
class TestSendCodeByEmail:
    def test_sends_matching_code(self, db_session, make_survey):
        survey = make_survey(title="Summer Conference")
        result = submit_registration(db_session, survey.id, {}, FIELDS, "1.2.3.4", now=T0)
        mailer = RecordingMailer()

        send_code_by_email(db_session, " JANE@example.com", survey.id, "5.5.5.5", mailer=mailer, now=T0)

        assert len(mailer.sent) == 1
        to, subject, body = mailer.sent[0]
        assert to == "jane@example.com"
        assert "Summer Conference" in subject
        assert result.personal_code in body

    def test_no_match_is_silent(self, db_session, make_survey):
        survey = make_survey()
        mailer = RecordingMailer()
        assert send_code_by_email(db_session, "nobody@example.com", survey.id, "5.5.5.5", mailer=mailer, now=T0) is None
        assert mailer.sent == []

    def test_transport_failure_is_swallowed(self, db_session, make_survey):
        survey = make_survey()
        submit_registration(db_session, survey.id, {}, FIELDS, "1.2.3.4", now=T0)
        send_code_by_email(db_session, "jane@example.com", survey.id, "5.5.5.5", mailer=RecordingMailer(fail=True), now=T0)

    def test_invalid_email(self, db_session, make_survey):
        survey = make_survey()
        with pytest.raises(ValidationError):
            send_code_by_email(db_session, "not-an-email", survey.id, "5.5.5.5", now=T0)

    def test_rate_limited_even_without_match(self, db_session, make_survey):
        """Daily cap of two emails applies regardless of the outcome."""
        survey = make_survey()
        mailer = RecordingMailer()
        send_code_by_email(db_session, "a@example.com", survey.id, "5.5.5.5", mailer=mailer, now=T0)
        send_code_by_email(db_session, "a@example.com", survey.id, "5.5.5.5", mailer=mailer, now=T0 + timedelta(minutes=2))
        with pytest.raises(RateLimitedError, match="Daily limit"):
            send_code_by_email(
                db_session, "a@example.com", survey.id, "5.5.5.5", mailer=mailer, now=T0 + timedelta(minutes=4)
            )


@pytest.mark.unit
class TestRegistrationAudit:
    def test_submit_records_create(self, db_session, make_survey):
        survey = make_survey()

        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        entries = db_session.query(AuditLog).all()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.actor_name == "Registration"
        assert entry.action == "create"
        assert entry.target_type == "participant"
        assert entry.target_id == result.participant_id
        assert entry.target_name == "Jane Doe"
        assert entry.changes["name"] == {"from": None, "to": "Jane Doe"}

    def test_update_records_diff(self, db_session, make_survey):
        survey = make_survey()
        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        update_registration(
            db_session,
            survey.id,
            result.personal_code,
            {"shirt": "L"},
            {"ward": "Riverside"},
            "1.2.3.4",
            now=T0 + timedelta(minutes=5),
        )

        entry = db_session.query(AuditLog).filter(AuditLog.action == "update").one()
        assert entry.actor_name == "Registration"
        assert entry.target_id == result.participant_id
        assert entry.changes == {
            "ward": {"from": "", "to": "Riverside"},
            "submitted_data": {"from": {"shirt": "M"}, "to": {"shirt": "L"}},
        }

    def test_unchanged_update_records_nothing(self, db_session, make_survey):
        survey = make_survey()
        result = submit_registration(db_session, survey.id, {"shirt": "M"}, FIELDS, "1.2.3.4", now=T0)

        update_registration(
            db_session,
            survey.id,
            result.personal_code,
            {"shirt": "M"},
            {"name": "Jane Doe"},
            "1.2.3.4",
            now=T0 + timedelta(minutes=5),
        )

        assert db_session.query(AuditLog).filter(AuditLog.action == "update").count() == 0
