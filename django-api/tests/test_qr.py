"""Unit tests for check-in code payloads.

Run with: pytest tests/test_qr.py -v
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from seminars.domain import QRKind
from seminars.domain import qr
from seminars.domain.errors import ExpiredPayload, InvalidInputError, MalformedPayload

ISSUED = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def raw_code(document, urlsafe=True) -> str:
    data = json.dumps(document).encode()
    return (base64.urlsafe_b64encode(data) if urlsafe else base64.b64encode(data)).decode()


class TestRoundTrip:
    """Tests for encode followed by decode."""

    def test_participant_code_round_trips(self):
        code = qr.encode("participant", "p_123", "s_456", issued_at=ISSUED)
        payload = qr.decode(code, ISSUED + timedelta(hours=2))
        assert payload.kind is QRKind.PARTICIPANT
        assert payload.subject_id == "p_123"
        assert payload.session_id == "s_456"
        assert payload.issued_at_epoch_ms == int(ISSUED.timestamp() * 1000)

    def test_order_code_round_trips(self):
        code = qr.encode(QRKind.ORDER, "o_1", "s_1", issued_at=ISSUED)
        assert qr.decode(code, ISSUED).kind is QRKind.ORDER

    def test_encoded_form_is_url_safe(self):
        code = qr.encode("participant", "p_?>>?", "s_~~~", issued_at=ISSUED)
        assert set(code) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")

    def test_default_issue_time_is_now(self):
        code = qr.encode("participant", "p_123", "s_456")
        assert qr.decode(code, datetime.now(timezone.utc)).subject_id == "p_123"

    def test_accepts_standard_base64_with_padding(self):
        code = raw_code(
            {"type": "order", "id": "o_1", "sessionId": "s_1", "timestamp": int(ISSUED.timestamp() * 1000)},
            urlsafe=False,
        )
        assert qr.decode(code, ISSUED).subject_id == "o_1"


class TestEncode:
    """Tests for arguments encode refuses."""

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(InvalidInputError):
            qr.encode("ticket", "p_123", "s_456", issued_at=ISSUED)

    @pytest.mark.parametrize("subject_id, session_id", [("", "s_456"), ("p_123", ""), (None, "s_456")])
    def test_empty_ids_are_rejected(self, subject_id, session_id):
        with pytest.raises(InvalidInputError):
            qr.encode("participant", subject_id, session_id, issued_at=ISSUED)


class TestExpiry:
    """Tests for the 24 hour validity window."""

    def test_exactly_24_hours_is_still_valid(self):
        code = qr.encode("participant", "p_123", "s_456", issued_at=ISSUED)
        assert qr.decode(code, ISSUED + timedelta(hours=24)).subject_id == "p_123"

    def test_25_hours_old_is_expired(self):
        code = qr.encode("participant", "p_123", "s_456", issued_at=ISSUED)
        with pytest.raises(ExpiredPayload):
            qr.decode(code, ISSUED + timedelta(hours=25))


class TestMalformed:
    """Tests for inputs that are not valid payloads."""

    @pytest.mark.parametrize(
        "encoded",
        ["", "not a code", "!!!!", "%%%", "ÿÿÿÿ", "aGVsbG8gd29ybGQ", "W10", "bnVsbA"],
    )
    def test_arbitrary_strings_are_malformed(self, encoded):
        with pytest.raises(MalformedPayload):
            qr.decode(encoded, ISSUED)

    def test_non_string_is_malformed(self):
        with pytest.raises(MalformedPayload):
            qr.decode(None, ISSUED)

    @pytest.mark.parametrize("missing", ["type", "id", "sessionId", "timestamp"])
    def test_missing_field_is_malformed(self, missing):
        document = {"type": "participant", "id": "p", "sessionId": "s", "timestamp": 1}
        del document[missing]
        with pytest.raises(MalformedPayload):
            qr.decode(raw_code(document), ISSUED)

    @pytest.mark.parametrize(
        "field,value",
        [("type", "ticket"), ("id", ""), ("sessionId", 42), ("timestamp", "yesterday"), ("timestamp", True)],
    )
    def test_mistyped_field_is_malformed(self, field, value):
        document = {"type": "participant", "id": "p", "sessionId": "s", "timestamp": 1}
        document[field] = value
        with pytest.raises(MalformedPayload):
            qr.decode(raw_code(document), ISSUED)
