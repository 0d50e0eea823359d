"""Check-in code payloads.

A code is compact JSON wrapped in URL-safe base64. It carries identifiers
only and is not signed: anyone who knows a valid participant/session pair can
produce one, so scanners must still look the subject up before admitting it.
"""

import base64
import binascii
import json
from datetime import datetime, timedelta, timezone

from seminars.domain.errors import ExpiredPayload, InvalidInputError, MalformedPayload
from seminars.domain.models import QRKind, QRPayload

PAYLOAD_TTL = timedelta(hours=24)

# Wire keys match codes already printed on issued tickets.
_KIND = "type"
_SUBJECT = "id"
_SESSION = "sessionId"
_ISSUED_AT = "timestamp"


def _epoch_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def encode_payload(payload: QRPayload) -> str:
    document = {
        _KIND: payload.kind.value,
        _SUBJECT: payload.subject_id,
        _SESSION: payload.session_id,
        _ISSUED_AT: payload.issued_at_epoch_ms,
    }
    raw = json.dumps(document, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def encode(
    kind: QRKind | str,
    subject_id: str,
    session_id: str,
    issued_at: datetime | None = None,
) -> str:
    """Encode a code for ``subject_id`` in ``session_id``, stamped now.

    Raises:
        InvalidInputError: If ``kind`` is unknown or an id is empty.
    """
    try:
        kind = QRKind(kind)
    except ValueError:
        raise InvalidInputError(f"Unknown code kind: {kind!r}") from None
    for value in (subject_id, session_id):
        if not isinstance(value, str) or not value:
            raise InvalidInputError("Codes need a subject id and a session id")

    if issued_at is None:
        issued_at = datetime.now(timezone.utc)
    payload = QRPayload(
        kind=kind,
        subject_id=subject_id,
        session_id=session_id,
        issued_at_epoch_ms=_epoch_ms(issued_at),
    )
    return encode_payload(payload)


def _b64decode(encoded: str) -> bytes:
    # Accept both alphabets and missing padding.
    text = encoded.strip().replace("+", "-").replace("/", "_").rstrip("=")
    text += "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text.encode("ascii"))


def decode(encoded: str, now: datetime, ttl: timedelta = PAYLOAD_TTL) -> QRPayload:
    """Decode and validate a scanned code.

    Raises:
        MalformedPayload: If the string is not a well-formed payload.
        ExpiredPayload: If the payload was issued more than ``ttl`` before now.
    """
    try:
        document = json.loads(_b64decode(encoded).decode("utf-8"))
    except (AttributeError, TypeError, ValueError, binascii.Error, UnicodeError, RecursionError):
        raise MalformedPayload() from None

    if not isinstance(document, dict):
        raise MalformedPayload()

    kind = document.get(_KIND)
    subject_id = document.get(_SUBJECT)
    session_id = document.get(_SESSION)
    issued_at = document.get(_ISSUED_AT)

    if kind not in {k.value for k in QRKind}:
        raise MalformedPayload()
    if not isinstance(subject_id, str) or not subject_id:
        raise MalformedPayload()
    if not isinstance(session_id, str) or not session_id:
        raise MalformedPayload()
    if isinstance(issued_at, bool) or not isinstance(issued_at, int) or issued_at <= 0:
        raise MalformedPayload()

    if _epoch_ms(now) - issued_at > ttl / timedelta(milliseconds=1):
        raise ExpiredPayload()

    return QRPayload(
        kind=QRKind(kind),
        subject_id=subject_id,
        session_id=session_id,
        issued_at_epoch_ms=issued_at,
    )
