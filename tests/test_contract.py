import json

import pytest

from ai_doctor.core.contract import parse_prescription
from ai_doctor.core.errors import SERVICE_FAILURE_MESSAGE, ParseError, ServiceError
from ai_doctor.core.json_utils import extract_json_object


REPLY = {
    "illnessTitle": "نزلہ زکام",
    "prescriptionContent": "## ایلوپیتھی\n* Paracetamol, 500mg 1+1+1, 5 days",
    "advice": "## عمومی مشورہ\n* آرام کریں",
}


def test_wellformed_reply_parses_verbatim():
    result = parse_prescription(json.dumps(REPLY, ensure_ascii=False))
    assert result.to_dict() == REPLY


def test_fenced_reply_with_prose():
    text = "Here you go:\n```json\n" + json.dumps(REPLY) + "\n```\nStay healthy."
    assert parse_prescription(text).illness_title == REPLY["illnessTitle"]


def test_prefers_last_object_with_expected_keys():
    text = '{"example": true}\n' + json.dumps(REPLY)
    assert extract_json_object(text) == REPLY


@pytest.mark.parametrize("missing", ["illnessTitle", "prescriptionContent", "advice"])
def test_missing_field_is_rejected(missing):
    reply = {k: v for k, v in REPLY.items() if k != missing}
    with pytest.raises(ParseError) as exc:
        parse_prescription(json.dumps(reply))
    assert missing in exc.value.detail


@pytest.mark.parametrize("bad", ["", "   ", 42, None])
def test_empty_or_non_string_field_is_rejected(bad):
    with pytest.raises(ParseError):
        parse_prescription(json.dumps({**REPLY, "advice": bad}))


@pytest.mark.parametrize("text", ["", "not json at all", "[1, 2, 3]", '{"illnessTitle": "x"'])
def test_malformed_text_is_rejected(text):
    with pytest.raises(ParseError):
        parse_prescription(text)


def test_parse_error_is_service_error_with_generic_message():
    with pytest.raises(ServiceError) as exc:
        parse_prescription("nope")
    assert str(exc.value) == SERVICE_FAILURE_MESSAGE
    assert exc.value.raw_text == "nope"


def test_deeply_nested_reply_is_parse_error():
    depth = 100000
    text = '{"illnessTitle": ' + '{"a": ' * depth + "1" + "}" * depth + "}"
    with pytest.raises(ParseError) as exc:
        parse_prescription(text)
    assert str(exc.value) == SERVICE_FAILURE_MESSAGE
