import json
from typing import Any, Dict

from jsonschema import Draft7Validator

from .errors import ParseError
from .json_utils import extract_json_object
from .models import PrescriptionResult


FIELD_DESCRIPTIONS = {
    "illnessTitle": "A short, concise title for the illness or report finding, written in the requested language.",
    "prescriptionContent": "The detailed prescription content in Markdown, including analysis and treatments, "
                           "written in the requested language.",
    "advice": "A bulleted list of general advice in Markdown with a translated 'General Advice' heading, "
              "written in the requested language.",
}

RESPONSE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "PrescriptionReply",
    "type": "object",
    "properties": {
        name: {"type": "string", "minLength": 1, "pattern": r"\S", "description": desc}
        for name, desc in FIELD_DESCRIPTIONS.items()
    },
    "required": list(FIELD_DESCRIPTIONS),
}

_validator = Draft7Validator(RESPONSE_SCHEMA)


def validate_reply(obj: Dict[str, Any], raw_text: str = "") -> None:
    """Raise ParseError naming the first contract violation."""
    errors = sorted(_validator.iter_errors(obj), key=lambda e: list(e.path))
    if errors:
        err = errors[0]
        where = ".".join(str(p) for p in err.path) or "reply"
        raise ParseError(f"Schema validation error at {where}: {err.message}", raw_text or json.dumps(obj, ensure_ascii=False))


def parse_prescription(text: str) -> PrescriptionResult:
    """
    Parse the service's raw reply into a PrescriptionResult.
    No partial result: any malformed text or missing/empty field raises ParseError.
    """
    obj = extract_json_object(text or "")
    if obj is None:
        raise ParseError("No valid JSON object found.", text or "")

    validate_reply(obj, raw_text=text)

    return PrescriptionResult(
        illness_title=obj["illnessTitle"],
        prescription_content=obj["prescriptionContent"],
        advice=obj["advice"],
    )
