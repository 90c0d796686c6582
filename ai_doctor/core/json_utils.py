import ast
import json
import re
from typing import Any, Dict, List, Optional, Tuple


EXPECTED_KEYS = {"illnessTitle", "prescriptionContent", "advice"}


def _strip_code_fences(text: str) -> str:
    if not text:
        return ""
    # remove ```json / ``` fences, keep inner content
    text = re.sub(r"```(?:json|JSON)?", "", text)
    text = text.replace("```", "")
    return text.strip()


def _scan_top_level_json_object_spans(text: str) -> List[Tuple[int, int]]:
    """
    Returns spans (start, end_exclusive) for every top-level {...} JSON-like object.
    Uses brace balancing with string/escape awareness.
    """
    spans: List[Tuple[int, int]] = []
    depth = 0
    start = None

    in_str = False
    esc = False

    for i, ch in enumerate(text):
        if in_str:
            if esc:
                esc = False
            elif ch == "\\":
                esc = True
            elif ch == '"':
                in_str = False
            continue

        if ch == '"':
            in_str = True
            continue

        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}":
            if depth > 0:
                depth -= 1
                if depth == 0 and start is not None:
                    spans.append((start, i + 1))
                    start = None

    return spans


def _parse_candidate(candidate: str) -> Optional[Dict[str, Any]]:
    """
    Try parse candidate as JSON dict; fallback to ast.literal_eval for dict-like outputs.
    Returns dict or None.
    """
    candidate = candidate.strip()
    if not candidate.startswith("{") or not candidate.endswith("}"):
        return None

    try:
        obj = json.loads(candidate)
        return obj if isinstance(obj, dict) else None
    except (ValueError, RecursionError, MemoryError):
        pass

    # python dict-like (single quotes, True/False/None)
    try:
        obj = ast.literal_eval(candidate)
        return obj if isinstance(obj, dict) else None
    except (ValueError, SyntaxError, TypeError, RecursionError, MemoryError):
        return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Extract the prescription object from model output.
    - Strips code fences
    - Finds ALL top-level {...} objects
    - Prefers the LAST object carrying every expected key
    """
    if not text:
        return None

    text = _strip_code_fences(text)

    spans = _scan_top_level_json_object_spans(text)
    if not spans:
        return None

    parsed = [obj for obj in (_parse_candidate(text[s:e]) for s, e in spans) if obj is not None]
    if not parsed:
        return None

    for obj in reversed(parsed):
        if EXPECTED_KEYS.issubset(obj.keys()):
            return obj

    # let the schema check report what is missing
    return max(parsed, key=lambda o: len(set(o.keys()) & EXPECTED_KEYS))
