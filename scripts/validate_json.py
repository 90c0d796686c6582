import sys
from pathlib import Path

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from ai_doctor.core.contract import parse_prescription
from ai_doctor.core.errors import ParseError


def main():
    import argparse
    p = argparse.ArgumentParser(description="Check a stored model reply against the prescription contract.")
    p.add_argument("--file", required=True, help="Raw reply (JSON, optionally fenced or wrapped in prose)")
    args = p.parse_args()

    text = Path(args.file).read_text(encoding="utf-8")
    try:
        result = parse_prescription(text)
    except ParseError as e:
        print(f"INVALID: {e.detail}", file=sys.stderr)
        return 1
    print(f"OK: {result.illness_title}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
