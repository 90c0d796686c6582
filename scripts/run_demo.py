#!/usr/bin/env python3
# scripts/run_demo.py
from __future__ import annotations
import os
import sys
import json
import argparse
import logging
import traceback
from pathlib import Path
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

# Make repo root importable so `import ai_doctor...` works when running `python scripts/run_demo.py`
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from ai_doctor.core.attachments import LocalUpload
from ai_doctor.core.controller import UPLOAD_MODE, FormState, IntakeSession
from ai_doctor.core.settings import configure, model_provider

logger = logging.getLogger("run_demo")


@dataclass
class CaseResult:
    case_file: str
    ok: bool
    output_file: Optional[str] = None
    raw_file: Optional[str] = None
    error: Optional[str] = None
    warning: Optional[str] = None
    trace: Optional[str] = None


def _read_json(path: Path) -> Dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")


def session_from_case(case: Dict[str, Any], base_dir: Path) -> IntakeSession:
    """
    Fill a fresh intake session the way a user would fill the form.

    Case keys: patient{...}, treatments[...], mode ("text" | "upload"),
    symptoms, report_comments, attachments[paths relative to the case file].
    """
    s = IntakeSession()
    patient = case.get("patient") or {}
    # religion first, so the religious label it implies can be chosen afterwards
    for field in ("religion", "name", "age", "district", "cell", "language"):
        if field in patient:
            s.update_patient(field, str(patient[field]))
    for label in case.get("treatments") or []:
        s.set_treatment(label, True)

    s.set_mode(case.get("mode", "text"))
    s.set_symptoms(case.get("symptoms", ""))
    s.set_report_comments(case.get("report_comments", ""))
    if s.mode == UPLOAD_MODE:
        s.add_files(LocalUpload(base_dir / p) for p in case.get("attachments") or [])
    return s


def run_one_case(case_path: Path, out_dir: Path, raw_dir: Path) -> CaseResult:
    case_stem = case_path.stem
    result = CaseResult(case_file=str(case_path.as_posix()), ok=False)

    try:
        s = session_from_case(_read_json(case_path), case_path.parent)
        s.submit()
        result.warning = s.warning

        if s.raw_reply:
            raw_dir.mkdir(parents=True, exist_ok=True)
            raw_path = raw_dir / f"raw_{case_stem}.txt"
            raw_path.write_text(s.raw_reply, encoding="utf-8", errors="ignore")
            result.raw_file = str(raw_path.as_posix())

        if s.state != FormState.RESULT or s.result is None:
            result.error = s.error or f"Ended in state {s.state.value}"
            return result

        out_path = out_dir / f"output_{case_stem}.json"
        _write_json(out_path, s.result.to_dict())
        result.output_file = str(out_path.as_posix())
        result.ok = True
        return result

    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        result.trace = traceback.format_exc(limit=5)
        return result


def main() -> int:
    parser = argparse.ArgumentParser(description="Run demo intake cases end-to-end and validate replies.")
    parser.add_argument("--cases_dir", default="data_demo/cases", help="Directory with intake cases (*.json)")
    parser.add_argument("--out_dir", default="data_demo/outputs", help="Where to write output_*.json")
    parser.add_argument("--raw_dir", default="data_demo/raw", help="Where to write RAW model replies")
    parser.add_argument("--report", default="data_demo/demo_report.json", help="Machine-readable report path")
    parser.add_argument("--report_md", default="data_demo/demo_report.md", help="Human-readable report path")
    args = parser.parse_args()

    configure()
    # for demo runs: ensure prompt capture is on unless explicitly disabled
    os.environ.setdefault("SAVE_LAST_PROMPT", "1")

    provider = model_provider()
    if provider == "gemini" and not (os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")):
        print("ERROR: GEMINI_API_KEY is empty for MODEL_PROVIDER=gemini. Set it in .env.", file=sys.stderr)
        return 2
    if provider == "transformers" and not (os.getenv("MODEL_ID") or "").strip():
        print("ERROR: MODEL_ID is empty for MODEL_PROVIDER=transformers. Set MODEL_ID in .env.", file=sys.stderr)
        return 2

    cases_dir = Path(args.cases_dir)
    out_dir = Path(args.out_dir)
    raw_dir = Path(args.raw_dir)

    if not cases_dir.exists():
        print(f"ERROR: cases_dir not found: {cases_dir}", file=sys.stderr)
        return 2

    case_files = sorted(cases_dir.glob("*.json"))
    if not case_files:
        print(f"ERROR: no cases found in {cases_dir}", file=sys.stderr)
        return 2

    started = datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    results: list[CaseResult] = []
    print(f"Running {len(case_files)} demo case(s) with provider '{provider}'...")
    for p in case_files:
        r = run_one_case(p, out_dir, raw_dir)
        results.append(r)
        print(f"- {'OK' if r.ok else 'FAILED'}: {p.name}")
        if r.warning:
            print(f"  warning: {r.warning}")
        if not r.ok:
            print(f"  reason: {r.error}")
            if r.raw_file:
                print(f"  raw:    {r.raw_file}")

    ok_count = sum(1 for r in results if r.ok)
    finished = datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    report_obj = {
        "started_at": started,
        "finished_at": finished,
        "run_config": {
            "MODEL_PROVIDER": provider,
            "MODEL_ID": (os.getenv("MODEL_ID") or "").strip(),
            "SAVE_LAST_PROMPT": (os.getenv("SAVE_LAST_PROMPT") or "").strip(),
        },
        "cases_total": len(case_files),
        "cases_ok": ok_count,
        "cases_failed": len(case_files) - ok_count,
        "results": [asdict(r) for r in results],
    }
    report_path = Path(args.report)
    _write_json(report_path, report_obj)

    md_lines = [
        "# Demo run report",
        "",
        f"- started_at: `{started}`",
        f"- finished_at: `{finished}`",
        f"- total: **{len(case_files)}** | ok: **{ok_count}** | failed: **{len(case_files) - ok_count}**",
        "",
        "## Results",
        "",
        "| case | status | output | raw | error |",
        "|---|---:|---|---|---|",
    ]
    for r in results:
        md_lines.append(
            f"| `{Path(r.case_file).name}` | **{'OK' if r.ok else 'FAILED'}** | "
            f"{('`'+r.output_file+'`') if r.output_file else ''} | "
            f"{('`'+r.raw_file+'`') if r.raw_file else ''} | "
            f"{(r.error or '').replace('|','&#124;')} |"
        )

    report_md_path = Path(args.report_md)
    report_md_path.parent.mkdir(parents=True, exist_ok=True)
    report_md_path.write_text("\n".join(md_lines) + "\n", encoding="utf-8")

    print("")
    print(f"Report: {report_path.as_posix()}")
    print(f"Report (md): {report_md_path.as_posix()}")
    print(f"Outputs: {out_dir.as_posix()}")
    print(f"RAW: {raw_dir.as_posix()}")

    return 0 if ok_count == len(case_files) else 1


if __name__ == "__main__":
    raise SystemExit(main())
