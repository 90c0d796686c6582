from datetime import date
from typing import Optional

from .models import PatientInfo, PrescriptionResult


def prescription_markdown(patient: PatientInfo, result: PrescriptionResult, issued: Optional[date] = None) -> str:
    """Printable prescription: patient header, illness title, content, advice."""
    issued = issued or date.today()
    header = [
        "# AI Doctor Prescription",
        "",
        f"**Name:** {patient.name}  ",
        f"**Age:** {patient.age}  ",
        f"**District / City:** {patient.district}  ",
    ]
    if patient.cell:
        header.append(f"**Cell:** {patient.cell}  ")
    header += [
        f"**Religion:** {patient.religion}  ",
        f"**Language:** {patient.language}  ",
        f"**Date:** {issued.isoformat()}",
        "",
        "---",
        "",
        f"## {result.illness_title}",
        "",
        result.prescription_content.strip(),
        "",
        result.advice.strip(),
        "",
        "---",
        "",
        "*AI-generated recommendation. Consult a qualified doctor before taking any medication.*",
    ]
    return "\n".join(header) + "\n"


def download_name(patient: PatientInfo, issued: Optional[date] = None) -> str:
    issued = issued or date.today()
    safe = "".join(c for c in patient.name if c.isalnum() or c in ("_", "-")).strip() or "patient"
    return f"prescription_{safe}_{issued.strftime('%Y%m%d')}.md"
