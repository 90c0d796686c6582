from datetime import date

from ai_doctor.core.models import PatientInfo, PrescriptionResult
from ai_doctor.core.render import download_name, prescription_markdown


RESULT = PrescriptionResult("Common Cold", "## Homeopathy Prescription\n* Allium cepa 30C", "## General Advice\n* Rest")


def test_document_contains_patient_and_sections(aisha):
    doc = prescription_markdown(aisha, RESULT, issued=date(2026, 10, 19))
    assert doc.startswith("# AI Doctor Prescription")
    assert "**Name:** Aisha" in doc
    assert "**Language:** Urdu" in doc
    assert "**Date:** 2026-10-19" in doc
    assert "## Common Cold" in doc
    assert doc.index("Allium cepa") < doc.index("## General Advice")
    assert "**Cell:**" not in doc


def test_cell_shown_when_present():
    patient = PatientInfo(name="John", age="41", district="Leeds", cell="07700", religion="Other")
    doc = prescription_markdown(patient, RESULT)
    assert "**Cell:** 07700" in doc


def test_download_name_is_filesystem_safe():
    patient = PatientInfo(name="Mary Ann/../x")
    assert download_name(patient, date(2026, 1, 2)) == "prescription_MaryAnnx_20260102.md"
    assert download_name(PatientInfo(), date(2026, 1, 2)) == "prescription_patient_20260102.md"
