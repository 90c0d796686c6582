from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from ai_doctor.core.rules import ALLOPATHY


PAGE = Path(__file__).resolve().parents[1] / "ai_doctor" / "pages" / "01_Patient_Intake.py"


@pytest.fixture
def page():
    at = AppTest.from_file(str(PAGE), default_timeout=30)
    at.run()
    return at


def test_form_renders(page):
    assert not page.exception
    assert page.title[0].value == "AI Doctor: Patient Intake"
    assert page.button[0].label == "Get AI Prescription"


def test_text_submission_shows_prescription(page):
    for key, value in (("pt_name", "Aisha"), ("pt_age", "29"), ("pt_district", "Lahore")):
        page.text_input(key=key).input(value)
    page.selectbox(key="pt_religion").select("Islam")
    page.checkbox(key=f"tx_{ALLOPATHY}").check()
    page.text_area(key="symptoms").input("fever and cough")
    page.run()

    page.button[0].click().run()
    assert not page.exception
    assert any("Stub Prescription" in m.value for m in page.markdown)
    assert "✏️ Edit" in [b.label for b in page.button]
