"""
Pytest configuration and fixtures
"""
import pytest

from ai_doctor.core.controller import IntakeSession
from ai_doctor.core.models import PatientInfo
from ai_doctor.core.rules import ALLOPATHY


class FakeUpload:
    """Stand-in for streamlit's UploadedFile."""

    def __init__(self, name, media_type, data=b"data", size=None, fail=False):
        self.name = name
        self.type = media_type
        self._data = data
        self.size = len(data) if size is None else size
        self.fail = fail

    def getvalue(self):
        if self.fail:
            raise OSError("disk read failed")
        return self._data


@pytest.fixture(autouse=True)
def _offline(monkeypatch, tmp_path):
    # never reach a real model, keep debug artifacts out of the repo
    monkeypatch.setenv("MODEL_PROVIDER", "stub")
    monkeypatch.delenv("SAVE_LAST_PROMPT", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def aisha() -> PatientInfo:
    return PatientInfo(name="Aisha", age="29", district="Lahore", religion="Islam", language="Urdu")


@pytest.fixture
def filled_session() -> IntakeSession:
    s = IntakeSession()
    for field, value in (("name", "Aisha"), ("age", "29"), ("district", "Lahore"),
                         ("religion", "Islam"), ("language", "Urdu")):
        s.update_patient(field, value)
    s.toggle_treatment(ALLOPATHY)
    s.set_symptoms("fever and cough")
    return s


@pytest.fixture
def pdf():
    return FakeUpload("cbc.pdf", "application/pdf", b"%PDF-1.4 report")


@pytest.fixture
def png():
    return FakeUpload("xray.png", "image/png", b"\x89PNG\r\n")
