from dataclasses import asdict, dataclass, field
from typing import Dict, Tuple, Union


PATIENT_FIELDS = ("name", "age", "district", "cell", "religion", "language")
REQUIRED_PATIENT_FIELDS = ("name", "age", "district", "religion", "language")
DEFAULT_LANGUAGE = "English"


@dataclass(frozen=True)
class PatientInfo:
    name: str = ""
    age: str = ""
    district: str = ""
    cell: str = ""
    religion: str = ""
    language: str = DEFAULT_LANGUAGE

    def missing_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in REQUIRED_PATIENT_FIELDS if not str(getattr(self, f)).strip())

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Attachment:
    name: str
    media_type: str
    payload: bytes = field(repr=False)

    @property
    def size_bytes(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class PrescriptionResult:
    illness_title: str
    prescription_content: str
    advice: str

    def to_dict(self) -> Dict[str, str]:
        # wire names used by the response contract
        return {
            "illnessTitle": self.illness_title,
            "prescriptionContent": self.prescription_content,
            "advice": self.advice,
        }


@dataclass(frozen=True)
class TextSubmission:
    """Symptoms typed by the patient, no reports attached."""

    patient: PatientInfo
    treatments: Tuple[str, ...]
    symptoms: str


@dataclass(frozen=True)
class ReportSubmission:
    """Uploaded reports plus optional comments about them."""

    patient: PatientInfo
    treatments: Tuple[str, ...]
    comments: str
    attachments: Tuple[Attachment, ...]


Submission = Union[TextSubmission, ReportSubmission]


def submission_attachments(submission: Submission) -> Tuple[Attachment, ...]:
    if isinstance(submission, ReportSubmission):
        return submission.attachments
    return ()


def submission_text(submission: Submission) -> str:
    if isinstance(submission, ReportSubmission):
        return submission.comments
    return submission.symptoms
