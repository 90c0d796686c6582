import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Tuple

from .attachments import encode_attachments, filter_uploads
from .errors import SERVICE_FAILURE_MESSAGE, FormValidationError, PrescriptionError
from .generator import generate_prescription
from .models import PATIENT_FIELDS, PatientInfo, PrescriptionResult, ReportSubmission, Submission, TextSubmission
from .rules import apply_religion_change, available_treatments, ordered_treatments, toggle_treatment


logger = logging.getLogger(__name__)

TEXT_MODE = "text"
UPLOAD_MODE = "upload"

Generator = Callable[[Submission], Tuple[PrescriptionResult, str]]
Encoder = Callable[[Iterable[Any]], list]


class FormState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    RESULT = "result"
    ERROR = "error"


class IntakeSession:
    """
    All state of one intake form. Lives in st.session_state; mutated only by
    discrete user actions or by the completion of a submission.
    """

    def __init__(self) -> None:
        self.reset()

    # --- editing ---

    def reset(self) -> None:
        self.patient = PatientInfo()
        self.symptoms = ""
        self.report_comments = ""
        self.mode = TEXT_MODE
        self.treatments: FrozenSet[str] = frozenset()
        self.files: List[Any] = []
        self.result: Optional[PrescriptionResult] = None
        self.raw_reply: Optional[str] = None
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self.state = FormState.EDITING

    def _touch(self) -> None:
        if self.state == FormState.SUBMITTING:
            raise PrescriptionError("Form is locked while a submission is in flight.")
        if self.state == FormState.RESULT:
            # any edit invalidates the shown prescription
            self.result = None
            self.raw_reply = None
        if self.state in (FormState.ERROR, FormState.RESULT):
            self.state = FormState.EDITING

    def update_patient(self, field: str, value: str) -> None:
        if field not in PATIENT_FIELDS:
            raise KeyError(field)
        self._touch()
        if field == "religion":
            self.treatments = apply_religion_change(self.patient.religion, value, self.treatments)
        self.patient = replace(self.patient, **{field: value})

    def toggle_treatment(self, label: str) -> None:
        self._touch()
        self.treatments = toggle_treatment(self.treatments, label)

    def set_treatment(self, label: str, selected: bool) -> None:
        if (label in self.treatments) != selected:
            self.toggle_treatment(label)

    def set_mode(self, mode: str) -> None:
        if mode not in (TEXT_MODE, UPLOAD_MODE):
            raise ValueError(f"Unknown input mode: {mode}")
        self._touch()
        self.mode = mode

    def set_symptoms(self, text: str) -> None:
        self._touch()
        self.symptoms = text

    def set_report_comments(self, text: str) -> None:
        self._touch()
        self.report_comments = text

    def add_files(self, uploads: Iterable[Any]) -> List[Any]:
        """Append the acceptable uploads; one aggregate warning if any were dropped."""
        self._touch()
        accepted, rejection = filter_uploads(uploads)
        if rejection is not None:
            self.warning = str(rejection)
        self.files.extend(accepted)
        return accepted

    def remove_file(self, name: str) -> None:
        self._touch()
        self.files = [f for f in self.files if f.name != name]

    @property
    def treatment_options(self) -> List[str]:
        return available_treatments(self.patient.religion)

    @property
    def can_submit(self) -> bool:
        return self.state in (FormState.EDITING, FormState.ERROR)

    # --- submission ---

    def validate(self) -> None:
        missing = list(self.patient.missing_fields())
        if not self.treatments:
            missing.append("treatments")
        if self.mode == TEXT_MODE and not self.symptoms.strip():
            missing.append("symptoms")
        if self.mode == UPLOAD_MODE and not self.files:
            missing.append("files")
        if missing:
            raise FormValidationError(missing=missing)

    def build_submission(self, encode: Encoder = encode_attachments) -> Submission:
        treatments = tuple(ordered_treatments(self.treatments))
        if self.mode == UPLOAD_MODE:
            return ReportSubmission(
                patient=self.patient,
                treatments=treatments,
                comments=self.report_comments,
                attachments=tuple(encode(self.files)),
            )
        return TextSubmission(patient=self.patient, treatments=treatments, symptoms=self.symptoms)

    def submit(
        self,
        generate: Generator = generate_prescription,
        encode: Encoder = encode_attachments,
    ) -> Optional[PrescriptionResult]:
        if self.state == FormState.SUBMITTING:
            logger.warning("Ignoring submit while a submission is in flight")
            return None

        try:
            self.validate()
        except FormValidationError as e:
            logger.info("Submission blocked, missing: %s", ", ".join(e.missing))
            self.error = str(e)
            self.state = FormState.EDITING
            return None

        self.error = None
        self.warning = None
        self.result = None
        self.raw_reply = None
        self.state = FormState.SUBMITTING
        try:
            submission = self.build_submission(encode)
            result, raw = generate(submission)
        except PrescriptionError as e:
            self.error = str(e)
            self.state = FormState.ERROR
            return None
        except Exception:
            # keep the form editable, let the caller see the bug
            self.error = SERVICE_FAILURE_MESSAGE
            self.state = FormState.ERROR
            raise

        self.result = result
        self.raw_reply = raw
        self.state = FormState.RESULT
        return result

    def edit(self) -> None:
        """Back to the form with every entered value kept."""
        self.result = None
        self.raw_reply = None
        self.state = FormState.EDITING
