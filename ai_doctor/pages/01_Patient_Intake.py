import sys
from pathlib import Path

import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parents[2]  # project root
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ai_doctor.core.attachments import MAX_ATTACHMENT_BYTES
from ai_doctor.core.controller import TEXT_MODE, UPLOAD_MODE, FormState, IntakeSession
from ai_doctor.core.render import download_name, prescription_markdown
from ai_doctor.core.rules import RELIGIONS, SUPPORTED_LANGUAGES
from ai_doctor.core.settings import configure

configure()


# ---------- session ----------

def session() -> IntakeSession:
    if "intake" not in st.session_state:
        st.session_state["intake"] = IntakeSession()
    return st.session_state["intake"]


def ensure_session_defaults():
    st.session_state.setdefault("uploader_round", 0)


def sync_widgets(s: IntakeSession):
    """Push controller state into widget keys; the controller is the source of truth."""
    for field, value in s.patient.to_dict().items():
        st.session_state[f"pt_{field}"] = value
    st.session_state["mode"] = s.mode
    st.session_state["symptoms"] = s.symptoms
    st.session_state["report_comments"] = s.report_comments
    for label in s.treatment_options:
        st.session_state[f"tx_{label}"] = label in s.treatments


# ---------- callbacks ----------

def on_patient(field: str):
    session().update_patient(field, st.session_state[f"pt_{field}"])


def on_treatment(label: str):
    session().set_treatment(label, st.session_state[f"tx_{label}"])


def on_mode():
    session().set_mode(st.session_state["mode"])


def on_symptoms():
    session().set_symptoms(st.session_state["symptoms"])


def on_report_comments():
    session().set_report_comments(st.session_state["report_comments"])


def on_upload(key: str):
    uploads = st.session_state.get(key) or []
    session().add_files(uploads)
    # fresh uploader widget so the same files are not added again on rerun
    st.session_state["uploader_round"] += 1


def on_remove(name: str):
    session().remove_file(name)


# ---------- views ----------

def render_form(s: IntakeSession):
    st.subheader("Patient Information")
    st.caption("Provide your details for a personalized plan.")

    if s.error:
        st.error(s.error)
    if s.warning:
        st.warning(s.warning)

    c1, c2 = st.columns(2)
    c1.text_input("Name *", key="pt_name", on_change=on_patient, args=("name",))
    c2.text_input("Age *", key="pt_age", on_change=on_patient, args=("age",))
    c1.text_input("District / City *", key="pt_district", on_change=on_patient, args=("district",))
    c2.text_input("Cell No. (Optional)", key="pt_cell", on_change=on_patient, args=("cell",))
    c1.selectbox(
        "Religion *",
        [""] + RELIGIONS,
        format_func=lambda r: r or "Select Religion",
        key="pt_religion",
        on_change=on_patient,
        args=("religion",),
    )
    c2.selectbox(
        "Preferred Language *",
        SUPPORTED_LANGUAGES,
        key="pt_language",
        on_change=on_patient,
        args=("language",),
    )

    st.divider()
    st.subheader("Describe Illness or Upload Reports *")
    st.radio(
        "Input",
        [TEXT_MODE, UPLOAD_MODE],
        format_func=lambda m: "Describe Symptoms" if m == TEXT_MODE else "Upload Reports",
        horizontal=True,
        key="mode",
        on_change=on_mode,
        label_visibility="collapsed",
    )

    if s.mode == TEXT_MODE:
        st.text_area(
            "Symptoms",
            key="symptoms",
            on_change=on_symptoms,
            height=140,
            placeholder="For example: I have a fever, cough, and headache...",
        )
    else:
        uploader_key = f"uploader_{st.session_state['uploader_round']}"
        st.file_uploader(
            f"PDF, PNG, JPG up to {MAX_ATTACHMENT_BYTES // (1024 * 1024)}MB",
            accept_multiple_files=True,
            key=uploader_key,
            on_change=on_upload,
            args=(uploader_key,),
        )
        if s.files:
            st.write("**Uploaded Files:**")
            df = pd.DataFrame(
                [{"file": f.name, "type": f.type, "size (KB)": round(f.size / 1024, 1)} for f in s.files]
            )
            st.dataframe(df, width="stretch", hide_index=True)
            for i, f in enumerate(s.files):
                st.button(f"🗑 Remove {f.name}", key=f"rm_{i}_{f.name}", on_click=on_remove, args=(f.name,))
        st.text_area(
            "Comments or Questions about Reports (Optional)",
            key="report_comments",
            on_change=on_report_comments,
            height=110,
            placeholder="e.g., 'Please check my kidney function results in the attached file.'",
        )

    st.divider()
    st.subheader("Choose Treatment Type(s) *")
    cols = st.columns(2)
    for i, label in enumerate(s.treatment_options):
        cols[i % 2].checkbox(label, key=f"tx_{label}", on_change=on_treatment, args=(label,))

    label = "Generating..." if s.state == FormState.SUBMITTING else "Get AI Prescription"
    if st.button(label, type="primary", disabled=not s.can_submit, width="stretch"):
        with st.spinner("Consulting with the AI Doctor... Analyzing reports and crafting your health plan."):
            s.submit()
        st.rerun()


def render_result(s: IntakeSession):
    doc = prescription_markdown(s.patient, s.result)
    st.markdown(doc)

    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download prescription",
        data=doc,
        file_name=download_name(s.patient),
        mime="text/markdown",
        width="stretch",
    )
    if c2.button("✏️ Edit", width="stretch"):
        s.edit()
        st.rerun()
    if c3.button("➕ New consultation", width="stretch"):
        s.reset()
        st.rerun()

    if s.raw_reply:
        with st.expander("Raw model reply"):
            st.code(s.raw_reply, language="json")


# ---------- UI ----------

st.title("AI Doctor: Patient Intake")
ensure_session_defaults()

s = session()
if s.state == FormState.RESULT and s.result is not None:
    render_result(s)
else:
    sync_widgets(s)
    render_form(s)
