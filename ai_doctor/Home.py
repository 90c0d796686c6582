import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ai_doctor.core.settings import configure, model_provider

configure()

st.set_page_config(page_title="AI Doctor", layout="wide")

st.title("AI Doctor")
st.write("Use the pages on the left:")
st.markdown("- **Patient Intake**: enter your details, describe symptoms or upload reports, get a prescription")

st.caption(f"Model provider: `{model_provider()}` (set MODEL_PROVIDER=gemini + GEMINI_API_KEY in .env for a real model).")
st.info("Safety: AI-generated recommendations are not a diagnosis. Consult a qualified doctor before taking any medication.")
