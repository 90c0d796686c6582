import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Sequence, Tuple

from google import genai
from google.genai import types

from .contract import FIELD_DESCRIPTIONS, parse_prescription
from .errors import ParseError, ServiceError
from .models import Attachment, PrescriptionResult, Submission, submission_attachments
from .prompt_builder import GENERAL_ADVICE_HEADING, REPORT_SUMMARY_HEADING, build_prompt
from .rules import ordered_treatments
from .settings import model_provider


logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
LAST_PROMPT_PATH = Path("last_model_prompt.txt")
LAST_RAW_PATH = Path("last_model_raw.txt")


def _call_stub(prompt: str, attachments: Sequence[Attachment], treatments: Sequence[str]) -> str:
    """Offline reply shaped like a real one, for demos and tests."""
    if attachments:
        names = ", ".join(a.name for a in attachments)
        content = f"## {REPORT_SUMMARY_HEADING}\n* Stub analysis of: {names}\n"
    else:
        content = ""
    for t in treatments:
        content += f"\n## {t} Prescription\n* Stub item. Set MODEL_PROVIDER=gemini to run a real model.\n"
    return json.dumps(
        {
            "illnessTitle": "Stub Prescription",
            "prescriptionContent": content.strip(),
            "advice": f"## {GENERAL_ADVICE_HEADING}\n* Rest and drink plenty of fluids.\n* Consult a doctor.",
        },
        ensure_ascii=False,
    )


@lru_cache(maxsize=4)
def _gemini_client(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


def _gemini_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            name: types.Schema(type=types.Type.STRING, description=desc)
            for name, desc in FIELD_DESCRIPTIONS.items()
        },
        required=list(FIELD_DESCRIPTIONS),
    )


def _call_gemini(prompt: str, attachments: Sequence[Attachment]) -> str:
    api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "").strip()
    if not api_key:
        raise RuntimeError("MODEL_PROVIDER=gemini requires GEMINI_API_KEY in .env")
    model_id = os.getenv("MODEL_ID", "").strip() or DEFAULT_GEMINI_MODEL

    parts = [types.Part.from_text(text=prompt)]
    parts.extend(types.Part.from_bytes(data=a.payload, mime_type=a.media_type) for a in attachments)

    response = _gemini_client(api_key).models.generate_content(
        model=model_id,
        contents=parts,
        config=types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=_gemini_schema(),
        ),
    )
    return response.text or ""


# --- caching for Streamlit reruns ---
try:
    import streamlit as st
    _cache_resource = st.cache_resource
except ImportError:
    _cache_resource = None


def _load_model_tok(model_id: str):
    from transformers import AutoModelForCausalLM, AutoTokenizer
    token = os.getenv("HUGGINGFACE_HUB_TOKEN") or os.getenv("HF_TOKEN")

    tok = AutoTokenizer.from_pretrained(model_id, use_fast=True, token=token)
    mdl = AutoModelForCausalLM.from_pretrained(
        model_id,
        device_map="auto",
        torch_dtype="auto",
        token=token,
    )
    mdl.eval()
    return tok, mdl


if _cache_resource:
    @_cache_resource(show_spinner=False)
    def _get_model_and_tokenizer(model_id: str):
        return _load_model_tok(model_id)
else:
    @lru_cache(maxsize=1)
    def _get_model_and_tokenizer(model_id: str):
        return _load_model_tok(model_id)


def _call_transformers(prompt: str, attachments: Sequence[Attachment]) -> str:
    if attachments:
        raise RuntimeError("MODEL_PROVIDER=transformers cannot read attached reports")

    import torch

    model_id = os.getenv("MODEL_ID", "").strip()
    if not model_id:
        raise RuntimeError("MODEL_PROVIDER=transformers requires MODEL_ID in .env")
    max_new_tokens = int(os.getenv("MAX_NEW_TOKENS", "1200"))

    tokenizer, model = _get_model_and_tokenizer(model_id)

    user_prompt = prompt.strip() + "\n\nReturn ONLY one valid JSON object with keys: " + ", ".join(FIELD_DESCRIPTIONS)
    if getattr(tokenizer, "chat_template", None):
        prompt_text = tokenizer.apply_chat_template(
            [{"role": "user", "content": user_prompt}], tokenize=False, add_generation_prompt=True
        )
    else:
        prompt_text = user_prompt

    inputs = tokenizer(prompt_text, return_tensors="pt", add_special_tokens=True)
    device = next(model.parameters()).device
    inputs = {k: v.to(device) for k, v in inputs.items()}
    input_len = inputs["input_ids"].shape[1]

    with torch.inference_mode():
        out = model.generate(
            **inputs,
            max_new_tokens=max_new_tokens,
            do_sample=False,
            pad_token_id=tokenizer.eos_token_id,
            eos_token_id=tokenizer.eos_token_id,
            max_time=120,
        )

    # Decode ONLY generated tokens (not the prompt)
    return tokenizer.decode(out[0][input_len:], skip_special_tokens=True).strip()


def _call_provider(provider: str, prompt: str, submission: Submission) -> str:
    attachments = submission_attachments(submission)
    if provider == "stub":
        return _call_stub(prompt, attachments, ordered_treatments(submission.treatments))
    if provider == "gemini":
        return _call_gemini(prompt, attachments)
    if provider == "transformers":
        return _call_transformers(prompt, attachments)
    raise RuntimeError(f"Unknown MODEL_PROVIDER: {provider}")


def generate_prescription(submission: Submission) -> Tuple[PrescriptionResult, str]:
    """
    Returns (result, raw_model_text).
    One call per submission, never retried; every failure surfaces as ServiceError.
    """
    provider = model_provider()
    prompt, _schema = build_prompt(submission)

    if os.getenv("SAVE_LAST_PROMPT", "0") == "1":
        try:
            LAST_PROMPT_PATH.write_text(prompt, encoding="utf-8")
        except OSError as write_err:
            logger.warning("Could not save prompt to %s: %s", LAST_PROMPT_PATH, write_err)

    logger.info(
        "Requesting prescription: provider=%s treatments=%d attachments=%d",
        provider, len(submission.treatments), len(submission_attachments(submission)),
    )
    try:
        raw = _call_provider(provider, prompt, submission)
    except Exception as e:
        logger.exception("Error generating prescription")
        raise ServiceError() from e

    try:
        return parse_prescription(raw), raw
    except ParseError as e:
        logger.error("Reply broke the response contract: %s", e.detail)
        # Save RAW for debugging
        try:
            LAST_RAW_PATH.write_text(raw or "", encoding="utf-8", errors="ignore")
        except OSError as write_err:
            logger.warning("Could not save raw reply to %s: %s", LAST_RAW_PATH, write_err)
        raise
