from typing import Any, Dict, List, Tuple

from .contract import RESPONSE_SCHEMA
from .models import PatientInfo, ReportSubmission, Submission, submission_text
from .rules import ALLOPATHY, HIKMAT, HOMEOPATHY, ISLAMIC_TREATMENT, instruction_for_treatment, ordered_treatments


REPORT_SUMMARY_HEADING = "Report Analysis Summary"
GENERAL_ADVICE_HEADING = "General Advice"

_INTRO = (
    "You are an expert AI medical advisor. Your task is to provide concise, safe, "
    "and professional recommendations."
)

_MODALITY_RULES = {
    ALLOPATHY: (
        f"- For **{ALLOPATHY}**, act as a board-certified specialist for the specific condition. "
        "Prescribe a comprehensive, high-quality, and modern treatment plan. Include primary medications, "
        "any necessary supportive therapies (e.g., vitamins, antacids), and suggest relevant diagnostic tests "
        "if needed. Use the format: `Medicine Name, Dosage (e.g., 500mg, 1+1+1), Duration (e.g., 5 days)`. "
        "List each item on a new bullet point (*). Ensure the prescription is evidence-based and professional."
    ),
    HOMEOPATHY: (
        f"- For **{HOMEOPATHY}**, use this format: `Medicine Name Potency, Dosage (e.g., 5+5+5 drops), "
        "Duration (e.g., 7 days)`. New bullet point (*) per medicine. No paragraphs."
    ),
    HIKMAT: "- For **Hikmat**, use simple bullet points with brief descriptions.",
}


def _language_rule(language: str) -> List[str]:
    return [
        "**PRIMARY LANGUAGE RULE:**",
        f"- You MUST generate the ENTIRE response in **{language}**. This includes all headings, titles, "
        "medical terms, treatment plans, analysis, and advice. Translate everything accurately and naturally.",
    ]


def _formatting_rules(treatments: List[str], language: str) -> List[str]:
    lines = ["**FORMATTING RULES:**"]
    lines.extend(_MODALITY_RULES[m] for m in (ALLOPATHY, HOMEOPATHY, HIKMAT))
    for label in treatments:
        fragment = instruction_for_treatment(label)
        if fragment:
            lines.append(fragment)
    if ISLAMIC_TREATMENT in treatments and language == "Urdu":
        lines.append(
            f'- OVERRIDE: All "{ISLAMIC_TREATMENT}" content (verses, duas, Asma-ul-Husna) MUST be written '
            "in Urdu script, regardless of any transliteration default."
        )
    return lines


def _patient_block(patient: PatientInfo) -> List[str]:
    lines = [
        "**Patient Information:**",
        f"- Name: {patient.name}",
        f"- Age: {patient.age}",
        f"- District: {patient.district}",
        f"- Religion: {patient.religion}",
        f"- Preferred Language: {patient.language}",
    ]
    if patient.cell:
        lines.append(f"- Cell: {patient.cell}")
    return lines


def _report_task(language: str, treatments: str) -> List[str]:
    return [
        "**Task:**",
        f"Based on the provided information and reports, perform these tasks in {language}:",
        "1.  **Create Illness Title:** Create a short title for the issue (max 5 words).",
        f'2.  **Analyze Reports:** Create a level 2 heading "{REPORT_SUMMARY_HEADING}" (translated to {language}). '
        "List **ONLY abnormal findings** in bullet points. Do not mention normal results.",
        f"3.  **Provide Treatment Opinion:** Provide plans for the selected methodologies: **{treatments}**. "
        "Base these on report findings and user comments, following all rules.",
        f'4.  **Provide General Advice:** Create a final section with a level 2 heading "{GENERAL_ADVICE_HEADING}" '
        f"(translated to {language}). Provide a bulleted list of health advice and precautions.",
        "",
        "**Response Structure:**",
        f"- The 'prescriptionContent' value MUST start with the '{REPORT_SUMMARY_HEADING}' section.",
        f"- The 'advice' value MUST contain the '{GENERAL_ADVICE_HEADING}' section.",
    ]


def _text_task(language: str, treatments: str) -> List[str]:
    return [
        "**Task:**",
        f"Based on the provided information, perform these tasks in {language}:",
        "1.  **Create Illness Title:** Create a short title for the illness (max 4 words).",
        f"2.  **Provide Treatment Plans:** Provide plans for the selected methodologies: **{treatments}**. "
        "Follow all rules.",
        f'3.  **Provide General Advice:** Create a final section with a level 2 heading "{GENERAL_ADVICE_HEADING}" '
        f"(translated to {language}). Provide a bulleted list of health advice and precautions.",
        "",
        "**Response Structure:**",
        "- The 'prescriptionContent' value MUST contain a level 2 heading for each treatment type "
        f'(e.g., "Homeopathy Prescription"), translated to {language}.',
        f"- The 'advice' value MUST contain the '{GENERAL_ADVICE_HEADING}' section.",
    ]


def build_prompt(submission: Submission) -> Tuple[str, Dict[str, Any]]:
    """
    Compose the instruction document for one submission.

    Returns the prompt text and the JSON schema the reply must satisfy.
    Inputs are assumed validated by the intake controller.
    """
    patient = submission.patient
    language = patient.language
    treatments = ordered_treatments(submission.treatments)
    joined = ", ".join(treatments)
    has_reports = isinstance(submission, ReportSubmission) and bool(submission.attachments)

    sections = [
        [_INTRO],
        _language_rule(language),
        _formatting_rules(treatments, language),
        _patient_block(patient),
    ]
    body = submission_text(submission)
    if has_reports:
        sections.append(["**User Comments on Reports:**", f'"{body}"'])
        sections.append(_report_task(language, joined))
    else:
        sections.append(["**Illness Description:**", f'"{body}"'])
        sections.append(_text_task(language, joined))

    prompt = "\n\n".join("\n".join(lines) for lines in sections)
    return prompt, RESPONSE_SCHEMA
