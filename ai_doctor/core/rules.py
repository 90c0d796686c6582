from typing import FrozenSet, Iterable, List, Optional


HIKMAT = "Hikmat (Traditional Herbal)"
HOMEOPATHY = "Homeopathy"
ALLOPATHY = "Allopathy (Specialist Doctors)"

# display order on the form
MODALITIES = (HIKMAT, HOMEOPATHY, ALLOPATHY)

SUPPORTED_LANGUAGES = [
    "English",
    "Mandarin Chinese",
    "Hindi",
    "Spanish",
    "French",
    "Arabic",
    "Bengali",
    "Portuguese",
    "Russian",
    "Urdu",
]

RELIGIOUS_TREATMENTS = {
    "Islam": "Quran & Asma-ul-Husna",
    "Christianity": "Biblical Healing & Prayer",
    "Hinduism": "Ayurveda & Mantras",
    "Buddhism": "Meditation & Chanting",
    "Sikhism": "Gurbani Recitation & Seva",
    "Judaism": "Torah Study & Prayer",
    "Baháʼí Faith": "Writings of Baháʼu'lláh & Prayer",
    "Chinese Folk Religion": "Ancestral Veneration & Herbal Remedies",
    "Spiritism": "Spiritual Counsel & Healing",
    "Ethnic/Indigenous Religions": "Traditional Rituals & Natural Healing",
}

RELIGIONS = list(RELIGIOUS_TREATMENTS) + ["Other"]

ISLAMIC_TREATMENT = RELIGIOUS_TREATMENTS["Islam"]

_RELIGIOUS_INSTRUCTIONS = {
    "Islam": "provide relevant Quranic verses or duas, and recommend 'tasbeeh' (recitation) of "
             "Asma-ul-Husna relevant to healing. Use bullet points. If the target language is Urdu, "
             "this MUST be in Urdu script.",
    "Christianity": "provide relevant Bible verses and suggest prayers. Use bullet points.",
    "Hinduism": "provide relevant Ayurvedic remedies and suggest healing mantras. Use bullet points.",
    "Buddhism": "suggest meditation techniques and healing chants or sutras. Use bullet points.",
    "Sikhism": "recommend reciting Shabads from the Gurbani and suggest 'Seva' (selfless service). "
               "Use bullet points.",
    "Judaism": "provide relevant passages from the Torah or Psalms and suggest prayers. Use bullet points.",
    "Baháʼí Faith": "provide excerpts from the Writings of Baháʼu'lláh and suggest prayers for health. "
                    "Use bullet points.",
    "Chinese Folk Religion": "suggest practices like ancestral offerings and common herbal remedies. "
                             "Use bullet points.",
    "Spiritism": "provide spiritual counsel and suggest practices like positive affirmations. "
                 "Use bullet points.",
    "Ethnic/Indigenous Religions": "suggest connecting with nature and general traditional rituals. "
                                   "Use bullet points.",
}

# label -> full instruction line
RELIGIOUS_TREATMENT_PROMPTS = {
    RELIGIOUS_TREATMENTS[religion]: f'- For "{RELIGIOUS_TREATMENTS[religion]}", {text}'
    for religion, text in _RELIGIOUS_INSTRUCTIONS.items()
}


def treatment_for_religion(religion: Optional[str]) -> Optional[str]:
    """Religious label implied by a religion, or None ("Other", blank, unknown)."""
    if not religion:
        return None
    return RELIGIOUS_TREATMENTS.get(religion)


def instruction_for_treatment(label: str) -> Optional[str]:
    # modalities are formatted by fixed rules in the prompt builder
    return RELIGIOUS_TREATMENT_PROMPTS.get(label)


def available_treatments(religion: Optional[str]) -> List[str]:
    options = list(MODALITIES)
    label = treatment_for_religion(religion)
    if label:
        options.append(label)
    return options


def apply_religion_change(
    old_religion: Optional[str],
    new_religion: Optional[str],
    selection: Iterable[str],
) -> FrozenSet[str]:
    """
    Selection after the patient's religion changes.
    Only the label implied by the old religion can be dropped; explicitly
    chosen modalities always survive.
    """
    current = frozenset(selection)
    old_label = treatment_for_religion(old_religion)
    if old_label is None or old_label == treatment_for_religion(new_religion):
        return current
    return current - {old_label}


def toggle_treatment(selection: Iterable[str], label: str) -> FrozenSet[str]:
    current = frozenset(selection)
    if label in current:
        return current - {label}
    return current | {label}


def ordered_treatments(selection: Iterable[str]) -> List[str]:
    """Modalities in form order, then religious labels (alphabetical)."""
    chosen = set(selection)
    ordered = [m for m in MODALITIES if m in chosen]
    ordered.extend(sorted(chosen - set(MODALITIES)))
    return ordered
