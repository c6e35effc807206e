# backend/smartpharmacy/services/chat.py
import logging
from typing import List, Optional, Tuple

from smartpharmacy import config
from smartpharmacy.errors import ApiError
from smartpharmacy.schemas import ChatResponse, PatientContext
from smartpharmacy.services.ai_client import AIProviderError
from smartpharmacy.services.normalize import contains_any

log = logging.getLogger("chat")

SYSTEM_PROMPT = "\n".join([
    "You are a virtual pharmacist assistant. Do not diagnose and do not give personal doses.",
    "Give safe general information: usage, interactions, allergies, storage, lifestyle tips.",
    "If there are serious symptoms or a suspected severe allergy, direct the user to a doctor or emergency care immediately.",
    "Answer briefly, in the user's language.",
])

# (tag, keywords, reply)
FALLBACK_RULES: List[Tuple[str, List[str], str]] = [
    ("dose", ["جرعة", "dose", "dosage", "كم مل", "كام قرص", "كام حبة"],
     "I can't set a personal dose here. Tell me the medicine name, its strength and your age/weight and "
     "I can explain the usual leaflet doses and the important warnings. Please confirm with a pharmacist or doctor."),
    ("caffeine", ["قهوة", "coffee", "caffeine", "كافيين"],
     "In general, coffee can irritate the stomach together with some painkillers (like ibuprofen) and can add to "
     "palpitations with cold medicines that contain a decongestant. Tell me the medicine or active ingredient for a precise answer."),
    ("fasting", ["صيام", "رمضان", "افطر", "سحور", "fasting", "ramadan"],
     "While fasting, doses are split between iftar and suhoor depending on how many times a day they are taken. "
     "Some medicines need food, others an empty stomach. Tell me the medicine and how often you take it."),
    ("antibiotic", ["مضاد حيوي", "مضاد", "antibiotic", "توقف", "أوقف"],
     "Antibiotics are usually taken for the full duration the doctor prescribed, even if you feel better, unless a severe "
     "allergy appears (strong rash, shortness of breath, swelling). In that case stop and go to emergency care."),
    ("side_effects", ["دوخة", "دوار", "غثيان", "مغص", "طفح", "حساسية", "dizzy", "nausea", "rash", "side effect"],
     "Side effects depend on the medicine. Shortness of breath, swelling of the face or lips, or fainting are emergencies. "
     "Otherwise tell me the medicine and when the symptoms started so I can help you assess them safely."),
]

DEFAULT_REPLY = ("Tell me the medicine name or send a photo of the prescription and I can help with alternatives, "
                 "allergy warnings and possible interactions.")


def profile_lines(ctx: Optional[PatientContext]) -> List[str]:
    if not ctx:
        return []
    parts = []
    if ctx.age is not None:
        parts.append(f"Age: {ctx.age}")
    if ctx.sex:
        parts.append(f"Sex: {ctx.sex}")
    if ctx.weight_kg is not None:
        parts.append(f"Weight: {ctx.weight_kg:g} kg")
    if ctx.allergies:
        parts.append(f"Allergies: {', '.join(ctx.allergies)}")
    if ctx.conditions:
        parts.append(f"Conditions: {', '.join(ctx.conditions)}")
    if ctx.current_meds:
        parts.append(f"Current medicines: {', '.join(ctx.current_meds)}")
    return parts


def build_prompt(message: str, ctx: Optional[PatientContext] = None) -> str:
    prompt = f"{SYSTEM_PROMPT}\n\nUser question: {message}"
    lines = profile_lines(ctx)
    if lines:
        prompt += "\n\nUser profile:\n" + "\n".join(lines)
    return prompt


def fallback_answer(message: str, ctx: Optional[PatientContext] = None) -> ChatResponse:
    lines = profile_lines(ctx)
    suffix = f"\n\nYour profile: {' • '.join(lines)}" if lines else ""
    for tag, keywords, reply in FALLBACK_RULES:
        if contains_any(message, keywords):
            return ChatResponse(reply=reply + suffix, provider="fallback", tags=[tag])
    return ChatResponse(reply=DEFAULT_REPLY + suffix, provider="fallback", tags=[])


def answer(message: str, ctx: Optional[PatientContext] = None, provider=None,
           fallback: bool = None) -> ChatResponse:
    fallback = config.CHAT_FALLBACK if fallback is None else fallback
    try:
        if provider is None:
            raise AIProviderError("AI_NOT_CONFIGURED", "No AI provider")
        reply = provider.generate(build_prompt(message, ctx))
        return ChatResponse(reply=reply, provider="gemini")
    except Exception as e:
        code = getattr(e, "code", "AI_DOWN")
        log.warning("Chat provider unavailable (%s), fallback=%s", code, fallback)
        if fallback:
            return fallback_answer(message, ctx)
        if code in ("AI_AUTH_FAILED", "AI_NOT_CONFIGURED"):
            raise ApiError("AI provider is not configured", status=502, code=code) from e
        raise ApiError("AI temporarily unavailable", status=502, code="AI_DOWN") from e
