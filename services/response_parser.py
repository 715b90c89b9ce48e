"""
Turns raw model text into Python values.

Model output is never trusted: every helper here either returns a validated
value or signals failure in a way the caller converts into a default.
"""
import copy
import json
import re
from typing import Any, Optional

from pydantic import ValidationError

from logger import get_logger
from models import AnswerKeyEntry, QuizQuestion, TrueFlashcard
from services.errors import MalformedResponseError

log = get_logger(__name__)

_OPEN_FENCE = re.compile(r"^```[A-Za-z0-9_-]*")


def strip_code_fences(text: Optional[str]) -> str:
    if not text:
        return ""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPEN_FENCE.sub("", cleaned, count=1)
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_json(text: Optional[str]) -> Any:
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise MalformedResponseError("empty model response")
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError) as e:
        raise MalformedResponseError(f"invalid JSON: {e}") from e


def parse_or_default(text: Optional[str], default: Any) -> Any:
    """Parse model output, returning a copy of `default` on any failure."""
    try:
        return parse_json(text)
    except MalformedResponseError as e:
        log.warning("Falling back to default for malformed response: %s", e)
        return copy.deepcopy(default)


def unwrap_list(payload: Any, key: str) -> list:
    """
    Accept either a bare JSON list or an object holding the list under `key`.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    raise MalformedResponseError(f"expected a list under '{key}', got {type(payload).__name__}")


# ---------- field normalizers ----------

def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_quiz_question(raw: Any) -> Optional[QuizQuestion]:
    if not isinstance(raw, dict):
        return None
    options = raw.get("options")
    if not isinstance(options, list):
        options = []
    index = raw.get("correctAnswerIndex", raw.get("correct_answer_index"))
    # bool is an int subclass; a stray true/false is not an answer index
    if isinstance(index, bool) or not isinstance(index, int):
        index = None
    try:
        return QuizQuestion(
            question=_text(raw.get("question")),
            options=[str(o) for o in options],
            correct_answer_index=index,
            explanation=_text(raw.get("explanation")),
            media_url=_text(raw.get("mediaUrl", raw.get("media_url"))) or None,
        )
    except ValidationError as e:
        log.debug("Dropping invalid quiz question: %s", e)
        return None


def normalize_answer_key_entry(raw: Any) -> Optional[AnswerKeyEntry]:
    if not isinstance(raw, dict):
        return None
    identifier = raw.get("questionIdentifier", raw.get("identifier"))
    letter = raw.get("correctOptionLetter", raw.get("option"))
    explanation = raw.get("explanation")
    return AnswerKeyEntry(
        identifier=re.sub(r"[^0-9]", "", str(identifier)) if identifier is not None else "",
        option=_text(letter).upper(),
        explanation=explanation if isinstance(explanation, str) else "",
    )


def normalize_flashcard(raw: Any) -> Optional[TrueFlashcard]:
    if not isinstance(raw, dict):
        return None
    try:
        return TrueFlashcard(
            question=_text(raw.get("question")),
            answer=_text(raw.get("answer")),
            tag=_text(raw.get("tag")),
            mnemonic=_text(raw.get("mnemonic")) or None,
        )
    except ValidationError as e:
        log.debug("Dropping invalid flashcard: %s", e)
        return None
