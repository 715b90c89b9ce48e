"""
One-shot study helpers: each makes a single model call over a bounded slice
of the document and falls back to a fixed reply if the call or its output
goes wrong. Missing credentials are not a fallback case and propagate.
"""
import json
from typing import List, Optional, Sequence

from logger import get_logger
from models import AnswerKeyEntry, DocumentAnalysis, GradeResult, QuizQuestion, TrueFlashcard
from prompts import (
    ANALYSIS_PROMPT_TEMPLATE,
    ANALYSIS_SCHEMA,
    ANSWER_PROMPT_TEMPLATE,
    FLASHCARDS_PROMPT_TEMPLATE,
    FLASHCARDS_SCHEMA,
    HINT_PROMPT_TEMPLATE,
    INSIGHTS_PROMPT_TEMPLATE,
    QUESTIONS_SUMMARY_PROMPT_TEMPLATE,
    REFINE_FLASHCARD_PROMPT_TEMPLATE,
    SIMILAR_QUESTION_PROMPT_TEMPLATE,
    SIMILAR_QUESTION_SCHEMA,
    SUMMARY_PROMPT_TEMPLATE,
    TRANSCRIBE_PROMPT,
)
from services.ai_service import AIService
from services.errors import MalformedResponseError, RemoteCallError
from services.response_parser import (
    normalize_flashcard,
    normalize_quiz_question,
    parse_json,
    parse_or_default,
    unwrap_list,
)

log = get_logger(__name__)

ANALYSIS_CONTEXT_CHARS = 30000
ANSWER_CONTEXT_CHARS = 50000
SUMMARY_CONTEXT_CHARS = 40000
FLASHCARD_CONTEXT_CHARS = 40000

DEFAULT_ANALYSIS_SUMMARY = "Hi! I've read your document. What would you like to know?"
DEFAULT_SUGGESTED_QUESTIONS = [
    "What is the main topic?",
    "What are the key points?",
    "Write a summary for me.",
]
FALLBACK_ANALYSIS = DocumentAnalysis(
    summary="Hi! I've processed your file and I'm ready to answer your questions.",
    suggested_questions=["What is this file about?", "Summarize it.", "What are the main topics?"],
)

OPTION_LETTERS = "ABCDEFGHIJ"


class StudyService:
    def __init__(self, ai: AIService):
        self.ai = ai

    def _ask(self, prompt: str, fallback: str, **kwargs) -> str:
        try:
            text = self.ai.invoke(prompt, **kwargs)
        except RemoteCallError as e:
            log.error("Model call failed, using fallback reply: %s", e)
            return fallback
        return text.strip() or fallback

    def analyze_document(self, text: str) -> DocumentAnalysis:
        prompt = ANALYSIS_PROMPT_TEMPLATE.format(document=text[:ANALYSIS_CONTEXT_CHARS])
        try:
            raw = self.ai.invoke(prompt, ANALYSIS_SCHEMA)
        except RemoteCallError as e:
            log.error("Initial document analysis failed: %s", e)
            return FALLBACK_ANALYSIS.model_copy(deep=True)
        data = parse_or_default(raw, None)
        if not isinstance(data, dict):
            log.warning("Analysis response was not an object; using fallback")
            return FALLBACK_ANALYSIS.model_copy(deep=True)

        summary = data.get("summary")
        questions = data.get("questions")
        if isinstance(questions, list):
            questions = [q.strip() for q in questions if isinstance(q, str) and q.strip()]
        return DocumentAnalysis(
            summary=summary.strip() if isinstance(summary, str) and summary.strip() else DEFAULT_ANALYSIS_SUMMARY,
            suggested_questions=questions or list(DEFAULT_SUGGESTED_QUESTIONS),
        )

    def answer_question(self, text: str, question: str) -> str:
        prompt = ANSWER_PROMPT_TEMPLATE.format(document=text[:ANSWER_CONTEXT_CHARS], question=question)
        return self._ask(
            prompt,
            "Sorry, I ran into an error while processing your request. Check your connection or API key.",
        )

    def generate_summary(self, text: str) -> str:
        prompt = SUMMARY_PROMPT_TEMPLATE.format(document=text[:SUMMARY_CONTEXT_CHARS])
        return self._ask(prompt, "Could not generate the summary.")

    def summarize_questions(self, context: str) -> str:
        prompt = QUESTIONS_SUMMARY_PROMPT_TEMPLATE.format(context=context[:ANALYSIS_CONTEXT_CHARS])
        return self._ask(prompt, "Could not generate the summary.")

    def extract_flashcards(self, text: str) -> List[TrueFlashcard]:
        prompt = FLASHCARDS_PROMPT_TEMPLATE.format(document=text[:FLASHCARD_CONTEXT_CHARS])
        try:
            entries = unwrap_list(parse_json(self.ai.invoke(prompt, FLASHCARDS_SCHEMA)), "flashcards")
        except (RemoteCallError, MalformedResponseError) as e:
            log.error("Flashcard extraction failed: %s", e)
            return []
        cards = [normalize_flashcard(e) for e in entries]
        return [c for c in cards if c is not None and c.question and c.answer]

    def refine_flashcard_text(self, text: str, kind: str = "question") -> str:
        prompt = REFINE_FLASHCARD_PROMPT_TEMPLATE.format(kind=kind, text=text)
        return self._ask(prompt, text)

    def get_hint(self, question: str, options: Sequence[str] = ()) -> str:
        prompt = HINT_PROMPT_TEMPLATE.format(
            question=question,
            options="\n".join(f"{OPTION_LETTERS[i]}) {o}" for i, o in enumerate(options[: len(OPTION_LETTERS)])),
        )
        return self._ask(prompt, "Hint unavailable.")

    def generate_similar_question(self, original: QuizQuestion) -> Optional[QuizQuestion]:
        prompt = SIMILAR_QUESTION_PROMPT_TEMPLATE.format(
            question=json.dumps(original.model_dump(), ensure_ascii=False)
        )
        try:
            data = parse_json(self.ai.invoke(prompt, SIMILAR_QUESTION_SCHEMA))
        except (RemoteCallError, MalformedResponseError) as e:
            log.error("Similar question generation failed: %s", e)
            return None
        q = normalize_quiz_question(data)
        if q is None or not q.question or len(q.options) < 2:
            return None
        return q

    def generate_study_insights(self, analytics: dict) -> str:
        prompt = INSIGHTS_PROMPT_TEMPLATE.format(analytics=json.dumps(analytics, ensure_ascii=False, default=str))
        return self._ask(prompt, "Keep studying.")

    def transcribe_image(self, data: bytes, mime_type: str) -> str:
        return self._ask(TRANSCRIBE_PROMPT, "Could not transcribe the image.", images=[(data, mime_type)])


def apply_answer_key(questions: Sequence[QuizQuestion], entries: Sequence[AnswerKeyEntry]) -> GradeResult:
    """
    Sets correct answers from an answer key. Identifier "n" refers to the n-th
    question (1-based) and option "A" to the first choice. Entries pointing
    outside the quiz or its options are reported as unmatched.
    """
    updated = [q.model_copy(deep=True) for q in questions]
    matched, unmatched = [], []
    for entry in entries:
        number = int(entry.identifier) if entry.identifier.isdigit() else 0
        letter_idx = OPTION_LETTERS.find(entry.option) if len(entry.option) == 1 else -1
        if not 1 <= number <= len(updated) or letter_idx < 0 or letter_idx >= len(updated[number - 1].options):
            unmatched.append(entry.identifier)
            continue
        q = updated[number - 1]
        q.correct_answer_index = letter_idx
        if entry.explanation and not q.explanation:
            q.explanation = entry.explanation
        matched.append(entry.identifier)
    return GradeResult(questions=updated, matched=matched, unmatched=unmatched)
