import json
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

import config
from logger import get_logger
from models import AnswerKeyEntry, QuizQuestion
from prompts import (
    ANSWER_KEY_PROMPT_TEMPLATE,
    ANSWER_KEY_SCHEMA,
    EXPLANATIONS_PROMPT_TEMPLATE,
    EXPLANATIONS_SCHEMA,
    QUIZ_EXTRACTION_PROMPT_TEMPLATE,
    QUIZ_EXTRACTION_SCHEMA,
)
from services.ai_service import AIService
from services.errors import MalformedResponseError, RemoteCallError, TerminalExtractionFailure
from services.response_parser import (
    normalize_answer_key_entry,
    normalize_quiz_question,
    parse_json,
    unwrap_list,
)
from utils import batched, chunk_text, dedupe_last_wins

log = get_logger(__name__)

MIN_QUESTION_LENGTH = 15
MIN_OPTIONS = 2


@dataclass(frozen=True)
class ChunkConfig:
    chunk_size: int
    overlap: int = 0


@dataclass(frozen=True)
class ExtractionTask:
    """Everything that differs between one chunked extraction and another."""

    name: str
    prompt_template: str
    schema: dict
    list_key: str
    normalize: Callable[[Any], Optional[Any]]
    accept: Callable[[Any], bool]
    key: Callable[[Any], str]


def accept_quiz_question(q: QuizQuestion) -> bool:
    return len(q.question) > MIN_QUESTION_LENGTH and len(q.options) >= MIN_OPTIONS


def accept_answer_key_entry(entry: AnswerKeyEntry) -> bool:
    return bool(entry.identifier) and len(entry.option) == 1 and entry.option.isalpha()


QUIZ_TASK = ExtractionTask(
    name="quiz extraction",
    prompt_template=QUIZ_EXTRACTION_PROMPT_TEMPLATE,
    schema=QUIZ_EXTRACTION_SCHEMA,
    list_key="questions",
    normalize=normalize_quiz_question,
    accept=accept_quiz_question,
    key=lambda q: q.key,
)

ANSWER_KEY_TASK = ExtractionTask(
    name="answer key extraction",
    prompt_template=ANSWER_KEY_PROMPT_TEMPLATE,
    schema=ANSWER_KEY_SCHEMA,
    list_key="answers",
    normalize=normalize_answer_key_entry,
    accept=accept_answer_key_entry,
    key=lambda e: e.key,
)


class ExtractionService:
    def __init__(self, ai: AIService):
        self.ai = ai

    def extract(self, raw_text: str, chunk_config: ChunkConfig, task: ExtractionTask) -> list:
        """
        Runs `task` over every chunk of `raw_text` in order and merges the results.

        A chunk whose call fails or whose payload is malformed contributes nothing.
        Raises TerminalExtractionFailure only if every chunk failed at the call level;
        ConfigurationError propagates untouched.
        """
        chunks = chunk_text(raw_text, chunk_config.chunk_size, chunk_config.overlap)
        collected: List[Any] = []
        failed_calls = 0
        for n, chunk in enumerate(chunks, start=1):
            prompt = task.prompt_template.format(chunk=chunk.text)
            try:
                raw = self.ai.invoke(prompt, task.schema)
            except RemoteCallError as e:
                failed_calls += 1
                log.warning("%s: chunk %d/%d (offset %d) failed: %s",
                            task.name, n, len(chunks), chunk.offset, e)
                continue
            items = self._parse_items(raw, task)
            log.info("%s: chunk %d/%d yielded %d item(s)", task.name, n, len(chunks), len(items))
            collected.extend(items)

        if failed_calls == len(chunks):
            raise TerminalExtractionFailure(task.name, len(chunks))
        return dedupe_last_wins(collected, task.key)

    def _parse_items(self, raw: str, task: ExtractionTask) -> list:
        try:
            entries = unwrap_list(parse_json(raw), task.list_key)
        except MalformedResponseError as e:
            log.warning("%s: malformed chunk response, skipping: %s", task.name, e)
            return []
        items = []
        for entry in entries:
            item = task.normalize(entry)
            if item is not None and task.accept(item):
                items.append(item)
        return items

    def extract_questions(self, raw_text: str, chunk_config: Optional[ChunkConfig] = None) -> List[QuizQuestion]:
        chunk_config = chunk_config or ChunkConfig(config.QUIZ_CHUNK_SIZE, config.QUIZ_CHUNK_OVERLAP)
        return self.extract(raw_text, chunk_config, QUIZ_TASK)

    def process_answer_key(self, raw_text: str, chunk_config: Optional[ChunkConfig] = None) -> List[AnswerKeyEntry]:
        chunk_config = chunk_config or ChunkConfig(config.ANSWER_KEY_CHUNK_SIZE, 0)
        return self.extract(raw_text, chunk_config, ANSWER_KEY_TASK)

    def generate_explanations(
        self, questions: Sequence[QuizQuestion], batch_size: Optional[int] = None
    ) -> List[QuizQuestion]:
        """
        Fills in explanations batch by batch. Returns a new list with the same
        length and order; items of a failed batch are returned unchanged.
        """
        batch_size = batch_size or config.EXPLANATION_BATCH_SIZE
        updated = [q.model_copy(deep=True) for q in questions]
        total = (len(questions) + batch_size - 1) // batch_size
        for start, batch in batched(questions, batch_size):
            log.info("Explaining batch %d of %d", start // batch_size + 1, total)
            payload = [
                {
                    "id": idx,
                    "question": q.question,
                    "options": q.options,
                    "answer_index": q.correct_answer_index if q.correct_answer_index is not None else "unknown",
                }
                for idx, q in enumerate(batch)
            ]
            prompt = EXPLANATIONS_PROMPT_TEMPLATE.format(questions=json.dumps(payload, ensure_ascii=False))
            try:
                raw = self.ai.invoke(prompt, EXPLANATIONS_SCHEMA)
                explanations = unwrap_list(parse_json(raw), "explanations")
            except (RemoteCallError, MalformedResponseError) as e:
                log.error("Explanation batch starting at index %d failed: %s", start, e)
                continue

            for item in explanations:
                if not isinstance(item, dict):
                    continue
                rel = item.get("id")
                text = item.get("explanation")
                if isinstance(rel, bool) or not isinstance(rel, int) or not isinstance(text, str):
                    continue
                if 0 <= rel < len(batch):
                    updated[start + rel].explanation = text
        return updated
