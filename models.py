from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class QuizQuestion(BaseModel):
    question: str
    options: List[str]
    correct_answer_index: Optional[int] = None
    explanation: str = ""
    media_url: Optional[str] = None

    @field_validator("question")
    @classmethod
    def _strip_question(cls, v: str) -> str:
        return v.strip()

    @property
    def key(self) -> str:
        return self.question


class TrueFlashcard(BaseModel):
    question: str
    answer: str
    tag: str = ""
    mnemonic: Optional[str] = None


class AnswerKeyEntry(BaseModel):
    identifier: str
    option: str
    explanation: Optional[str] = None

    @property
    def key(self) -> str:
        return self.identifier


class DocumentAnalysis(BaseModel):
    summary: str
    suggested_questions: List[str] = Field(default_factory=list)


class GradeResult(BaseModel):
    """Outcome of applying an answer key to a list of quiz questions."""

    questions: List[QuizQuestion]
    matched: List[str] = Field(default_factory=list)
    unmatched: List[str] = Field(default_factory=list)
