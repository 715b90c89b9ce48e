import json

import pytest

from models import QuizQuestion
from services.errors import ConfigurationError, RemoteCallError, TerminalExtractionFailure
from services.extraction_service import (
    ChunkConfig,
    ExtractionService,
    accept_quiz_question,
)


def quiz_reply(*questions, fenced=False):
    body = json.dumps({"questions": list(questions)})
    return f"```json\n{body}\n```" if fenced else body


def q(text, options=("Option one", "Option two"), **extra):
    return {"question": text, "options": list(options), **extra}


LONG_A = "Which vitamin deficiency causes scurvy?"
LONG_B = "Which enzyme is inhibited by aspirin?"


class TestAcceptanceFilter:
    def test_short_question_with_one_option_rejected(self):
        assert not accept_quiz_question(QuizQuestion(question="x" * 10, options=["only"]))

    def test_twenty_chars_two_options_accepted(self):
        assert accept_quiz_question(QuizQuestion(question="x" * 20, options=["a", "b"]))

    def test_long_question_single_option_rejected(self):
        assert not accept_quiz_question(QuizQuestion(question="x" * 40, options=["a"]))


class TestExtractQuestions:
    def test_single_chunk(self, fake_ai):
        ai = fake_ai(quiz_reply(q(LONG_A, correctAnswerIndex=2), q("too short")))
        result = ExtractionService(ai).extract_questions("some exam text")

        assert [x.question for x in result] == [LONG_A]
        assert result[0].correct_answer_index == 2
        assert len(ai.calls) == 1
        assert "some exam text" in ai.calls[0]["prompt"]
        assert ai.calls[0]["schema"]["required"] == ["questions"]

    def test_chunks_processed_in_order_with_last_write_wins(self, fake_ai):
        ai = fake_ai(
            quiz_reply(q(LONG_A, explanation="first"), q(LONG_B)),
            quiz_reply(q("  " + LONG_A + " ", explanation="second")),
        )
        result = ExtractionService(ai).extract_questions("abcdefghij" * 2, ChunkConfig(10, 0))

        assert [x.question for x in result] == [LONG_A, LONG_B]
        assert result[0].explanation == "second"
        assert "abcdefghij" in ai.calls[0]["prompt"]

    def test_failed_chunk_is_skipped(self, fake_ai):
        ai = fake_ai(RemoteCallError("quota"), quiz_reply(q(LONG_B), fenced=True))
        result = ExtractionService(ai).extract_questions("x" * 20, ChunkConfig(10, 0))
        assert [x.question for x in result] == [LONG_B]

    def test_malformed_chunk_is_skipped(self, fake_ai):
        ai = fake_ai("Sorry, I can't do that", quiz_reply(q(LONG_A)))
        result = ExtractionService(ai).extract_questions("x" * 20, ChunkConfig(10, 0))
        assert [x.question for x in result] == [LONG_A]

    def test_deeply_nested_chunk_is_skipped(self, fake_ai):
        ai = fake_ai("[" * 100000, quiz_reply(q(LONG_B)))
        result = ExtractionService(ai).extract_questions("x" * 20, ChunkConfig(10, 0))
        assert [x.question for x in result] == [LONG_B]

    def test_all_chunks_failing_is_terminal(self, fake_ai):
        ai = fake_ai(RemoteCallError("down"), RemoteCallError("down"), RemoteCallError("down"))
        with pytest.raises(TerminalExtractionFailure) as exc:
            ExtractionService(ai).extract_questions("x" * 25, ChunkConfig(10, 0))
        assert exc.value.chunk_count == 3

    def test_zero_questions_is_not_a_failure(self, fake_ai):
        ai = fake_ai(quiz_reply(), "not json at all")
        assert ExtractionService(ai).extract_questions("x" * 20, ChunkConfig(10, 0)) == []

    def test_configuration_error_propagates(self, fake_ai):
        ai = fake_ai(ConfigurationError("no key"))
        with pytest.raises(ConfigurationError):
            ExtractionService(ai).extract_questions("text")

    def test_bare_list_reply_is_accepted(self, fake_ai):
        ai = fake_ai(json.dumps([q(LONG_A)]))
        assert len(ExtractionService(ai).extract_questions("text")) == 1


class TestProcessAnswerKey:
    def test_normalizes_and_dedupes_by_identifier(self, fake_ai):
        first = {"answers": [
            {"questionIdentifier": "Q1", "correctOptionLetter": "a"},
            {"questionIdentifier": "2)", "correctOptionLetter": "b", "explanation": "old"},
        ]}
        second = {"answers": [
            {"questionIdentifier": "Question 2", "correctOptionLetter": " d ", "explanation": "new"},
            {"questionIdentifier": "none", "correctOptionLetter": "c"},
        ]}
        ai = fake_ai(json.dumps(first), json.dumps(second))
        result = ExtractionService(ai).process_answer_key("k" * 30, ChunkConfig(15, 0))

        assert [(e.identifier, e.option, e.explanation) for e in result] == [
            ("1", "A", ""),
            ("2", "D", "new"),
        ]

    def test_entries_without_a_single_letter_are_dropped(self, fake_ai):
        ai = fake_ai(json.dumps({"answers": [
            {"questionIdentifier": "1", "correctOptionLetter": ""},
            {"questionIdentifier": "2", "correctOptionLetter": "AB"},
            {"questionIdentifier": "3", "correctOptionLetter": "4"},
            {"questionIdentifier": "4", "correctOptionLetter": "e"},
        ]}))
        result = ExtractionService(ai).process_answer_key("1- 2AB 3-4 4e")
        assert [(e.identifier, e.option) for e in result] == [("4", "E")]

    def test_default_chunking_has_no_overlap(self, fake_ai):
        ai = fake_ai(json.dumps({"answers": []}), json.dumps({"answers": []}))
        ExtractionService(ai).process_answer_key("k" * 15001)
        assert len(ai.calls) == 2


class TestGenerateExplanations:
    def questions(self, n):
        return [QuizQuestion(question=f"Question number {i}", options=["a", "b"], explanation=f"orig {i}")
                for i in range(n)]

    def test_maps_relative_ids_back_to_positions(self, fake_ai):
        ai = fake_ai(
            json.dumps({"explanations": [{"id": 1, "explanation": "E1"}, {"id": 0, "explanation": "E0"}]}),
            json.dumps({"explanations": [{"id": 0, "explanation": "E2"}]}),
        )
        original = self.questions(3)
        result = ExtractionService(ai).generate_explanations(original, batch_size=2)

        assert [x.explanation for x in result] == ["E0", "E1", "E2"]
        assert [x.explanation for x in original] == ["orig 0", "orig 1", "orig 2"]
        sent = ai.calls[1]["prompt"]
        assert '"id": 0' in sent and "Question number 2" in sent
        assert '"answer_index": "unknown"' in sent

    def test_failed_batch_leaves_items_unchanged(self, fake_ai):
        ai = fake_ai(
            RemoteCallError("timeout"),
            json.dumps({"explanations": [{"id": 0, "explanation": "new"}]}),
        )
        result = ExtractionService(ai).generate_explanations(self.questions(6), batch_size=5)

        assert len(result) == 6
        assert [x.explanation for x in result[:5]] == [f"orig {i}" for i in range(5)]
        assert result[5].explanation == "new"

    def test_malformed_batch_and_bad_ids_are_ignored(self, fake_ai):
        ai = fake_ai(
            "garbage",
            json.dumps({"explanations": [{"id": 7, "explanation": "x"}, {"id": "0", "explanation": "y"}, "z"]}),
        )
        result = ExtractionService(ai).generate_explanations(self.questions(4), batch_size=2)
        assert [x.explanation for x in result] == ["orig 0", "orig 1", "orig 2", "orig 3"]

    def test_returned_questions_do_not_share_options(self, fake_ai):
        ai = fake_ai(json.dumps({"explanations": []}))
        original = self.questions(1)
        result = ExtractionService(ai).generate_explanations(original)
        result[0].options.append("c")
        assert original[0].options == ["a", "b"]

    def test_known_answer_index_is_sent(self, fake_ai):
        ai = fake_ai(json.dumps({"explanations": []}))
        qs = [QuizQuestion(question="Question with key", options=["a", "b"], correct_answer_index=0)]
        ExtractionService(ai).generate_explanations(qs)
        assert '"answer_index": 0' in ai.calls[0]["prompt"]

    def test_empty_input(self, fake_ai):
        ai = fake_ai()
        assert ExtractionService(ai).generate_explanations([]) == []
        assert ai.calls == []
