from dotenv import load_dotenv
from flask import Flask, jsonify, request
from pydantic import ValidationError

load_dotenv()  # loads .env before config is read

from logger import get_logger
from models import AnswerKeyEntry, QuizQuestion
from services.ai_service import AIService
from services.errors import ConfigurationError, TerminalExtractionFailure
from services.extraction_service import ExtractionService
from services.study_service import StudyService, apply_answer_key

log = get_logger(__name__)

app = Flask(__name__)

ai = AIService()
extraction = ExtractionService(ai)
study = StudyService(ai)


class BadRequest(Exception):
    pass


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Expected a JSON object body")
    return data


def _require_text(data: dict, field: str = "text") -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise BadRequest(f"'{field}' must be a non-empty string")
    return value


def _questions(data: dict) -> list[QuizQuestion]:
    raw = data.get("questions")
    if not isinstance(raw, list):
        raise BadRequest("'questions' must be a list")
    return [QuizQuestion.model_validate(q) for q in raw]


@app.errorhandler(BadRequest)
def handle_bad_request(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(ValidationError)
def handle_validation_error(e):
    details = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
    return jsonify({"error": "Invalid payload", "details": details}), 400


@app.errorhandler(ConfigurationError)
def handle_configuration_error(e):
    log.error("Configuration error: %s", e)
    return jsonify({"error": f"Configuration error: {e}"}), 500


@app.errorhandler(TerminalExtractionFailure)
def handle_extraction_failure(e):
    return jsonify({"error": "Could not process the document. Every part of it failed to process; please try again."}), 502


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "model": ai.model})


# ----- Document chat -----
@app.route("/api/analyze", methods=["POST"])
def analyze():
    analysis = study.analyze_document(_require_text(_json_body()))
    return jsonify(analysis.model_dump())


@app.route("/api/ask", methods=["POST"])
def ask():
    data = _json_body()
    answer = study.answer_question(_require_text(data), _require_text(data, "question"))
    return jsonify({"answer": answer})


@app.route("/api/summary", methods=["POST"])
def summary():
    return jsonify({"summary": study.generate_summary(_require_text(_json_body()))})


@app.route("/api/summary/questions", methods=["POST"])
def summary_from_questions():
    return jsonify({"summary": study.summarize_questions(_require_text(_json_body(), "context"))})


# ----- Quiz -----
@app.route("/api/quiz/extract", methods=["POST"])
def quiz_extract():
    questions = extraction.extract_questions(_require_text(_json_body()))
    return jsonify({"questions": [q.model_dump() for q in questions]})


@app.route("/api/quiz/explanations", methods=["POST"])
def quiz_explanations():
    questions = extraction.generate_explanations(_questions(_json_body()))
    return jsonify({"questions": [q.model_dump() for q in questions]})


@app.route("/api/quiz/similar", methods=["POST"])
def quiz_similar():
    original = QuizQuestion.model_validate(_json_body().get("question") or {})
    similar = study.generate_similar_question(original)
    return jsonify({"question": similar.model_dump() if similar else None})


@app.route("/api/quiz/hint", methods=["POST"])
def quiz_hint():
    data = _json_body()
    options = data.get("options") or []
    if not isinstance(options, list):
        raise BadRequest("'options' must be a list")
    return jsonify({"hint": study.get_hint(_require_text(data, "question"), [str(o) for o in options])})


# ----- Flashcards -----
@app.route("/api/flashcards", methods=["POST"])
def flashcards():
    cards = study.extract_flashcards(_require_text(_json_body()))
    return jsonify({"flashcards": [c.model_dump() for c in cards]})


@app.route("/api/flashcards/refine", methods=["POST"])
def refine_flashcard():
    data = _json_body()
    kind = data.get("kind", "question")
    if kind not in ("question", "answer"):
        raise BadRequest("'kind' must be 'question' or 'answer'")
    return jsonify({"text": study.refine_flashcard_text(_require_text(data), kind)})


# ----- Answer keys -----
@app.route("/api/answer-key", methods=["POST"])
def answer_key():
    entries = extraction.process_answer_key(_require_text(_json_body()))
    return jsonify({"answers": [e.model_dump() for e in entries]})


@app.route("/api/answer-key/apply", methods=["POST"])
def answer_key_apply():
    data = _json_body()
    raw_entries = data.get("answers")
    if not isinstance(raw_entries, list):
        raise BadRequest("'answers' must be a list")
    entries = [AnswerKeyEntry.model_validate(e) for e in raw_entries]
    return jsonify(apply_answer_key(_questions(data), entries).model_dump())


# ----- Misc -----
@app.route("/api/insights", methods=["POST"])
def insights():
    analytics = _json_body().get("analytics")
    if not isinstance(analytics, dict):
        raise BadRequest("'analytics' must be an object")
    return jsonify({"insights": study.generate_study_insights(analytics)})


@app.route("/api/transcribe", methods=["POST"])
def transcribe():
    upload = request.files.get("file")
    if upload is None or not (upload.mimetype or "").startswith("image/"):
        raise BadRequest("Upload an image in the 'file' field")
    return jsonify({"text": study.transcribe_image(upload.read(), upload.mimetype)})


if __name__ == "__main__":
    app.run(debug=True)
