SYSTEM_PROMPT = """You are a study assistant for exam preparation.
Work strictly from the material you are given. When asked for JSON, return STRICT VALID JSON only."""

# ----- Document analysis -----
ANALYSIS_PROMPT_TEMPLATE = """Analyse the document text below.

YOUR TASK:
1. Write a short, friendly welcome summary (at most 2 short paragraphs) explaining what the document is about.
2. Suggest 3 specific, interesting questions the user could ask about this document to learn more.

DOCUMENT TEXT:
\"\"\"
{document}
\"\"\"
"""

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "questions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["summary", "questions"],
}

ANSWER_PROMPT_TEMPLATE = """Answer the user's question based strictly on the document below.
If the information is not in the document, say that the answer cannot be found in the provided text.

DOCUMENT CONTENT:
\"\"\"
{document}
\"\"\"

USER QUESTION: "{question}"
"""

SUMMARY_PROMPT_TEMPLATE = """Write a concise summary of the following document.
\"\"\"
{document}
\"\"\"
"""

QUESTIONS_SUMMARY_PROMPT_TEMPLATE = """Write a didactic summary connecting these concepts:
{context}
"""

# ----- Quiz extraction -----
QUIZ_EXTRACTION_PROMPT_TEMPLATE = """You are an expert at processing exam papers. Analyse the text and rebuild the multiple-choice questions it contains.
- Keep the full statement (case + question) as the question text.
- List the answer options in order.
- Give the 0-based index of the correct option only if the text states it; omit it otherwise.
- Include any explanation or teacher's comment attached to the question.

TEXT TO ANALYSE:
\"\"\"
{chunk}
\"\"\"
"""

QUIZ_QUESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "question": {"type": "string", "description": "Full question statement."},
        "options": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Answer options (A, B, C, D, E) in order.",
        },
        "correctAnswerIndex": {
            "type": "integer",
            "description": "0-based index of the correct option. Omit if not found.",
        },
        "explanation": {"type": "string", "description": "Explanation or comment for this question."},
        "mediaUrl": {"type": "string", "description": "Image URL, if any."},
    },
    "required": ["question", "options"],
}

QUIZ_EXTRACTION_SCHEMA = {
    "type": "object",
    "properties": {"questions": {"type": "array", "items": QUIZ_QUESTION_SCHEMA}},
    "required": ["questions"],
}

# ----- Answer keys -----
ANSWER_KEY_PROMPT_TEMPLATE = """Extract the answer key and any comments from the text below as JSON.
For each question give its number, the letter of the correct option and the explanation if present.

{chunk}
"""

ANSWER_KEY_SCHEMA = {
    "type": "object",
    "properties": {
        "answers": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "questionIdentifier": {"type": "string"},
                    "correctOptionLetter": {"type": "string"},
                    "explanation": {"type": "string"},
                },
                "required": ["questionIdentifier", "correctOptionLetter"],
            },
        }
    },
    "required": ["answers"],
}

# ----- Explanations (batched) -----
EXPLANATIONS_PROMPT_TEMPLATE = """You are a senior teacher preparing students for high-stakes exams.

YOUR TASK:
For each question below, write a complete teaching comment.

REQUIRED STRUCTURE:
1. Reasoning summary: identify the key facts and the likely conclusion.
2. Why the correct answer is correct: explain the underlying principle or criterion.
3. Distractor analysis: briefly explain why each other option is wrong.

IMPORTANT:
- Do NOT just repeat the answer. Explain the WHY.
- If answer_index is "unknown", deduce the correct answer and explain it.
- Echo each question's "id" exactly as given.

QUESTIONS:
{questions}
"""

EXPLANATIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "explanations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "description": "The relative id sent in the prompt (0, 1, 2...)."},
                    "explanation": {"type": "string"},
                },
                "required": ["id", "explanation"],
            },
        }
    },
    "required": ["explanations"],
}

# ----- Flashcards -----
FLASHCARDS_PROMPT_TEMPLATE = """Create question/answer flashcards from this text.
Give each card a short topic tag and, where helpful, a mnemonic.
{document}
"""

FLASHCARDS_SCHEMA = {
    "type": "object",
    "properties": {
        "flashcards": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "answer": {"type": "string"},
                    "tag": {"type": "string"},
                    "mnemonic": {"type": "string"},
                },
                "required": ["question", "answer", "tag"],
            },
        }
    },
    "required": ["flashcards"],
}

REFINE_FLASHCARD_PROMPT_TEMPLATE = """Improve this flashcard {kind}, making it more concise. Return only the new text.
{text}
"""

# ----- Quiz helpers -----
HINT_PROMPT_TEMPLATE = """Give a subtle hint for this question without revealing the answer:
{question}

Options:
{options}
"""

SIMILAR_QUESTION_PROMPT_TEMPLATE = """Create a similar multiple-choice question on the same topic:
{question}
"""

SIMILAR_QUESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "question": {"type": "string"},
        "options": {"type": "array", "items": {"type": "string"}},
        "correctAnswerIndex": {"type": "integer"},
        "explanation": {"type": "string"},
    },
    "required": ["question", "options", "correctAnswerIndex"],
}

INSIGHTS_PROMPT_TEMPLATE = """Analyse this study data and give a short diagnosis:
{analytics}
"""

TRANSCRIBE_PROMPT = "Transcribe the text in this image accurately."
