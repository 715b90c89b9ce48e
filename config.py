import os
from functools import lru_cache

from services.errors import ConfigurationError

API_KEY_VARS = ("OPENAI_API_KEY", "API_KEY")


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@lru_cache(maxsize=1)
def resolve_api_key() -> str:
    """
    Look up the OpenAI credential once per process.
    Failures are not cached, so a key exported later is still picked up.
    """
    for var in API_KEY_VARS:
        value = (os.getenv(var) or "").strip()
        if value:
            return value
    raise ConfigurationError(
        "No API key configured. Set OPENAI_API_KEY in the environment or .env file."
    )


OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = env_float("OPENAI_TEMPERATURE", 0.2)
OPENAI_TIMEOUT = env_float("OPENAI_TIMEOUT", 60.0)

# Large chunks for quizzes, small non-overlapping ones for answer-key tables
QUIZ_CHUNK_SIZE = env_int("QUIZ_CHUNK_SIZE", 60000)
QUIZ_CHUNK_OVERLAP = env_int("QUIZ_CHUNK_OVERLAP", 1000)
ANSWER_KEY_CHUNK_SIZE = env_int("ANSWER_KEY_CHUNK_SIZE", 15000)
EXPLANATION_BATCH_SIZE = env_int("EXPLANATION_BATCH_SIZE", 5)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
