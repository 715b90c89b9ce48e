import base64
from typing import Optional, Sequence, Tuple

from openai import OpenAI, OpenAIError

import config
from logger import get_logger
from prompts import SYSTEM_PROMPT
from services.errors import RemoteCallError

log = get_logger(__name__)

# (raw bytes, mime type)
ImageInput = Tuple[bytes, str]


class AIService:
    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None):
        self.model = model or config.OPENAI_MODEL
        self.temperature = config.OPENAI_TEMPERATURE if temperature is None else temperature
        self._client = None

    @property
    def client(self) -> OpenAI:
        # Resolved on first use so the app can start without a key
        if self._client is None:
            api_key = config.resolve_api_key()
            self._client = OpenAI(api_key=api_key, timeout=config.OPENAI_TIMEOUT)
        return self._client

    def invoke(
        self,
        prompt: str,
        schema: Optional[dict] = None,
        *,
        system_prompt: Optional[str] = None,
        images: Sequence[ImageInput] = (),
    ) -> str:
        """
        Calls the Chat Completions API once and returns the raw text.
        With `schema`, the model is asked to shape its output to it; the result
        is still unvalidated text.
        """
        client = self.client
        kwargs = {}
        if schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": schema, "strict": False},
            }
        try:
            resp = client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": system_prompt or SYSTEM_PROMPT},
                    {"role": "user", "content": self._user_content(prompt, images)},
                ],
                **kwargs,
            )
        except OpenAIError as e:
            log.error("Model call failed (%s): %s", type(e).__name__, e)
            raise RemoteCallError(str(e)) from e
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    @staticmethod
    def _user_content(prompt: str, images: Sequence[ImageInput]):
        if not images:
            return prompt
        parts = [{"type": "text", "text": prompt}]
        for data, mime_type in images:
            encoded = base64.b64encode(data).decode("ascii")
            parts.append(
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}}
            )
        return parts
