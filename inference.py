import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from openai import OpenAI, OpenAIError

from config import Settings
from errors import InferenceError

log = logging.getLogger(__name__)

MessageContent = Union[str, List[Dict[str, Any]]]


class OpenAIChatClient:
    """Sends a single user message to an OpenAI-compatible chat completions endpoint"""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        sdk_client: Any = None,
    ):
        self.model = model
        self._client = sdk_client or OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def complete(self, content: MessageContent) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": content}],
            )
        except OpenAIError as e:
            raise InferenceError(f"Chat completion request failed: {e}") from e

        if not response.choices:
            raise InferenceError("Chat completion returned no choices")
        text = response.choices[0].message.content
        if text is None:
            raise InferenceError("Chat completion returned an empty message")
        return text


def decode_data_url(url: str) -> types.Part:
    """
    Turns a base64 data URL into an inline Gemini part
    Returns: types.Part carrying the decoded bytes
    """
    if not url.startswith("data:") or ";base64," not in url:
        raise InferenceError("Only base64 data URLs can be sent to Gemini")
    header, encoded = url[len("data:"):].split(";base64,", 1)
    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise InferenceError(f"Invalid base64 payload in image part: {e}") from e
    return types.Part.from_bytes(data=data, mime_type=header or "application/octet-stream")


def to_gemini_contents(content: MessageContent) -> List[Any]:
    if isinstance(content, str):
        return [content]

    contents = []
    for part in content:
        kind = part.get("type")
        if kind == "text":
            contents.append(part["text"])
        elif kind == "image_url":
            contents.append(decode_data_url(part["image_url"]["url"]))
        else:
            raise InferenceError(f"Unsupported message part type: {kind!r}")
    return contents


class GeminiChatClient:
    """Sends the same message shape to Google's Gemini API"""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        sdk_client: Any = None,
    ):
        self.model = model
        if sdk_client is None:
            http_options = types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None
            sdk_client = genai.Client(api_key=api_key, http_options=http_options)
        self._client = sdk_client

    def complete(self, content: MessageContent) -> str:
        contents = to_gemini_contents(content)
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=contents,
            )
        except genai_errors.APIError as e:
            raise InferenceError(f"Gemini request failed: {e}") from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Could not reach Gemini: {e}") from e

        text = response.text
        if not text:
            raise InferenceError("Gemini returned an empty response")
        return text


def build_client(settings: Settings):
    """
    Creates the inference client selected by the configuration
    Returns: OpenAIChatClient or GeminiChatClient
    """
    log.info(f"Using {settings.provider} inference with model {settings.model}")
    if settings.provider == "openai":
        return OpenAIChatClient(
            settings.model,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )
    if settings.provider == "gemini":
        return GeminiChatClient(
            settings.model,
            api_key=settings.api_key,
            timeout=settings.timeout,
        )
    raise ValueError(f"Unknown inference provider: {settings.provider}")
