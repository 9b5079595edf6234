"""
    OpenAI chat completions provider
"""

from typing import Optional, List, Dict, Any
import base64
import logging
from openai import OpenAI, OpenAIError
from providers.provider_interfaces import LLMProvider, LLMResponse
from config import get_openai_api_key, OPENAI_MODEL_ID, LLM_TEMPERATURE, setup_logging
from utils.llm.prompts import JSON_SYSTEM_PROMPT

setup_logging()
logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    def __init__(self, client: Optional[OpenAI] = None, model_id: str = OPENAI_MODEL_ID):
        self.client = client or OpenAI(api_key=get_openai_api_key())
        self.model_id = model_id

    def _complete(self, user_content: Any, max_tokens: int, task: str) -> Optional[LLMResponse]:
        logger.info(f"OpenAI {task} with model: {self.model_id}")

        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": JSON_SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

        try:
            response = self.client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                max_completion_tokens=max_tokens,
                temperature=LLM_TEMPERATURE,
                response_format={"type": "json_object"},
            )

        except OpenAIError as e:
            logger.error(f"OpenAI {task} error: {e}")
            return None

        choice = response.choices[0] if response.choices else None
        if choice is None or not choice.message.content:
            logger.warning(f"OpenAI {task} returned no content")
            return None

        if choice.finish_reason == 'length':
            logger.warning(f"OpenAI output truncated at {max_tokens} tokens")

        usage_tokens = response.usage.completion_tokens if response.usage else None
        return LLMResponse(content=choice.message.content, usage_tokens=usage_tokens)

    def generate_text(self, prompt: str, max_tokens: int = 3000) -> Optional[LLMResponse]:
        return self._complete(prompt, max_tokens, "text generation")

    def analyze_image(self, image_data: bytes, prompt: str, max_tokens: int = 3000) -> Optional[LLMResponse]:
        image_url = f"data:image/jpeg;base64,{base64.b64encode(image_data).decode('ascii')}"

        return self._complete([
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
        ], max_tokens, "image analysis")
