"""
    Anthropic models on Amazon Bedrock
"""

from typing import Optional, List, Dict, Any
import json
import base64
import logging
from botocore.exceptions import BotoCoreError, ClientError
from providers.provider_interfaces import LLMProvider, LLMResponse
from config import get_bedrock_client, BEDROCK_MODEL_ID, LLM_TEMPERATURE, setup_logging
from utils.llm.prompts import JSON_SYSTEM_PROMPT

setup_logging()
logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"


class BedrockProvider(LLMProvider):
    def __init__(self, client=None, model_id: str = BEDROCK_MODEL_ID):
        self.client = client or get_bedrock_client()
        self.model_id = model_id

    def _request_body(self, content: List[Dict[str, Any]], max_tokens: int) -> str:
        return json.dumps({
            "anthropic_version": ANTHROPIC_VERSION,
            "system": JSON_SYSTEM_PROMPT,
            "max_tokens": max_tokens,
            "temperature": LLM_TEMPERATURE,
            "messages": [{"role": "user", "content": content}],
        })

    def _invoke(self, content: List[Dict[str, Any]], max_tokens: int) -> Optional[LLMResponse]:
        try:
            response = self.client.invoke_model(
                modelId=self.model_id,
                body=self._request_body(content, max_tokens),
                contentType="application/json",
                accept="application/json",
            )
            response_body = json.loads(response['body'].read())

        except (ClientError, BotoCoreError, ValueError) as e:
            logger.error(f"Bedrock invocation of {self.model_id} failed: {e}")
            return None

        text = "".join(block.get('text', '') for block in response_body.get('content', [])
                       if block.get('type') == 'text')
        if not text:
            logger.warning(f"Bedrock returned no text (stop_reason={response_body.get('stop_reason')})")
            return None

        if response_body.get('stop_reason') == 'max_tokens':
            logger.warning(f"Bedrock output truncated at {max_tokens} tokens")

        return LLMResponse(content=text, usage_tokens=response_body.get('usage', {}).get('output_tokens'))

    def generate_text(self, prompt: str, max_tokens: int = 1000) -> Optional[LLMResponse]:
        return self._invoke([{"type": "text", "text": prompt}], max_tokens)

    def analyze_image(self, image_data: bytes, prompt: str, max_tokens: int = 2000) -> Optional[LLMResponse]:
        """image_data must already be JPEG (see ListingPhotoPreprocessor)"""
        image_block = {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": "image/jpeg",
                "data": base64.b64encode(image_data).decode('ascii'),
            },
        }
        return self._invoke([image_block, {"type": "text", "text": prompt}], max_tokens)
