"""
    LLM Service module
"""

import re
from typing import Dict, List, Optional, Type, TypeVar
import logging
import json
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from config import setup_logging, LLM_PROVIDER, MAX_IMAGE_BYTES
from providers.provider_factory import ProviderFactory
from providers.provider_interfaces import LLMResponse
from providers.image_preprocessor.pillow_preprocessor import ListingPhotoPreprocessor
from utils.helpers import parse_data_uri
from utils.llm.prompts import PromptManager
from ai_schemas import (
    AnalyzeListingImageInput, AnalyzeListingImageOutput,
    ListingRecommendationsInput, ListingRecommendationsOutput,
)
from taxonomy_errors import OperationFailed, ValidationError


setup_logging()
logger = logging.getLogger(__name__)

SchemaT = TypeVar('SchemaT', bound=BaseModel)


class ListingAIService:
    """Image authenticity check and listing recommendations"""

    def __init__(self, provider_name: str = LLM_PROVIDER):
        self.provider = ProviderFactory.create_llm_provider(provider_name)
        self.prompt_manager = PromptManager()
        self.preprocessor = ListingPhotoPreprocessor()

    def analyze_listing_image(self, photo_data_uri: str) -> AnalyzeListingImageOutput:
        """Ask the vision model whether a listing photo looks authentic"""

        request = self._validate_input(AnalyzeListingImageInput, {'photoDataUri': photo_data_uri})

        try:
            mime_type, raw_image = parse_data_uri(request.photo_data_uri)
            if not mime_type.startswith('image/'):
                raise ValueError(f"Unsupported MIME type '{mime_type}'")
            if len(raw_image) > MAX_IMAGE_BYTES:
                raise ValueError(f"Photo exceeds {MAX_IMAGE_BYTES // (1024 * 1024)} MB")

            image_data = self.preprocessor.prepare(raw_image)

        except ValueError as e:
            logger.warning(f"Rejected listing photo: {e}")
            raise ValidationError(f"Invalid listing photo: {e}") from e

        logger.info(f"Analyzing listing image ({mime_type}, {len(image_data)} bytes) with LLM")

        prompt = self.prompt_manager.get_listing_image_analysis_prompt()
        response = self.provider.analyze_image(image_data, prompt)

        return self._create_validated_result(response, AnalyzeListingImageOutput, "analyze listing image")

    def get_listing_recommendations(self, viewing_history: List[str],
                                    current_listing: str) -> ListingRecommendationsOutput:
        """Recommend listing ids from the viewing history and the current listing"""

        request = self._validate_input(ListingRecommendationsInput, {
            'viewingHistory': viewing_history,
            'currentListing': current_listing,
        })

        logger.info(f"Generating recommendations for listing {request.current_listing} "
                    f"from {len(request.viewing_history)} viewed listings")

        prompt = self.prompt_manager.get_listing_recommendations_prompt(
            request.viewing_history, request.current_listing
        )
        response = self.provider.generate_text(prompt, max_tokens=500)

        result = self._create_validated_result(response, ListingRecommendationsOutput,
                                               "generate listing recommendations")

        # The current listing is never its own recommendation
        result.recommended_listings = [
            listing_id for listing_id in result.recommended_listings
            if listing_id != request.current_listing
        ]
        return result

    @staticmethod
    def _validate_input(schema: Type[SchemaT], data: Dict) -> SchemaT:
        try:
            return schema.model_validate(data)

        except SchemaValidationError as e:
            first = e.errors()[0]
            field = '.'.join(str(part) for part in first.get('loc', ())) or 'input'
            raise ValidationError(f"Invalid {field}: {first.get('msg', 'invalid value')}") from e

    @staticmethod
    def parse_json_response(content: str) -> Optional[Dict]:
        """Parse JSON response from LLM"""
        try:
            # First, try to parse as-is
            if content.strip().startswith('{'):
                return json.loads(content.strip())

            # Clean markdown JSON blocks
            if '```json' in content:
                start = content.find('```json') + 7
                end = content.find('```', start)
                if end != -1:
                    return json.loads(content[start:end].strip())

            # Look for JSON object in the text
            json_match = re.search(r'\{.*\}', content, re.DOTALL)
            if json_match:
                return json.loads(json_match.group(0))

            return None

        except json.JSONDecodeError:
            return None

    def _create_validated_result(self, response: Optional[LLMResponse], schema: Type[SchemaT],
                                 description: str) -> SchemaT:
        """Parse LLM response and validate it against the flow's output schema"""

        if not response:
            logger.error(f"No response from LLM to {description}")
            raise OperationFailed(f"Could not {description}.")

        parsed_data = self.parse_json_response(response.content)
        if not isinstance(parsed_data, dict):
            logger.error(f"Failed to parse JSON from LLM response: {response.content[:200]}")
            raise OperationFailed(f"Could not {description}.")

        try:
            return schema.model_validate(parsed_data)

        except SchemaValidationError as e:
            logger.warning(f"LLM output validation failed: {e}")
            raise OperationFailed(f"Could not {description}.") from e
