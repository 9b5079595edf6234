"""
    Prompt Manager module
"""

import json
import logging
from typing import List
from config import setup_logging, MAX_RECOMMENDATIONS


setup_logging()
logger = logging.getLogger(__name__)

# Sent as the system message with every flow; both flows expect one JSON object back
JSON_SYSTEM_PROMPT = (
    "You are a backend service for an online classifieds marketplace. "
    "Answer with a single JSON object exactly as requested and nothing else."
)


class PromptManager:
    def __init__(self, locale: str = "en_US"):
        self.locale = locale

    def get_listing_image_analysis_prompt(self) -> str:
        """
        Generate the prompt for listing photo authenticity checks.
        """
        if self.locale == "en_US":
            return self.get_english_listing_image_analysis_prompt()
        else:
            raise ValueError(f"Unsupported locale: {self.locale}")

    def get_listing_recommendations_prompt(self, viewing_history: List[str], current_listing: str) -> str:
        """
        Generate the prompt for listing recommendations.
        """
        if self.locale == "en_US":
            return self.get_english_listing_recommendations_prompt(viewing_history, current_listing)
        else:
            raise ValueError(f"Unsupported locale: {self.locale}")

    @staticmethod
    def get_english_listing_image_analysis_prompt() -> str:
        return """You are an expert in verifying the authenticity of products from listing images. Analyze the image and identify any potential issues, such as copyright infringement, misleading information, or prohibited items. You will make a determination as to whether the listing image is authentic or not, and list any potential issues.

Look for:
- Stock photos, watermarks or logos of other marketplaces
- Screenshots or photos of another screen instead of the product itself
- Edited or composited images that misrepresent the product
- Counterfeit branding or mismatched product details
- Items whose sale is commonly prohibited (weapons, drugs, wildlife products)

Return valid JSON ONLY (no additional text or explanations):

{
    "isAuthentic": true,
    "issues": ["short description of each potential issue, empty list if none"]
}"""

    @staticmethod
    def get_english_listing_recommendations_prompt(viewing_history: List[str], current_listing: str) -> str:
        history_json = json.dumps(viewing_history, ensure_ascii=False)

        return f"""You are a recommendation engine for an online marketplace.

Based on the user's viewing history and the current listing they are viewing,
recommend other listings that they might be interested in.

Viewing History: {history_json}
Current Listing: {json.dumps(current_listing, ensure_ascii=False)}

Rules:
- Return at most {MAX_RECOMMENDATIONS} listing IDs
- Do not recommend the current listing itself
- Return only listing IDs, never titles or descriptions

Return valid JSON ONLY (no additional text or explanations):

{{
    "recommendedListings": ["listing id", "..."]
}}"""
