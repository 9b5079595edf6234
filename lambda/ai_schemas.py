"""
    Pydantic schemas for the listing AI flows
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from config import MAX_RECOMMENDATIONS


class FlowSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)


class AnalyzeListingImageInput(FlowSchema):
    photo_data_uri: str = Field(
        alias='photoDataUri',
        min_length=1,
        description="A photo of a listing, as a data URI that must include a MIME type and use Base64 encoding. "
                    "Expected format: 'data:<mimetype>;base64,<encoded_data>'."
    )


class AnalyzeListingImageOutput(FlowSchema):
    is_authentic: bool = Field(
        alias='isAuthentic',
        description="Whether or not the listing image is authentic."
    )
    issues: List[str] = Field(
        default_factory=list,
        description="Potential issues found in the listing image."
    )

    @field_validator('issues')
    @classmethod
    def drop_blank_issues(cls, v: List[str]) -> List[str]:
        return [issue.strip() for issue in v if issue and issue.strip()]


class ListingRecommendationsInput(FlowSchema):
    viewing_history: List[str] = Field(
        alias='viewingHistory',
        default_factory=list,
        description="Listing IDs representing the user viewing history."
    )
    current_listing: str = Field(
        alias='currentListing',
        min_length=1,
        description="The ID of the currently viewed listing."
    )


class ListingRecommendationsOutput(FlowSchema):
    recommended_listings: List[str] = Field(
        alias='recommendedListings',
        default_factory=list,
        description="Listing IDs representing the recommended listings."
    )

    @field_validator('recommended_listings')
    @classmethod
    def dedupe_and_cap(cls, v: List[str]) -> List[str]:
        unique = list(dict.fromkeys(item.strip() for item in v if item and item.strip()))
        return unique[:MAX_RECOMMENDATIONS]
