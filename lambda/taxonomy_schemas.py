"""
    Pydantic schemas for taxonomy and listing documents
"""

import math
import logging
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from config import setup_logging


setup_logging()
logger = logging.getLogger(__name__)


class TaxonomyNode(BaseModel):
    """Common base: camelCase aliases on the wire, snake_case in Python"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(min_length=1)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Name cannot be empty")
        return cleaned

    def to_document(self, include_id: bool = True) -> Dict[str, Any]:
        """Stored representation (aliases, unset optionals omitted)"""
        exclude = None if include_id else {'id'}
        return self.model_dump(by_alias=True, exclude_none=True, exclude=exclude)


class Subcategory(TaxonomyNode):
    icon_name: Optional[str] = Field(default=None, alias='iconName')


class Category(TaxonomyNode):
    icon_name: Optional[str] = Field(default=None, alias='iconName')
    order: Optional[int] = None
    subcategories: List[Subcategory] = Field(default_factory=list)

    def descendant_ids(self) -> List[str]:
        return [self.id] + [sub.id for sub in self.subcategories]


class LocationDistrict(TaxonomyNode):
    pass


class LocationGovernorate(TaxonomyNode):
    districts: List[LocationDistrict] = Field(default_factory=list)

    def district_ids(self) -> List[str]:
        return [district.id for district in self.districts]


class LocationCountry(TaxonomyNode):
    governorates: List[LocationGovernorate] = Field(default_factory=list)

    def governorate_ids(self) -> List[str]:
        return [governorate.id for governorate in self.governorates]

    def district_ids(self) -> List[str]:
        return [district_id for governorate in self.governorates for district_id in governorate.district_ids()]

    def find_governorate(self, governorate_id: str) -> Optional[LocationGovernorate]:
        return next((g for g in self.governorates if g.id == governorate_id), None)

    def governorates_document(self) -> List[Dict[str, Any]]:
        """The whole nested array as written back to the store"""
        return [governorate.to_document() for governorate in self.governorates]


def category_sort_key(category: Category) -> tuple:
    """Display order: `order` ascending (unset last), then name"""
    order = category.order if category.order is not None else math.inf
    return order, category.name.casefold()


def country_sort_key(country: LocationCountry) -> str:
    return country.name.casefold()


# ---------------------------- Listings ----------------------------------------

class ListingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SOLD = "sold"


class TaxonomyField(str, Enum):
    """Embedded taxonomy snapshots a listing can be queried by"""
    CATEGORY = "category.id"
    SUBCATEGORY = "subcategory.id"
    LOCATION_COUNTRY = "locationCountry.id"
    LOCATION_GOVERNORATE = "locationGovernorate.id"
    LOCATION_DISTRICT = "locationDistrict.id"


class ListingTaxonomyRef(BaseModel):
    """Denormalized {id, name} copy embedded in a listing at creation time"""
    id: str
    name: Optional[str] = None


class Listing(BaseModel):
    """Listing document as consumed by moderation; unknown fields are kept"""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    id: str
    title: str = ""
    status: ListingStatus = ListingStatus.PENDING
    images: List[str] = Field(default_factory=list)
    posted_date: Optional[str] = Field(default=None, alias='postedDate')
    category: Optional[ListingTaxonomyRef] = None
    subcategory: Optional[ListingTaxonomyRef] = None
    location_country: Optional[ListingTaxonomyRef] = Field(default=None, alias='locationCountry')
    location_governorate: Optional[ListingTaxonomyRef] = Field(default=None, alias='locationGovernorate')
    location_district: Optional[ListingTaxonomyRef] = Field(default=None, alias='locationDistrict')

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode='json')


# ------------------------- Users and site settings ----------------------------

class User(BaseModel):
    """User profile document; the id is the auth uid"""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = Field(default=None, alias='avatarUrl')
    join_date: Optional[str] = Field(default=None, alias='joinDate')
    is_admin: bool = Field(default=False, alias='isAdmin')

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode='json')


def user_sort_key(user: User) -> tuple:
    """By name, case-insensitively; users without a name last"""
    return user.name is None, (user.name or '').casefold(), user.id


class HeroBannerImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    src: str
    alt: str
    uploaded_at: Optional[str] = Field(default=None, alias='uploadedAt')

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DashboardStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(default=0, alias='totalUsers')
    total_listings: int = Field(default=0, alias='totalListings')
    pending_listings: int = Field(default=0, alias='pendingListings')
    approved_listings: int = Field(default=0, alias='approvedListings')
    rejected_listings: int = Field(default=0, alias='rejectedListings')
    sold_listings: int = Field(default=0, alias='soldListings')

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
