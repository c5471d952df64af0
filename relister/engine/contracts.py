"""Typed request/response shapes exchanged with the remote functions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Passthrough(BaseModel):
    """Model that keeps unknown keys so payloads can be forwarded verbatim."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def forward(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class SearchCriteria(_Passthrough):
    """Search parameters produced by the external planner."""

    query: str = ""
    category: str | int | None = None
    min_price: int | float | None = None
    store: str = ""


class Candidate(BaseModel):
    id: str
    item_type: str = ""
    created: int | None = None


class NamedRef(_Passthrough):
    id: int | str | None = None
    name: str = ""


class SellerRatings(_Passthrough):
    good: int = 0


class Seller(_Passthrough):
    id: int | str
    num_sell_items: int = 0
    ratings: SellerRatings | None = None
    num_ratings: int = 0


class ItemDetail(_Passthrough):
    """Full snapshot of one source listing."""

    id: str
    status: str
    name: str = ""
    price: int | float = 0
    description: str = ""
    photos: list[str] = Field(default_factory=list)
    seller: Seller
    item_category_ntiers: NamedRef
    parent_categories_ntiers: list[NamedRef] = Field(default_factory=list)
    item_condition: NamedRef
    shipping_payer: NamedRef
    shipping_method: NamedRef
    shipping_from_area: NamedRef
    shipping_duration: NamedRef
    item_brand: NamedRef | None = None
    num_likes: int = 0
    num_comments: int = 0
    created: int = 0
    updated: int = 0
    auction_info: dict[str, Any] | None = None


class EligibilityResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_eligible: bool = Field(alias="isEligible")


class ItemImages(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    r2_image_urls: list[str] = Field(alias="r2ImageUrls")
    base64_images: list[str] = Field(alias="base64Images")


class ModerationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blocked: bool = False
    is_all_passed: bool = Field(alias="isAllPassed")


class BoxDimensions(BaseModel):
    length: int | float
    width: int | float
    height: int | float


class ShippingEstimate(BaseModel):
    weight: int | float
    box_dimensions: BoxDimensions


class ListingText(BaseModel):
    listing_title_for_ebay_listing: str
    item_condition_description_for_ebay_listing: str = ""
    item_specifics_for_ebay_listing: dict[str, Any] = Field(default_factory=dict)
    promotional_text_for_ebay_listing: str = ""


class ContentVerdict(BaseModel):
    """``blocked`` marks a content-policy refusal by the generator."""

    blocked: bool = False


class ContentResult(ContentVerdict):
    shipping_weight_and_box_dimensions: ShippingEstimate
    information_for_ebay_listing: ListingText


class ShortenedTitle(BaseModel):
    title: str


class StoreChoice(BaseModel):
    store: str


class OfferPart(_Passthrough):
    """Destination pricing and policy fragments merged into the offer."""

    pricingSummary: dict[str, Any] = Field(default_factory=dict)
    listingPolicies: dict[str, Any] = Field(default_factory=dict)


class PublishResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    listing_id: str = Field(alias="listingId")


__all__ = [
    "BoxDimensions",
    "Candidate",
    "ContentResult",
    "ContentVerdict",
    "EligibilityResult",
    "ItemDetail",
    "ItemImages",
    "ListingText",
    "ModerationResult",
    "NamedRef",
    "OfferPart",
    "PublishResult",
    "SearchCriteria",
    "Seller",
    "ShippingEstimate",
    "ShortenedTitle",
    "StoreChoice",
]
