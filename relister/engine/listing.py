"""Destination listing assembly: package limits, aspects, record and payloads."""

from __future__ import annotations

from typing import Any

from ..config import AccountIdentity, ListingDefaults, PackageLimits
from .contracts import ItemDetail, ItemImages, ListingText, OfferPart, ShippingEstimate

DESCRIPTION_TEMPLATE = (
    '<div style="color: rgb(51, 51, 51); font-family: Arial;">'
    "<p>{promotion}</p>"
    '<h3 style="margin-top: 1.6em;">Condition</h3><p>{condition}</p>'
    '<h3 style="margin-top: 1.6em;">Shipping</h3>'
    "<p>Tracking numbers are provided to all orders. The item will be carefully packed "
    "to ensure it arrives safely.</p>"
    '<h3 style="margin-top: 1.6em;">Customs and import charges</h3>'
    "<p>Import duties, taxes, and charges are not included in the item price or shipping "
    "cost. Buyers are responsible for these charges. These charges may be collected by "
    "the carrier when you receive the item.</p></div>"
)

# shipping payer id 2 means the seller already pays shipping
SELLER_PAYS_SHIPPING = 2


def is_package_too_big(shipping: ShippingEstimate, limits: PackageLimits) -> bool:
    box = shipping.box_dimensions
    volumetric = (box.width * box.height * box.length) / limits.volumetric_divisor
    return (
        shipping.weight > limits.max_weight
        or volumetric > limits.max_volumetric
        or max(box.width, box.height, box.length) > limits.max_side
    )


def _usable_text(value: Any, max_length: int) -> bool:
    return isinstance(value, str) and value != "" and len(value) <= max_length


def filter_aspects(specifics: dict[str, Any], defaults: ListingDefaults) -> dict[str, list[Any]]:
    """Reduce generated item specifics to values the destination accepts.

    Empty or overlong values drop the whole attribute, as does any bad
    element inside a list. Lists are capped, scalars wrapped, and the fixed
    aspects are applied last.
    """

    limit = defaults.aspect_value_max_length
    aspects: dict[str, list[Any]] = {}
    for name, value in specifics.items():
        if value is None or value == "":
            continue
        if isinstance(value, str) and len(value) > limit:
            continue
        if isinstance(value, list):
            if not value or not all(_usable_text(v, limit) for v in value):
                continue
            aspects[name] = value[: defaults.aspect_max_values]
        else:
            aspects[name] = [value]
    aspects.update({name: list(values) for name, values in defaults.fixed_aspects.items()})
    return aspects


def build_description(text: ListingText) -> str:
    return DESCRIPTION_TEMPLATE.format(
        promotion=text.promotional_text_for_ebay_listing,
        condition=text.item_condition_description_for_ebay_listing,
    )


def origin_facets(detail: ItemDetail) -> dict[str, Any]:
    """Source-side facts kept on the listing record for later re-pricing."""

    auction = detail.auction_info or {}
    return {
        "isAuction": detail.auction_info is not None,
        "bidCount": auction.get("total_bids") or 0,
        "likeCount": detail.num_likes,
        "isPayOnDelivery": detail.shipping_payer.id != SELLER_PAYS_SHIPPING,
        "rateCount": detail.seller.num_sell_items,
        "itemCategory": [c.name for c in detail.parent_categories_ntiers]
        + [detail.item_category_ntiers.name],
        "brand": detail.item_brand.name if detail.item_brand else "",
        "itemCondition": detail.item_condition.name,
        "shippedFrom": detail.shipping_from_area.name,
        "shippingMethod": detail.shipping_method.name,
        "shippedWithin": detail.shipping_duration.name,
        "sellerId": f"/user/profile/{detail.seller.id}",
        "lastUpdated": "X",
        "created": detail.created,
        "updated": detail.updated,
    }


def build_listing_record(
    *,
    detail: ItemDetail,
    images: ItemImages,
    shipping: ShippingEstimate,
    text: ListingText,
    identity: AccountIdentity,
    sku: str,
    origin_url: str,
    origin_platform: str,
    defaults: ListingDefaults,
) -> dict[str, Any]:
    box = shipping.box_dimensions
    return {
        "orgPlatform": origin_platform,
        "orgUrl": origin_url,
        "orgTitle": detail.name,
        "orgPrice": detail.price,
        "orgImageUrls": list(detail.photos),
        "orgExtraParam": origin_facets(detail),
        "ebaySku": sku,
        "ebayImageUrls": list(images.r2_image_urls),
        "username": identity.username,
        "weightGram": shipping.weight,
        "boxSizeCm": [box.length, box.width, box.height],
        "ebayTitle": text.listing_title_for_ebay_listing,
        "ebayDescription": build_description(text),
        "ebayCategory": defaults.category_id,
        "ebayStoreCategory": defaults.store_category,
        "ebayCondition": defaults.condition,
        "ebayConditionDescription": text.item_condition_description_for_ebay_listing,
        "ebayAspectParam": filter_aspects(text.item_specifics_for_ebay_listing, defaults),
    }


def build_inventory_payload(record: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "availability": {"shipToLocationAvailability": {"quantity": 1}},
        "condition": record["ebayCondition"],
        "product": {
            "title": record["ebayTitle"],
            "description": record["ebayDescription"],
            "imageUrls": record["ebayImageUrls"],
            "aspects": record["ebayAspectParam"],
        },
    }
    if record.get("ebayConditionDescription"):
        payload["conditionDescription"] = record["ebayConditionDescription"]
    return payload


def build_offer_payload(
    record: dict[str, Any], offer_part: OfferPart, defaults: ListingDefaults
) -> dict[str, Any]:
    return {
        "sku": record["ebaySku"],
        "marketplaceId": defaults.marketplace_id,
        "format": defaults.listing_format,
        "availableQuantity": 1,
        "categoryId": record["ebayCategory"],
        **offer_part.forward(),
        "merchantLocationKey": defaults.merchant_location_key,
        "storeCategoryNames": [record["ebayStoreCategory"]],
    }


__all__ = [
    "DESCRIPTION_TEMPLATE",
    "build_description",
    "build_inventory_payload",
    "build_listing_record",
    "build_offer_payload",
    "filter_aspects",
    "is_package_too_big",
    "origin_facets",
]
