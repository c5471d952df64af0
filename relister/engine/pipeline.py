"""Per-item state machine from candidate to published listing."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from ..config import AccountIdentity, DeployMode, RelisterConfig
from ..errors import RemoteInvocationError
from ..infra.invoker import RemoteInvoker
from ..logging_conf import component_logger
from .contracts import (
    Candidate,
    ContentResult,
    ContentVerdict,
    EligibilityResult,
    ItemDetail,
    ItemImages,
    ModerationResult,
    OfferPart,
    PublishResult,
    ShortenedTitle,
    StoreChoice,
)
from .listing import (
    build_inventory_payload,
    build_listing_record,
    build_offer_payload,
    is_package_too_big,
)
from .rate_limiter import RateLimiter
from .records import RecordWriter

ON_SALE = "on_sale"


class Outcome(str, Enum):
    LISTED = "listed"
    EXCLUDED = "excluded"
    TRANSIENT_SKIP = "transient_skip"


@dataclass(slots=True)
class ProcessingResult:
    outcome: Outcome
    item_id: str
    reason: str | None = None
    listing_id: str | None = None

    @property
    def listed(self) -> bool:
        return self.outcome is Outcome.LISTED


class ItemPipeline:
    """Drive one candidate through every gate, in order, with early exits.

    Exclusions write a ban record; transient skips write nothing. Failures
    outside the detail fetch are not caught here and end the process.
    """

    def __init__(
        self,
        config: RelisterConfig,
        invoker: RemoteInvoker,
        rate_limiter: RateLimiter,
        writer: RecordWriter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.functions = config.functions
        self.invoker = invoker
        self.rate_limiter = rate_limiter
        self.writer = writer
        self.keys = writer.keys
        self.sleep = sleep
        self.logger = component_logger("pipeline")

    def process(self, candidate: Candidate, store_hint: str) -> ProcessingResult:
        log = self.logger.bind(item_id=candidate.id)
        log.info("item_processing")

        detail = self._fetch_detail(candidate.id, log)
        if detail is None:
            return ProcessingResult(Outcome.TRANSIENT_SKIP, candidate.id, "detail_fetch_failed")
        if detail.status != ON_SALE:
            log.info("item_not_on_sale", status=detail.status)
            return ProcessingResult(Outcome.TRANSIENT_SKIP, candidate.id, "not_on_sale")

        item = detail.forward()
        eligibility = self.invoker.call(self.functions.eligibility, {"item": item}, EligibilityResult)
        if not eligibility.is_eligible:
            log.info("item_ineligible")
            return self._exclude(detail.id, "ineligible")

        images = self.invoker.call(
            self.functions.image_processor,
            {"id": detail.id, "imageUrls": detail.photos},
            ItemImages,
        )

        moderation = self.invoker.call(
            self.functions.active_moderation,
            {"thumbnailBase64": images.base64_images[0] if images.base64_images else None, "item": item},
            ModerationResult,
        )
        if not moderation.is_all_passed:
            log.info("moderation_rejected", blocked=moderation.blocked)
            return self._exclude(detail.id, "moderation")

        content = self._generate_content(images, item, log)
        shipping = content.shipping_weight_and_box_dimensions
        if is_package_too_big(shipping, self.config.package_limits):
            log.info("package_too_big", weight=shipping.weight, box=shipping.box_dimensions.model_dump())
            return self._exclude(detail.id, "package_too_big")

        text = content.information_for_ebay_listing
        limit = self.config.listing.title_max_length
        if len(text.listing_title_for_ebay_listing) > limit:
            shortened = self.invoker.call(
                self.functions.title_shortener,
                {"id": detail.id, "title": text.listing_title_for_ebay_listing},
                ShortenedTitle,
            )
            log.info(
                "title_shortened",
                original_length=len(text.listing_title_for_ebay_listing),
                shortened_length=len(shortened.title),
            )
            text = text.model_copy(update={"listing_title_for_ebay_listing": shortened.title})

        store = self._select_store(store_hint, text.listing_title_for_ebay_listing, log)
        identity = self.resolve_account(store)
        log.info("account_resolved", account=identity.account, username=identity.username)

        sku = self.keys.sku(detail.id)
        record = build_listing_record(
            detail=detail,
            images=images,
            shipping=shipping,
            text=text,
            identity=identity,
            sku=sku,
            origin_url=self.keys.origin_url(detail.id),
            origin_platform=self.keys.platform,
            defaults=self.config.listing,
        )
        # persisted before publishing so a crash past here still blocks reprocessing
        self.writer.write_listing(record)

        inventory = build_inventory_payload(record)
        offer_part = self.invoker.call(
            self.functions.offer_builder,
            {
                "id": detail.id,
                "account": identity.account,
                "orgPrice": detail.price,
                **shipping.model_dump(mode="json"),
            },
            OfferPart,
        )
        offer = build_offer_payload(record, offer_part, self.config.listing)

        self.rate_limiter.publish.wait()
        published = self.invoker.call(
            self.functions.publisher,
            {"sku": sku, "inventoryPayload": inventory, "offerPayload": offer, "account": identity.account},
            PublishResult,
        )
        self.rate_limiter.publish.mark()
        log.info("item_listed", listing_id=published.listing_id, sku=sku)
        return ProcessingResult(Outcome.LISTED, detail.id, listing_id=published.listing_id)

    # ------------------------------------------------------------------
    def _fetch_detail(self, item_id: str, log: structlog.BoundLogger) -> ItemDetail | None:
        ref = self.functions.item_detail
        self.rate_limiter.source.wait()
        try:
            raw = self.invoker.invoke(ref, {"id": item_id})
        except RemoteInvocationError as exc:
            log.warning("transport_failure", function=ref, stage="detail", error=str(exc))
            self.invoker.refresh(ref)
            self.sleep(self.config.rate_limits.transport_cooldown_seconds)
            return None
        self.rate_limiter.source.mark()
        return ItemDetail.model_validate(raw)

    def _generate_content(self, images: ItemImages, item: dict, log: structlog.BoundLogger) -> ContentResult:
        payload = {"imagesBase64": images.base64_images, "item": item}
        raw = self.invoker.invoke(self.functions.content_primary, payload)
        if ContentVerdict.model_validate(raw).blocked:
            log.info("content_blocked_fallback", function=self.functions.content_fallback)
            raw = self.invoker.invoke(self.functions.content_fallback, payload)
        return ContentResult.model_validate(raw)

    def _select_store(self, store_hint: str, title: str, log: structlog.BoundLogger) -> str:
        store = store_hint
        if store == self.config.cycle.auto_store_marker:
            store = self.invoker.call(self.functions.store_chooser, {"title": title}, StoreChoice).store
        log.info("store_selected", store=store, pinned=store_hint != self.config.cycle.auto_store_marker)
        if store not in self.config.accounts.known_stores:
            # logged only; account resolution falls through to the secondary identity
            log.error("store_invalid", store=store)
        return store

    def resolve_account(self, store: str) -> AccountIdentity:
        accounts = self.config.accounts
        if self.config.deploy_mode is not DeployMode.PRODUCTION:
            return accounts.test
        if store == accounts.primary_store:
            return accounts.primary
        return accounts.secondary

    def _exclude(self, item_id: str, stage: str) -> ProcessingResult:
        self.writer.write_ban(item_id, stage)
        return ProcessingResult(Outcome.EXCLUDED, item_id, stage)


__all__ = ["ItemPipeline", "Outcome", "ProcessingResult"]
