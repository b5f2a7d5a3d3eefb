"""Post-migration reconciliation between the source and destination stores.

Every check runs independently: an exception inside one check marks that
check as failed and leaves the others untouched.
"""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import httpx

from store_migration.client.protocols import DestinationClient, SourceClient
from store_migration.config import ValidationConfig
from store_migration.resources import COUNTED_ENTITY_TYPES
from store_migration.schema.source import parse_number
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)

# Bounds exhaustive counting when the destination has no aggregate count
MAX_COUNT_PAGES = 1000
COUNT_PAGE_LIMIT = 250


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass
class ValidationCheck:
    name: str
    description: str
    status: CheckStatus
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
        }


@dataclass
class ValidationResult:
    timestamp: datetime
    duration_seconds: float
    overall_status: CheckStatus
    checks: list[ValidationCheck]

    @property
    def summary(self) -> dict[str, int]:
        counts = {status.value: 0 for status in CheckStatus}
        for check in self.checks:
            counts[check.status.value] += 1
        return {"total": len(self.checks), **counts}

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "overall_status": self.overall_status.value,
            "summary": self.summary,
            "checks": [check.to_dict() for check in self.checks],
        }


def aggregate_status(checks: list[ValidationCheck]) -> CheckStatus:
    statuses = {check.status for check in checks}
    if CheckStatus.FAIL in statuses:
        return CheckStatus.FAIL
    if CheckStatus.WARNING in statuses:
        return CheckStatus.WARNING
    return CheckStatus.PASS


SINGULAR_LABELS = {"products": "Product", "categories": "Category", "customers": "Customer"}


def compare_counts(label: str, source_count: int, destination_count: int) -> tuple[CheckStatus, str]:
    """Grade a destination count against the source count."""
    noun = SINGULAR_LABELS.get(label, label.capitalize())
    if source_count == destination_count:
        return CheckStatus.PASS, f"{noun} counts match: {source_count} {label}"
    if 0 < destination_count < source_count:
        percent = destination_count / source_count * 100
        missing = source_count - destination_count
        return (
            CheckStatus.WARNING,
            f"{destination_count} of {source_count} {label} migrated ({percent:.1f}%). "
            f"{missing} {label} missing.",
        )
    return (
        CheckStatus.FAIL,
        f"{noun} count mismatch. Source: {source_count}, "
        f"Destination: {destination_count}",
    )


ImageProbe = Callable[[str], Awaitable[bool]]


class ValidationEngine:
    """Runs the reconciliation checks and aggregates their outcome."""

    def __init__(
        self,
        source: SourceClient,
        destination: DestinationClient,
        config: ValidationConfig | None = None,
        image_probe: ImageProbe | None = None,
    ):
        """Initialize the engine.

        Args:
            source: Client for the source store
            destination: Client for the destination store
            config: Sample size, probe timeout and price tolerance
            image_probe: Returns whether an image URL is reachable. Defaults
                to an httpx HEAD request bounded by ``config.image_timeout``.
        """
        self.source = source
        self.destination = destination
        self.config = config or ValidationConfig()
        self._image_probe = image_probe or self._head_probe

    async def run(self) -> ValidationResult:
        """Run every check and return the combined result."""
        started = time.monotonic()
        checks: list[ValidationCheck] = []

        for entity_type in COUNTED_ENTITY_TYPES:
            checks.append(
                await self._guarded(
                    f"{entity_type}_count",
                    f"Compare {entity_type} counts between stores",
                    lambda entity_type=entity_type: self.check_count(entity_type),
                )
            )
        checks.append(
            await self._guarded(
                "sample_prices", "Compare prices of sampled products by SKU", self.check_prices
            )
        )
        checks.append(
            await self._guarded(
                "sample_images", "Probe sampled product images for reachability", self.check_images
            )
        )

        result = ValidationResult(
            timestamp=datetime.now(UTC),
            duration_seconds=time.monotonic() - started,
            overall_status=aggregate_status(checks),
            checks=checks,
        )
        logger.info(
            "validation_completed",
            overall_status=result.overall_status.value,
            **result.summary,
        )
        return result

    async def _guarded(
        self,
        name: str,
        description: str,
        check: Callable[[], Awaitable[tuple[CheckStatus, str, dict[str, Any]]]],
    ) -> ValidationCheck:
        try:
            status, message, details = await check()
        except Exception as e:
            logger.error("validation_check_failed", check=name, error=str(e))
            return ValidationCheck(
                name, description, CheckStatus.FAIL, f"Check could not complete: {e}"
            )
        return ValidationCheck(name, description, status, message, details)

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    async def destination_count(self, entity_type: str) -> int:
        """Aggregate count when available, otherwise page through everything."""
        count = await self.destination.get_count(entity_type)
        if count is not None:
            return count

        total = 0
        for page in range(1, MAX_COUNT_PAGES + 1):
            result = await self.destination.list(entity_type, None, page, COUNT_PAGE_LIMIT)
            total += len(result.items)
            if len(result.items) < COUNT_PAGE_LIMIT:
                break
        return total

    async def check_count(self, entity_type: str) -> tuple[CheckStatus, str, dict[str, Any]]:
        source_count = await self.source.get_count(entity_type)
        destination_count = await self.destination_count(entity_type)
        status, message = compare_counts(entity_type, source_count, destination_count)
        return status, message, {"source": source_count, "destination": destination_count}

    # ------------------------------------------------------------------
    # Sampled prices
    # ------------------------------------------------------------------

    async def check_prices(self) -> tuple[CheckStatus, str, dict[str, Any]]:
        sample = await self.destination.list("products", None, 1, self.config.sample_size)
        tolerance = self.config.price_tolerance

        compared = 0
        mismatches: list[dict[str, Any]] = []
        for item in sample.items:
            sku = item.get("sku")
            if not sku:
                continue
            matches = await self.source.get_page("products", 1, 1, {"sku": sku})
            if not matches:
                continue
            source_price = parse_number(matches[0].get("price"))
            destination_price = parse_number(item.get("price"))
            if source_price is None or destination_price is None:
                continue

            compared += 1
            difference = round(abs(source_price - destination_price), 6)
            if difference > tolerance:
                mismatches.append(
                    {
                        "sku": sku,
                        "source_price": source_price,
                        "destination_price": destination_price,
                    }
                )

        details = {"compared": compared, "mismatches": mismatches}
        if compared == 0:
            return CheckStatus.SKIPPED, "No products with matching SKUs to compare", details
        if mismatches:
            return (
                CheckStatus.FAIL,
                f"{len(mismatches)} of {compared} sampled prices differ by more than {tolerance}",
                details,
            )
        return CheckStatus.PASS, f"All {compared} sampled prices match", details

    # ------------------------------------------------------------------
    # Sampled images
    # ------------------------------------------------------------------

    async def _head_probe(self, url: str) -> bool:
        try:
            async with httpx.AsyncClient(
                timeout=self.config.image_timeout, follow_redirects=True
            ) as client:
                response = await client.head(url)
        except httpx.HTTPError as e:
            logger.debug("image_probe_failed", url=url, error=str(e))
            return False
        return response.status_code < 400

    async def check_images(self) -> tuple[CheckStatus, str, dict[str, Any]]:
        sample = await self.destination.list(
            "products", {"include": "images"}, 1, self.config.sample_size
        )

        urls = [url for url in (primary_image_url(item) for item in sample.items) if url]
        if not urls:
            return CheckStatus.WARNING, "No product images found to check", {"checked": 0}

        unreachable = [url for url in urls if not await self._image_probe(url)]
        details = {"checked": len(urls), "unreachable": unreachable}

        if not unreachable:
            return CheckStatus.PASS, f"All {len(urls)} sampled images are reachable", details
        if len(unreachable) == len(urls):
            return CheckStatus.FAIL, f"None of the {len(urls)} sampled images are reachable", details
        return (
            CheckStatus.WARNING,
            f"{len(unreachable)} of {len(urls)} sampled images are unreachable",
            details,
        )


def primary_image_url(product: dict[str, Any]) -> str | None:
    """URL of a product's thumbnail image, or its first image."""
    images = product.get("images") or []
    if not images:
        return None
    primary = next((image for image in images if image.get("is_thumbnail")), images[0])
    return primary.get("url_standard") or primary.get("image_url") or primary.get("url_zoom")
