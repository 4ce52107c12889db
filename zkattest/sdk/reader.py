"""Paginated attestation retrieval from the attestation index API and
review aggregation.

Pages are fetched sequentially and fully drained before returning; a failed
page aborts the whole listing. Aggregation functions are pure and operate on
already fetched attestations.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from zkattest.sdk.errors import AttestationFetchFailed
from zkattest.sdk.models import IndexedAttestation, Review, ReviewSummary

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
DEFAULT_TIMEOUT = 10.0


class AttestationReader:
    """Client for the attestation index API."""

    def __init__(
        self,
        base_url: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        client: httpx.Client | None = None,
    ):
        """Initialize reader.

        Args:
            base_url: Index API base URL
            page_size: Items requested per page
            client: Optional preconfigured httpx client (owned by caller)
        """
        if not base_url:
            raise ValueError("Attestations API URL is required")
        if page_size <= 0:
            raise ValueError("Page size must be positive")

        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._client = client
        self._owns_client = client is None

    def __enter__(self) -> AttestationReader:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self.base_url, timeout=DEFAULT_TIMEOUT)
        return self._client

    def list_for_recipient(self, recipient_did: str, schema_id: str) -> list[IndexedAttestation]:
        """Fetch every attestation for ``recipient_did`` under ``schema_id``.

        Raises:
            AttestationFetchFailed: any page could not be fetched or parsed
        """
        items, total_pages = self._fetch_page(recipient_did, schema_id, 1)
        for page_number in range(2, total_pages + 1):
            page_items, _ = self._fetch_page(recipient_did, schema_id, page_number)
            items.extend(page_items)

        logger.info("Fetched %d attestations for %s over %d page(s)", len(items), recipient_did, total_pages)
        return items

    def _fetch_page(self, recipient_did: str, schema_id: str, page_number: int) -> tuple[list[IndexedAttestation], int]:
        params = {
            "recipientDid": recipient_did,
            "schemaId": schema_id,
            "page_number": page_number,
            "page_size": self.page_size,
        }
        try:
            response = self.client.get(f"{self.base_url}/attestations", params=params)
            response.raise_for_status()
            envelope = response.json()
            items = [IndexedAttestation.model_validate(item) for item in envelope["data"]]
            total_pages = int(envelope.get("totalPages", 1))
        except httpx.HTTPError as e:
            raise AttestationFetchFailed(page_number, str(e)) from e
        except (ValueError, KeyError, TypeError) as e:
            raise AttestationFetchFailed(page_number, f"malformed response: {e}") from e

        logger.debug("Page %d: %d item(s), %d page(s) total", page_number, len(items), total_pages)
        return items, total_pages


def extract_review(attestation: IndexedAttestation) -> Review:
    """Pull the stars and comment fields out by name."""
    fields = attestation.decoded_fields()
    if "stars" not in fields:
        raise ValueError(f"Attestation {attestation.id or '?'} has no stars field")
    return Review(
        from_did=attestation.from_did,
        stars=int(fields["stars"]),
        comment=str(fields.get("comment", "")),
    )


def average_stars(stars: Iterable[int]) -> float:
    """Mean rating rounded to 2 decimals, 0.0 for no ratings."""
    values = list(stars)
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def summarize_reviews(attestations: Iterable[IndexedAttestation]) -> ReviewSummary:
    reviews = [extract_review(a) for a in attestations]
    return ReviewSummary(
        count=len(reviews),
        average_stars=average_stars(r.stars for r in reviews),
        reviews=reviews,
    )
