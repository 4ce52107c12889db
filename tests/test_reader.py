"""Test paginated attestation listing and review aggregation."""

from __future__ import annotations

import json

import httpx
import pytest

from zkattest.sdk.errors import AttestationFetchFailed
from zkattest.sdk.models import IndexedAttestation
from zkattest.sdk.reader import AttestationReader, average_stars, extract_review, summarize_reviews

API_URL = "https://attestations.example.test/api"
DID = "did:iden3:billions:test:2VxnoiNqdMPyHMtUwAEzhnWqXGkEeJpAp4ntTkL8XT"
SCHEMA_ID = "0x" + "11" * 32


def review_item(index: int, stars: int = 5, comment: str = "ok") -> dict:
    decoded = [
        {"name": "stars", "type": "uint8", "value": {"name": "stars", "type": "uint8", "value": stars}},
        {"name": "comment", "type": "string", "value": {"name": "comment", "type": "string", "value": comment}},
    ]
    return {"id": f"att-{index}", "fromDid": f"did:reviewer:{index}", "decodedDataJson": json.dumps(decoded)}


def paged_transport(total: int, page_size: int, requests: list[httpx.Request], fail_page: int | None = None):
    """Mock index API serving ``total`` items in pages."""
    items = [review_item(i) for i in range(total)]
    total_pages = max(1, -(-total // page_size))

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        page = int(request.url.params["page_number"])
        if page == fail_page:
            return httpx.Response(500, json={"error": "boom"})
        start = (page - 1) * page_size
        return httpx.Response(200, json={
            "data": items[start:start + page_size],
            "totalPages": total_pages,
        })

    return httpx.MockTransport(handler)


def make_reader(transport: httpx.MockTransport) -> AttestationReader:
    return AttestationReader(API_URL, client=httpx.Client(transport=transport))


def test_all_pages_fetched_in_order() -> None:
    """Test 47 items over 3 pages come back complete and ordered."""
    requests: list[httpx.Request] = []
    reader = make_reader(paged_transport(47, 20, requests))

    attestations = reader.list_for_recipient(DID, SCHEMA_ID)

    assert [a.id for a in attestations] == [f"att-{i}" for i in range(47)]
    assert [int(r.url.params["page_number"]) for r in requests] == [1, 2, 3]
    assert requests[0].url.params["page_size"] == "20"
    assert requests[0].url.params["recipientDid"] == DID
    assert requests[0].url.params["schemaId"] == SCHEMA_ID
    assert requests[0].url.path.endswith("/attestations")


def test_single_page() -> None:
    requests: list[httpx.Request] = []
    reader = make_reader(paged_transport(3, 20, requests))

    assert len(reader.list_for_recipient(DID, SCHEMA_ID)) == 3
    assert len(requests) == 1


def test_empty_listing() -> None:
    """Test no attestations yields an empty list after one request."""
    requests: list[httpx.Request] = []
    reader = make_reader(paged_transport(0, 20, requests))

    assert reader.list_for_recipient(DID, SCHEMA_ID) == []
    assert len(requests) == 1


def test_failed_page_aborts_listing() -> None:
    """Test a failure on page 2 raises and no later page is requested."""
    requests: list[httpx.Request] = []
    reader = make_reader(paged_transport(47, 20, requests, fail_page=2))

    with pytest.raises(AttestationFetchFailed) as exc_info:
        reader.list_for_recipient(DID, SCHEMA_ID)

    assert exc_info.value.page_number == 2
    assert len(requests) == 2


def test_malformed_envelope() -> None:
    """Test a response without a data array is a fetch failure."""
    reader = make_reader(httpx.MockTransport(lambda request: httpx.Response(200, json={"items": []})))

    with pytest.raises(AttestationFetchFailed, match="malformed response"):
        reader.list_for_recipient(DID, SCHEMA_ID)


def test_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    reader = make_reader(httpx.MockTransport(handler))

    with pytest.raises(AttestationFetchFailed, match="connection refused"):
        reader.list_for_recipient(DID, SCHEMA_ID)


def test_reader_validation() -> None:
    with pytest.raises(ValueError, match="Attestations API URL is required"):
        AttestationReader("")
    with pytest.raises(ValueError, match="Page size must be positive"):
        AttestationReader(API_URL, page_size=0)


def test_summarize_reviews() -> None:
    """Test [5, 4, 5] averages to 4.67 over 3 reviews."""
    attestations = [
        IndexedAttestation.model_validate(review_item(i, stars=s, comment=f"c{i}"))
        for i, s in enumerate([5, 4, 5])
    ]

    summary = summarize_reviews(attestations)

    assert summary.count == 3
    assert summary.average_stars == 4.67
    assert [r.stars for r in summary.reviews] == [5, 4, 5]
    assert summary.reviews[1].comment == "c1"
    assert summary.reviews[1].from_did == "did:reviewer:1"


def test_summarize_no_reviews() -> None:
    summary = summarize_reviews([])

    assert summary.count == 0
    assert summary.average_stars == 0.0
    assert summary.reviews == []


def test_average_stars() -> None:
    assert average_stars([]) == 0.0
    assert average_stars([1, 2]) == 1.5
    assert average_stars([5, 5, 4]) == 4.67


def test_fields_found_by_name() -> None:
    """Test decoded fields are matched by name, not position."""
    decoded = [
        {"value": {"name": "comment", "value": "swapped"}},
        {"value": {"name": "stars", "value": 3}},
    ]
    attestation = IndexedAttestation(fromDid="did:x", decodedDataJson=json.dumps(decoded))

    review = extract_review(attestation)

    assert review.stars == 3
    assert review.comment == "swapped"


def test_missing_stars_field() -> None:
    attestation = IndexedAttestation(id="att-9", decodedDataJson=json.dumps([{"value": {"name": "comment", "value": "x"}}]))

    with pytest.raises(ValueError, match="att-9"):
        extract_review(attestation)
