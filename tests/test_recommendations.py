from decimal import Decimal

import pytest
import requests

from storefront.domain.errors import ServerError
from storefront.services import recommendation_client as rc
from storefront.services.cart_service import CartService
from storefront.services.recommendation_client import RecommendationClient

USER = 5


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")

    def json(self):
        return self.payload


@pytest.fixture
def recommending_cart_service(session_factory, lock_service):
    session = session_factory()
    yield CartService(session, lock_service, RecommendationClient(base_url="http://recommender.test"))
    session.close()


def test_disabled_client_returns_nothing(cart_service, make_product):
    make_product()

    assert cart_service.recommendations(USER) == []


def test_maps_suggestions_onto_catalog(recommending_cart_service, make_product, monkeypatch):
    shirt = make_product(name="Shirt", price="10.00", variants={"M": 5})
    socks = make_product(name="Socks", price="5.50", variants={"L": 4})
    recommending_cart_service.add_item(USER, shirt, "M", 1)
    seen = {}

    def fake_post(url, json, timeout):
        seen["url"] = url
        seen["snapshot"] = json
        return FakeResponse(
            {
                "recommended": [
                    {"product_id": 999, "reason": "invented"},
                    {"product_id": socks, "reason": "goes with the shirt"},
                    {"product_id": "oops"},
                    {"product_id": shirt, "reason": "again"},
                ]
            }
        )

    monkeypatch.setattr(rc.requests, "post", fake_post)

    suggestions = recommending_cart_service.recommendations(USER)

    assert seen["url"] == "http://recommender.test/recommendations"
    assert seen["snapshot"]["cart"] == [{"product_id": shirt, "size": "M", "quantity": 1}]
    assert {p["product_id"] for p in seen["snapshot"]["catalog"]} == {shirt, socks}
    assert suggestions == [
        {"product_id": socks, "name": "Socks", "price": Decimal("5.50"), "reason": "goes with the shirt"},
        {"product_id": shirt, "name": "Shirt", "price": Decimal("10.00"), "reason": "again"},
    ]


def test_malformed_payload_yields_no_suggestions(recommending_cart_service, make_product, monkeypatch):
    make_product()
    monkeypatch.setattr(rc.requests, "post", lambda url, json, timeout: FakeResponse({"reply": "hi"}))

    assert recommending_cart_service.recommendations(USER) == []


def test_unreachable_recommender_is_server_error(recommending_cart_service, make_product, monkeypatch):
    make_product()
    calls = []

    def failing_post(url, json, timeout):
        calls.append(url)
        raise requests.ConnectionError("down")

    monkeypatch.setattr(rc.requests, "post", failing_post)
    # bez czekania miedzy probami
    monkeypatch.setattr(RecommendationClient.recommend.retry, "sleep", lambda seconds: None)

    with pytest.raises(ServerError):
        recommending_cart_service.recommendations(USER)

    assert len(calls) == 3
