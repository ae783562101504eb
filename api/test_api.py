"""
Tests for the HTTP API routes.
"""
import pytest
from fastapi.testclient import TestClient

from carlisting.models import ListingRecord
from carlisting.records import to_listing_record
from carlisting.scraper import extract_from_markup

from api.config import config
from api.database import init_database, save_record
from api.main import app


@pytest.fixture
def client(db_path, monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", db_path)
    init_database()
    return TestClient(app)


@pytest.fixture
def seeded(client, listing_html, listing_url):
    compass = to_listing_record(extract_from_markup(listing_html, listing_url).data)
    save_record(compass)
    save_record(ListingRecord(
        listing_id="swift1", brand="Maruti", car_model="Swift", price=450000, city="Delhi",
        fuel_type="petrol", transmission="manual", year=2017, owner_name="Anita Desai",
    ))
    save_record(ListingRecord(
        listing_id="city1", brand="Honda", car_model="City", price=900000, city="Mumbai",
        fuel_type="petrol", transmission="automatic", year=2019,
    ))
    return compass


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


def test_list_all(seeded, client):
    body = client.get("/api/listings").json()
    assert body["total"] == 3
    assert len(body["items"]) == 3


def test_list_filtered_and_sorted(seeded, client):
    body = client.get("/api/listings", params={"fuel_type": "petrol", "sort": "price_asc"}).json()
    assert body["total"] == 2
    assert [item["listing_id"] for item in body["items"]] == ["swift1", "city1"]

    body = client.get("/api/listings", params=[("city", "Pune"), ("city", "delhi")]).json()
    assert body["total"] == 2

    body = client.get("/api/listings", params={"min_price": 500000, "max_year": 2020}).json()
    assert [item["listing_id"] for item in body["items"]] == ["city1"]


def test_list_pagination(seeded, client):
    body = client.get("/api/listings", params={"sort": "price_desc", "limit": 1, "offset": 1}).json()
    assert body["total"] == 3
    assert [item["listing_id"] for item in body["items"]] == ["city1"]


def test_unknown_sort(seeded, client):
    assert client.get("/api/listings", params={"sort": "colour"}).status_code == 400


def test_get_listing_masks_owner(seeded, client):
    body = client.get("/api/listings/swift1").json()
    assert body["price_display"] == "₹4,50,000"
    assert body["owner_display"] == "Anita D."
    assert "owner_name" not in body


def test_get_listing_not_found(client):
    assert client.get("/api/listings/missing").status_code == 404


def test_price_history(seeded, client):
    points = client.get(f"/api/listings/{seeded.listing_id}/price-history").json()
    assert [p["price"] for p in points] == [1575000]
    assert client.get("/api/listings/missing/price-history").status_code == 404


def test_export_csv(seeded, client):
    response = client.get("/api/export/csv", params={"brand": "Honda"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("listing_id,")
    assert len(lines) == 2


def test_stats(seeded, client):
    body = client.get("/api/stats").json()
    assert body["total_listings"] == 3
    assert body["by_city"] == {"Pune": 1, "Delhi": 1, "Mumbai": 1}
    assert body["min_price"] == 450000


def test_extract_and_save(client, listing_html, listing_url):
    response = client.post("/api/extract", json={
        "source_url": listing_url, "markup": listing_html, "save": True,
    })
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["data"]["price"] == 1575000
    assert body["price_display"] == "₹15,75,000"
    assert client.get(f"/api/listings/{body['listing_id']}").status_code == 200


def test_extract_failure_is_not_an_http_error(client):
    response = client.post("/api/extract", json={"markup": "<h1>Honda City</h1>"})
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert body["error"]["kind"] == "missing_required_field"
    assert body["error"]["field"] == "price"
    assert client.get("/api/listings").json()["total"] == 0
