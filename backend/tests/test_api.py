# backend/tests/test_api.py
import os
import json
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# App & models
from billboard_rental.main import app, cors_options
from billboard_rental.api import deps as app_deps
from billboard_rental.models import Base, Billboard, SharedTransaction, SizePrice
from billboard_rental.services.pricing_cache import PricingCache
from billboard_rental.services.pricing_source import SqlPricingSource

# -----------------------------
# Test DB: separate SQLite file
# -----------------------------
TEST_DB_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "test_api.db"))
TEST_DB_URL = f"sqlite:///{TEST_DB_PATH}"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@event.listens_for(engine, "connect")
def _sqlite_fk_on(dbapi_connection, connection_record):
    # ledger rows must block billboard deletion, as on the hosted database
    dbapi_connection.execute("PRAGMA foreign_keys=ON")


# -----------------------------
# Dependency overrides
# -----------------------------
def override_get_db():
    """Swap the app's get_db for the test database."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[app_deps.get_db] = override_get_db
# lifespan does not run for a bare TestClient; inject the cache it would build
app.state.pricing_cache = PricingCache(SqlPricingSource(TestingSessionLocal))


# -----------------------------
# Pytest fixtures
# -----------------------------
@pytest.fixture(scope="session", autouse=True)
def _setup_test_db():
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        db.add_all(
            [
                Billboard(id=1, name="طريق المطار", size="12x4", level="عادي", faces_count=2, price=Decimal("700")),
                Billboard(id=2, name="الكورنيش", size="6x18", level="ممتاز", faces_count=1, price=Decimal("1500")),
                Billboard(
                    id=10,
                    name="شراكة 10",
                    size="4x12",
                    level="VIP",
                    is_partnership=True,
                    partner_companies="A,B",
                    capital=Decimal("100"),
                    capital_remaining=Decimal("100"),
                ),
                Billboard(id=20, name="للحذف", size="3x9"),
                Billboard(id=30, name="قيد الصيانة", size="4x12", status="صيانة"),
                SizePrice(name="4x12", installation_price=Decimal("1000")),
                SizePrice(name="18x6", installation_price=Decimal("1500")),
            ]
        )
        db.commit()
    finally:
        db.close()
    yield
    try:
        engine.dispose()
    except Exception:
        pass
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers():
    return {"Content-Type": "application/json"}


# -----------------------------
# System & pricing
# -----------------------------
def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_cors_options():
    assert cors_options(["*"]) == {"allow_origins": ["*"], "allow_credentials": False}
    assert cors_options(["http://localhost:5173/", " "]) == {
        "allow_origins": ["http://localhost:5173"],
        "allow_credentials": True,
    }
    assert cors_options([]) == {"allow_origins": [], "allow_credentials": False}


def test_monthly_price_static_fallback(client):
    r = client.get("/api/pricing/monthly", params={"size": "12x4", "level": "عادي", "customer": "عادي", "months": 3})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["size"] == "4x12"
    assert body["resolved"] is True
    assert Decimal(body["price"]) == Decimal("2000")


def test_unresolvable_price_is_null(client):
    r = client.get("/api/pricing/monthly", params={"size": "3x9", "months": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["price"] is None
    assert body["resolved"] is False


def test_pricing_row_upsert_refreshes_cache(client):
    payload = {"size": "24x8", "level": "vip", "customer_category": "شركات", "one_month": "5000", "one_day": "170"}
    r = client.post("/api/pricing/rows", headers=auth_headers(), data=json.dumps(payload))
    assert r.status_code == 200, r.text
    row = r.json()
    assert row["size"] == "8x24" and row["level"] == "VIP"

    # second post updates the same triple
    payload["one_month"] = "5200"
    r = client.post("/api/pricing/rows", headers=auth_headers(), data=json.dumps(payload))
    assert r.json()["id"] == row["id"]

    rows = client.get("/api/pricing/rows").json()
    assert len([x for x in rows if x["size"] == "8x24"]) == 1

    r = client.get("/api/pricing/monthly", params={"size": "8x24", "level": "VIP", "customer": "شركات", "months": 1})
    assert Decimal(r.json()["price"]) == Decimal("5200")
    # 12 months not priced live -> static 4500 × 8
    r = client.get("/api/pricing/monthly", params={"size": "8x24", "level": "VIP", "customer": "شركات", "months": 12})
    assert Decimal(r.json()["price"]) == Decimal("36000")

    r = client.get("/api/pricing/daily", params={"size": "8x24", "level": "VIP", "customer": "شركات"})
    assert Decimal(r.json()["price"]) == Decimal("170")


def test_categories_and_refresh(client):
    cats = client.get("/api/pricing/categories").json()["categories"]
    assert cats[:4] == ["عادي", "المدينة", "مسوق", "شركات"]

    r = client.post("/api/pricing/refresh")
    assert r.status_code == 200, r.text
    assert r.json()["scheduled"] is False

    r = client.post("/api/pricing/refresh", params={"background": "true"})
    assert r.status_code == 200
    assert r.json() == {"scheduled": True}


# -----------------------------
# Contracts
# -----------------------------
def _terms(**extra):
    body = {
        "billboard_ids": [1, 2],
        "customer_category": "عادي",
        "pricing_mode": "months",
        "duration_months": 3,
        "start_date": "2025-01-01",
        "discount_type": "percent",
        "discount_value": "10",
    }
    body.update(extra)
    return body


def test_contract_preview(client):
    r = client.post("/api/contracts/preview", headers=auth_headers(), data=json.dumps(_terms(installments_count=3)))
    assert r.status_code == 200, r.text
    pv = r.json()

    # 4x12 عادي: 800 × 2.5, 6x18 ممتاز: 2250 × 2.5
    assert pv["estimated_total"] == "7625.00"
    fin = pv["financials"]
    assert fin["discount_amount"] == "762.50"
    assert fin["final_total"] == "6862.50"
    # 1000 halved for the two-faced board + 1500
    assert fin["installation_cost"] == "2000.00"
    assert fin["rental_cost_only"] == "4862.50"
    assert fin["operating_fee"] == "145.88"
    assert pv["end_date"] == "2025-04-01"

    amounts = [Decimal(i["amount"]) for i in pv["installments"]]
    assert sum(amounts) == Decimal("6862.50")
    assert pv["installments"][0]["paymentType"] == "عند التوقيع"
    assert pv["installments"][1]["dueDate"] == "2025-02-01"
    assert pv["installment_check"]["is_valid"] is True


def test_contract_preview_errors(client):
    r = client.post("/api/contracts/preview", headers=auth_headers(), data=json.dumps(_terms(billboard_ids=[999])))
    assert r.status_code == 404

    r = client.post("/api/contracts/preview", headers=auth_headers(), data=json.dumps(_terms(discount_type="coupon")))
    assert r.status_code == 422


def test_installments_distribute_and_check(client):
    r = client.post("/api/contracts/installments/distribute", headers=auth_headers(), data=json.dumps({"total": "100", "count": 3}))
    assert r.status_code == 200, r.text
    assert [i["amount"] for i in r.json()["installments"]] == ["33.33", "33.33", "33.34"]

    r = client.post("/api/contracts/installments/distribute", headers=auth_headers(), data=json.dumps({"total": "100", "count": 0}))
    assert r.status_code == 422

    r = client.post(
        "/api/contracts/installments/check",
        headers=auth_headers(),
        data=json.dumps({"installments": [{"amount": "500"}], "final_total": "1000"}),
    )
    assert r.status_code == 200
    chk = r.json()
    assert chk["is_valid"] is False
    assert Decimal(chk["difference"]) == Decimal("-500")

    r = client.post(
        "/api/contracts/installments/check",
        headers=auth_headers(),
        data=json.dumps({"installments": [{"amount": "500", "payment_type": "weekly"}], "final_total": "500"}),
    )
    assert r.status_code == 422


def test_contract_save_get_edit_delete(client):
    payload = _terms(
        customer_name="شركة النور",
        ad_type="مطاعم",
        installments=[
            {"amount": "3000", "payment_type": "عند التوقيع", "due_date": "2025-01-01"},
            {"amount": "3862.50", "payment_type": "شهري", "due_date": "2025-02-01"},
        ],
    )
    r = client.put("/api/contracts/C-100", headers=auth_headers(), data=json.dumps(payload))
    assert r.status_code == 200, r.text
    saved = r.json()
    assert saved["contract_number"] == "C-100"
    assert Decimal(saved["financials"]["final_total"]) == Decimal("6862.50")
    assert saved["billboard_ids"] == ["1", "2"]
    assert saved["installment_check"]["is_valid"] is True

    # booked boards are no longer available while the contract runs
    boards = {b["id"]: b for b in client.get("/api/billboards", params={"today": "2025-02-01"}).json()}
    assert boards[1]["available"] is False and boards[2]["available"] is False
    assert boards[1]["contract_number"] == "C-100"
    assert boards[30]["available"] is False  # maintenance
    assert boards[20]["available"] is True

    r = client.get("/api/contracts/C-100")
    assert r.status_code == 200
    assert r.json()["installments"][1]["amount"] == "3862.50"

    # drop billboard 2 from the contract
    r = client.put("/api/contracts/C-100", headers=auth_headers(), data=json.dumps(dict(payload, billboard_ids=[1])))
    assert r.status_code == 200, r.text
    assert r.json()["installment_check"]["is_valid"] is False  # stored as sent, only reported
    boards = {b["id"]: b for b in client.get("/api/billboards", params={"today": "2025-02-01"}).json()}
    assert boards[2]["available"] is True

    r = client.delete("/api/contracts/C-100")
    assert r.status_code == 204
    assert client.get("/api/contracts/C-100").status_code == 404
    boards = {b["id"]: b for b in client.get("/api/billboards", params={"today": "2025-02-01"}).json()}
    assert boards[1]["available"] is True


# -----------------------------
# Shared billboards
# -----------------------------
def test_shared_billboard_split_and_apply(client):
    r = client.post("/api/shared-billboards/10/split-preview", headers=auth_headers(), data=json.dumps({"rent_amount": "1000"}))
    assert r.status_code == 200, r.text
    pv = r.json()
    assert pv["split"]["phase"] == "recovery"
    assert (pv["split"]["company"], pv["split"]["partner"], pv["split"]["deduct"]) == ("350.00", "350.00", "300.00")
    assert [e["beneficiary"] for e in pv["entries"]] == ["الفارس", "A", "B", "رأس المال"]

    r = client.post("/api/shared-billboards/10/apply-rent", headers=auth_headers(), data=json.dumps({"rent_amount": "1000"}))
    assert r.status_code == 200, r.text

    listed = {b["id"]: b for b in client.get("/api/shared-billboards").json()}
    assert listed[10]["phase"] == "profit_sharing"
    assert Decimal(listed[10]["capital_remaining"]) == Decimal("0")
    assert listed[10]["recovered_pct"] == 100

    r = client.post("/api/shared-billboards/10/apply-rent", headers=auth_headers(), data=json.dumps({"rent_amount": "1000"}))
    assert r.json()["split"]["phase"] == "profit_sharing"
    assert r.json()["split"]["company"] == "500.00"

    db = TestingSessionLocal()
    try:
        assert db.query(SharedTransaction).filter(SharedTransaction.billboard_id == 10).count() == 7
    finally:
        db.close()

    r = client.post("/api/shared-billboards/10/apply-rent", headers=auth_headers(), data=json.dumps({"rent_amount": "0"}))
    assert r.status_code == 400
    r = client.post("/api/shared-billboards/20/split-preview", headers=auth_headers(), data=json.dumps({"rent_amount": "10"}))
    assert r.status_code == 404


# -----------------------------
# Billboard deletion
# -----------------------------
def test_delete_billboard(client):
    assert client.delete("/api/billboards/20").status_code == 204
    assert client.delete("/api/billboards/20").status_code == 404


def test_delete_billboard_with_ledger_is_conflict(client):
    db = TestingSessionLocal()
    try:
        db.add(SharedTransaction(billboard_id=10, beneficiary="الفارس", amount=Decimal("1"), type="rental_income"))
        db.commit()
    finally:
        db.close()
    r = client.delete("/api/billboards/10")
    assert r.status_code == 409, r.text
