from decimal import Decimal

from fastapi.testclient import TestClient

from fabquote.main import app
from conftest import seed_tenant

BASE = "/api/v1/quotes"


def money(value):
    return Decimal(str(value))


def quote_payload(tenant, **overrides):
    payload = {
        "clientId": tenant["client_id"],
        "title": "Balcony railing",
        "description": "Powder coated",
        "validUntil": "2030-05-01",
        "discountPercentage": 10,
        "items": [
            {"productRef": tenant["steel_id"], "quantity": 2, "unitPrice": 100.0},
            {"productRef": tenant["plate_id"], "quantity": 1, "unitPrice": 50.0},
        ],
    }
    payload.update(overrides)
    return payload


def create_quote(api, tenant, **overrides):
    res = api.post(BASE, json=quote_payload(tenant, **overrides))
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_create_quote_returns_201_and_hydrated_body(api, tenant, audit_sink):
    res = api.post(BASE, json=quote_payload(tenant))
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    data = body["data"]
    assert data["status"] == "DRAFT"
    assert money(data["subtotal"]) == Decimal("250.00")
    assert money(data["total"]) == Decimal("225.00")
    assert data["clientName"] == "Owner Client"
    assert data["clientPhone"] == "555-0100"
    assert data["ownerName"] == "Owner"
    assert data["validUntil"] == "2030-05-01"
    assert [i["productName"] for i in data["items"]] == ["Steel beam", "Aluminium plate"]
    assert {"id", "publicId", "createdAt", "updatedAt"} <= set(data)
    assert audit_sink.actions() == ["CREATE"]


def test_get_round_trip_matches_stored_subtotal(api, tenant):
    created = create_quote(api, tenant)
    res = api.get(f"{BASE}/{created['id']}")
    assert res.status_code == 200
    data = res.json()["data"]
    assert sum(money(i["total"]) for i in data["items"]) == money(data["subtotal"])


def test_create_validation_errors_use_envelope(api, tenant):
    bad_items = quote_payload(
        tenant,
        items=[{"productRef": tenant["steel_id"], "serviceRef": tenant["welding_id"], "quantity": 1, "unitPrice": 1}],
    )
    res = api.post(BASE, json=bad_items)
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"]["message"] == "Validation failed"
    assert "items.0" in body["error"]["field_errors"]

    res = api.post(
        BASE,
        json=quote_payload(tenant, items=[{"productRef": tenant["steel_id"], "quantity": -1, "unitPrice": 1}]),
    )
    assert res.status_code == 400
    assert "items.0.quantity" in res.json()["error"]["field_errors"]

    res = api.post(BASE, json={"clientId": tenant["client_id"]})
    assert res.status_code == 400
    assert "title" in res.json()["error"]["field_errors"]


def test_item_level_discount_is_rejected(api, tenant):
    payload = quote_payload(
        tenant,
        items=[{"productRef": tenant["steel_id"], "quantity": 1, "unitPrice": 10, "discount": 5}],
    )
    res = api.post(BASE, json=payload)
    assert res.status_code == 400
    assert "items.0.discount" in res.json()["error"]["field_errors"]


def test_create_with_unknown_client_is_404(api, tenant):
    res = api.post(BASE, json=quote_payload(tenant, clientId=424242))
    assert res.status_code == 404
    assert res.json() == {
        "success": False,
        "error": {"message": "Client not found", "field_errors": {"client_id": "not_found"}},
    }


def test_update_discount_only(api, tenant, audit_sink):
    created = create_quote(api, tenant)
    res = api.put(
        f"{BASE}/{created['id']}",
        json={"discountAmount": 25, "discountPercentage": 0},
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert money(data["subtotal"]) == Decimal("250.00")
    assert money(data["total"]) == Decimal("225.00")
    assert len(data["items"]) == 2
    assert audit_sink.actions()[-1] == "UPDATE"


def test_update_replaces_items(api, tenant):
    created = create_quote(api, tenant)
    res = api.put(
        f"{BASE}/{created['id']}",
        json={"items": [{"serviceRef": tenant["welding_id"], "quantity": 2, "unitPrice": 80}]},
    )
    data = res.json()["data"]
    assert [i["serviceName"] for i in data["items"]] == ["Welding"]
    assert money(data["subtotal"]) == Decimal("160.00")
    assert money(data["total"]) == Decimal("144.00")

    res = api.put(f"{BASE}/{created['id']}", json={"items": []})
    assert res.json()["data"]["items"] == []
    assert money(res.json()["data"]["total"]) == 0


def test_update_rejects_status_and_null_title(api, tenant):
    created = create_quote(api, tenant)
    res = api.put(f"{BASE}/{created['id']}", json={"status": "SENT"})
    assert res.status_code == 400
    res = api.put(f"{BASE}/{created['id']}", json={"title": None})
    assert res.status_code == 400
    assert api.get(f"{BASE}/{created['id']}").json()["data"]["status"] == "DRAFT"


def test_status_flow_is_permissive(api, tenant, audit_sink):
    created = create_quote(api, tenant)
    url = f"{BASE}/{created['id']}/status"
    for status in ("SENT", "ACCEPTED", "DRAFT"):
        res = api.put(url, json={"status": status})
        assert res.status_code == 200
        assert res.json()["data"]["status"] == status
    assert audit_sink.actions().count("STATUS_UPDATE") == 3


def test_invalid_status_is_400(api, tenant):
    created = create_quote(api, tenant)
    res = api.put(f"{BASE}/{created['id']}/status", json={"status": "WON"})
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Invalid status"


def test_duplicate_endpoint(api, tenant, audit_sink):
    created = create_quote(api, tenant)
    res = api.post(f"{BASE}/{created['id']}/duplicate")
    assert res.status_code == 201
    copy = res.json()["data"]
    assert copy["id"] != created["id"]
    assert copy["publicId"] != created["publicId"]
    assert copy["status"] == "DRAFT"
    assert copy["validUntil"] is None
    assert copy["total"] == created["total"]
    assert len(copy["items"]) == 2
    assert audit_sink.actions()[-1] == "DUPLICATE"


def test_delete_hides_quote_everywhere(api, tenant, audit_sink):
    created = create_quote(api, tenant)
    res = api.delete(f"{BASE}/{created['id']}")
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert api.get(f"{BASE}/{created['id']}").status_code == 404
    assert api.put(f"{BASE}/{created['id']}", json={"title": "x"}).status_code == 404
    assert api.get(BASE).json()["data"]["pagination"]["total"] == 0
    assert audit_sink.actions()[-1] == "DELETE"


def test_cross_tenant_access_is_404(api, tenant, Session, login):
    created = create_quote(api, tenant)
    other = seed_tenant(Session, email="other@test.com", name="Other")
    login(other["user_id"])
    res = api.get(f"{BASE}/{created['id']}")
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Quote not found"
    assert api.delete(f"{BASE}/{created['id']}").status_code == 404
    assert api.get(BASE).json()["data"]["quotes"] == []


def test_list_filters_sort_and_pagination(api, tenant):
    create_quote(api, tenant, title="Alpha gate", validUntil="2030-01-10")
    beta = create_quote(api, tenant, title="Beta fence", validUntil="2030-02-10", items=[])
    create_quote(api, tenant, title="Gamma stair", validUntil="2030-03-10", description="spiral GATE")
    api.put(f"{BASE}/{beta['id']}/status", json={"status": "SENT"})

    res = api.get(BASE, params={"sort": "title", "order": "ASC", "limit": 2})
    assert res.status_code == 200
    data = res.json()["data"]
    assert [q["title"] for q in data["quotes"]] == ["Alpha gate", "Beta fence"]
    assert data["pagination"] == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "totalPages": 2,
        "hasNext": True,
        "hasPrev": False,
    }
    assert data["quotes"][0]["clientName"] == "Owner Client"
    assert "items" not in data["quotes"][0]

    page2 = api.get(BASE, params={"sort": "title", "order": "asc", "limit": 2, "page": 2}).json()["data"]
    assert [q["title"] for q in page2["quotes"]] == ["Gamma stair"]
    assert page2["pagination"]["hasPrev"] is True

    search = api.get(BASE, params={"search": "gate"}).json()["data"]
    assert sorted(q["title"] for q in search["quotes"]) == ["Alpha gate", "Gamma stair"]

    sent = api.get(BASE, params={"status": "SENT"}).json()["data"]
    assert [q["title"] for q in sent["quotes"]] == ["Beta fence"]

    window = api.get(BASE, params={"validFrom": "2030-02-01", "validTo": "2030-03-10"}).json()["data"]
    assert sorted(q["title"] for q in window["quotes"]) == ["Beta fence", "Gamma stair"]

    by_total = api.get(BASE, params={"sort": "total", "order": "desc"}).json()["data"]
    assert by_total["quotes"][-1]["title"] == "Beta fence"

    by_client = api.get(BASE, params={"clientId": tenant["client_id"]}).json()["data"]
    assert by_client["pagination"]["total"] == 3


def test_search_treats_wildcards_literally(api, tenant):
    create_quote(api, tenant, title="100% steel")
    create_quote(api, tenant, title="Plain steel")
    res = api.get(BASE, params={"search": "%"}).json()["data"]
    assert [q["title"] for q in res["quotes"]] == ["100% steel"]


def test_list_rejects_bad_parameters(api, tenant):
    assert api.get(BASE, params={"sort": "clientId"}).status_code == 400
    assert api.get(BASE, params={"sort": "title; drop table quotes"}).status_code == 400
    res = api.get(BASE, params={"order": "sideways"})
    assert res.status_code == 400
    assert res.json()["error"]["field_errors"] == {"order": "must be asc or desc"}
    assert api.get(BASE, params={"status": "LOST"}).status_code == 400
    assert api.get(BASE, params={"limit": 0}).status_code == 400
    assert api.get(BASE, params={"page": 0}).status_code == 400
    res = api.get(BASE, params={"validFrom": "2030-05-01", "validTo": "2030-01-01"})
    assert res.status_code == 400
    assert "validFrom" in res.json()["error"]["field_errors"]


def test_stats(api, tenant):
    a = create_quote(api, tenant)
    b = create_quote(api, tenant, items=[{"serviceRef": tenant["welding_id"], "quantity": 1, "unitPrice": 75}], discountPercentage=None)
    c = create_quote(api, tenant, items=[])
    api.put(f"{BASE}/{a['id']}/status", json={"status": "ACCEPTED"})
    api.put(f"{BASE}/{b['id']}/status", json={"status": "SENT"})
    api.delete(f"{BASE}/{c['id']}")

    res = api.get(f"{BASE}/stats")
    assert res.status_code == 200
    stats = res.json()["data"]
    assert stats["totalQuotes"] == 2
    assert stats["acceptedQuotes"] == 1
    assert stats["sentQuotes"] == 1
    assert stats["draftQuotes"] == 0
    assert money(stats["acceptedValue"]) == Decimal("225.00")
    assert money(stats["averageValue"]) == Decimal("150.00")
    assert sum(m["count"] for m in stats["monthly"]) == 2
    assert all(len(m["month"]) == 7 for m in stats["monthly"])


def test_stats_empty(api):
    stats = api.get(f"{BASE}/stats").json()["data"]
    assert stats["totalQuotes"] == 0
    assert money(stats["averageValue"]) == 0
    assert stats["monthly"] == []


def test_public_link(api, tenant, audit_sink):
    created = create_quote(api, tenant)
    res = api.post(f"{BASE}/{created['id']}/public-link")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["publicId"] == created["publicId"]
    assert data["url"].endswith(f"/quotes/public/{created['publicId']}")
    assert audit_sink.actions()[-1] == "GENERATE_PUBLIC_LINK"


def test_requires_authentication(Session, tenant):
    client = TestClient(app)
    res = client.get(BASE)
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_bearer_token_authenticates(Session, tenant, audit_sink):
    from fabquote.utils.auth import create_access_token

    client = TestClient(app)
    token = create_access_token(tenant["user_id"])
    res = client.get(BASE, headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert client.get(BASE, headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_healthz():
    assert TestClient(app).get("/healthz").json() == {"status": "ok"}


def test_discount_with_sub_cent_precision_is_400(api, tenant):
    res = api.post(BASE, json=quote_payload(tenant, discountPercentage=12.345))
    assert res.status_code == 400
    assert "discountPercentage" in res.json()["error"]["field_errors"]

    created = create_quote(api, tenant)
    res = api.put(f"{BASE}/{created['id']}", json={"discountAmount": 1.005})
    assert res.status_code == 400
    assert "discountAmount" in res.json()["error"]["field_errors"]
    assert money(api.get(f"{BASE}/{created['id']}").json()["data"]["total"]) == Decimal("225.00")
