from wareops.app.db.models.core_types import OrderStatus


def _setup(client, stock):
    client_id = client.post("/v1/clients", json={"name": "ACME Builders"}).json()["id"]
    supplier_id = client.post("/v1/suppliers", json={"name": "Pacific Supply", "country": "PF"}).json()["id"]
    product_id = client.post(
        "/v1/products",
        json={"sku": "CEM-25KG", "name": "Cement 25kg", "price": "9.50", "initial_stock": stock},
    ).json()["id"]
    return client_id, supplier_id, product_id


def test_health(client):
    r = client.get("/v1/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_product_initial_stock_goes_through_ledger(client):
    _, _, product_id = _setup(client, stock=12)

    history = client.get(f"/v1/products/{product_id}/history").json()
    assert [(h["delta"], h["stock"], h["reason"]) for h in history] == [(12, 12, "Initial stock")]

    r = client.post(f"/v1/products/{product_id}/adjust", json={"delta": -2, "reason": "Breakage"})
    assert r.json() == {"product_id": product_id, "stock": 10}


def test_duplicate_sku_conflict(client):
    _setup(client, stock=0)
    r = client.post("/v1/products", json={"sku": "CEM-25KG", "name": "Again"})
    assert r.status_code == 409


def test_order_backorder_and_receipt_flow(client):
    client_id, supplier_id, product_id = _setup(client, stock=2)

    # ---------- commande partielle ----------
    r = client.post("/v1/orders", json={"client_id": client_id, "lines": [{"product_id": product_id, "quantity": 6}]})
    assert r.status_code == 201
    order = r.json()
    assert order["status"] == OrderStatus.partially_fulfilled.value

    (bo,) = client.get("/v1/backorders", params={"status": "Pending"}).json()
    assert bo["quantity"] == 4

    # ---------- PO rattaché puis reçu ----------
    r = client.post(
        "/v1/purchase-orders",
        json={
            "supplier_id": supplier_id,
            "lines": [{"product_id": product_id, "quantity": 10, "backorder_id": bo["id"]}],
        },
    )
    assert r.status_code == 201
    po_id = r.json()["id"]

    r = client.patch(f"/v1/purchase-orders/{po_id}/status", json={"status": "Received"})
    assert r.status_code == 200
    assert r.json()["status"] == "Received"

    # second passage : no-op
    assert client.patch(f"/v1/purchase-orders/{po_id}/status", json={"status": "Received"}).status_code == 200

    detail = client.get(f"/v1/orders/{order['id']}").json()
    assert detail["status"] == OrderStatus.fulfilled.value
    assert detail["lines"][0]["qty_issued"] == 6

    products = client.get("/v1/products").json()
    assert products[0]["stock"] == 6

    issuances = client.get("/v1/issuances", params={"order_id": order["id"]}).json()
    assert len(issuances) == 2

    titles = [n["title"] for n in client.get("/v1/notifications").json()]
    assert "PO Received" in titles


def test_insufficient_stock_detail(client):
    client_id, _, product_id = _setup(client, stock=1)

    r = client.post(
        "/v1/issuances",
        json={"client_id": client_id, "issued_by": "Marama", "lines": [{"product_id": product_id, "quantity": 3}]},
    )

    assert r.status_code == 409
    detail = r.json()["detail"]
    assert (detail["product"], detail["available"], detail["requested"]) == ("Cement 25kg", 1, 3)


def test_delete_issuance_then_not_found(client):
    client_id, _, product_id = _setup(client, stock=5)
    r = client.post(
        "/v1/issuances",
        json={"client_id": client_id, "issued_by": "Marama", "lines": [{"product_id": product_id, "quantity": 5}]},
    )
    issuance_id = r.json()["id"]

    assert client.delete(f"/v1/issuances/{issuance_id}").status_code == 204
    assert client.delete(f"/v1/issuances/{issuance_id}").status_code == 404
    assert client.get("/v1/products").json()[0]["stock"] == 5


def test_validation_and_not_found(client):
    client_id, _, product_id = _setup(client, stock=5)

    r = client.post("/v1/orders", json={"client_id": client_id, "lines": [{"product_id": product_id, "quantity": 0}]})
    assert r.status_code == 422

    r = client.post("/v1/orders", json={"client_id": 999, "lines": [{"product_id": product_id, "quantity": 1}]})
    assert r.status_code == 404

    assert client.get("/v1/orders/999").status_code == 404
    assert client.patch("/v1/orders/999/status", json={"status": "Shipped"}).status_code == 404


def test_reconciliation_endpoint_and_notification_read(client):
    client_id, _, product_id = _setup(client, stock=0)
    order = client.post(
        "/v1/orders", json={"client_id": client_id, "lines": [{"product_id": product_id, "quantity": 3}]}
    ).json()
    assert order["status"] == OrderStatus.awaiting_purchase.value

    assert client.post("/v1/reconciliation/awaiting-orders").json() == {"updated_orders": []}

    client.post(f"/v1/products/{product_id}/adjust", json={"delta": 3, "reason": "Found in yard"})
    assert client.get(f"/v1/orders/{order['id']}").json()["status"] == OrderStatus.ready_for_issuance.value

    feed = client.get("/v1/notifications", params={"unread_only": True}).json()
    assert "Order Ready" in [n["title"] for n in feed]

    r = client.post(f"/v1/notifications/{feed[0]['id']}/read")
    assert r.json() == {"updated": 1}
    assert client.post("/v1/notifications/999/read").status_code == 404


def test_client_and_supplier_directory(client):
    client_id, supplier_id, product_id = _setup(client, stock=0)
    client.post("/v1/orders", json={"client_id": client_id, "lines": [{"product_id": product_id, "quantity": 1}]})

    r = client.get(f"/v1/clients/{client_id}")
    assert r.status_code == 200
    assert r.json() == {"id": client_id, "name": "ACME Builders", "project_name": None, "address": None, "orders": 1}

    r = client.get(f"/v1/suppliers/{supplier_id}")
    assert r.json() == {
        "id": supplier_id,
        "name": "Pacific Supply",
        "country": "PF",
        "lead_time_days": 14,
        "products": 0,
        "purchase_orders": 0,
    }
    assert [s["name"] for s in client.get("/v1/suppliers").json()] == ["Pacific Supply"]

    # nom fournisseur unique, casse ignorée
    assert client.post("/v1/suppliers", json={"name": "pacific supply"}).status_code == 409
    assert client.get("/v1/suppliers/999").status_code == 404
    assert client.get("/v1/clients/999").status_code == 404


def test_issuance_for_someone_elses_order_conflicts(client):
    client_id, _, product_id = _setup(client, stock=0)
    order = client.post(
        "/v1/orders", json={"client_id": client_id, "lines": [{"product_id": product_id, "quantity": 2}]}
    ).json()
    other_id = client.post("/v1/clients", json={"name": "Motu Hardware"}).json()["id"]
    client.post(f"/v1/products/{product_id}/adjust", json={"delta": 2, "reason": "Found in yard"})

    r = client.post(
        "/v1/issuances",
        json={
            "client_id": other_id,
            "order_id": order["id"],
            "issued_by": "Marama",
            "lines": [{"product_id": product_id, "quantity": 2}],
        },
    )

    assert r.status_code == 409
    assert client.get("/v1/products").json()[0]["stock"] == 2


def test_delete_pending_purchase_order(client):
    client_id, supplier_id, product_id = _setup(client, stock=0)
    client.post("/v1/orders", json={"client_id": client_id, "lines": [{"product_id": product_id, "quantity": 3}]})
    (bo,) = client.get("/v1/backorders", params={"status": "Pending"}).json()
    po_id = client.post(
        "/v1/purchase-orders",
        json={
            "supplier_id": supplier_id,
            "lines": [{"product_id": product_id, "quantity": 3, "backorder_id": bo["id"]}],
        },
    ).json()["id"]

    assert client.delete(f"/v1/purchase-orders/{po_id}").status_code == 204
    assert client.get(f"/v1/purchase-orders/{po_id}").status_code == 404
    assert client.delete(f"/v1/purchase-orders/{po_id}").status_code == 404

    (bo,) = client.get("/v1/backorders", params={"status": "Pending"}).json()
    assert bo["purchase_order_id"] is None


def test_received_purchase_order_cannot_be_deleted(client):
    _, supplier_id, product_id = _setup(client, stock=0)
    po_id = client.post(
        "/v1/purchase-orders",
        json={"supplier_id": supplier_id, "lines": [{"product_id": product_id, "quantity": 3}]},
    ).json()["id"]
    client.patch(f"/v1/purchase-orders/{po_id}/status", json={"status": "Received"})

    assert client.delete(f"/v1/purchase-orders/{po_id}").status_code == 409
    assert client.get("/v1/products").json()[0]["stock"] == 3
