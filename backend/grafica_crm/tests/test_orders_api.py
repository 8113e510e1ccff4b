import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grafica_crm.models.order import Order, OrderImage


def _create(client, headers, payload):
    r = client.post("/api/orders", json=payload, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["ids"]


def test_single_order_has_no_batch(client, auth_headers, customer_id, order_payload):
    ids = _create(client, auth_headers, order_payload(customer_id))
    assert len(ids) == 1

    r = client.get(f"/api/orders/{ids[0]}", headers=auth_headers)
    assert r.status_code == 200
    order = r.json()
    assert order["batch_id"] is None
    assert order["batch_items"] is None
    assert order["customer_name"] == "Ana"
    assert order["customer_phone"] == "11999990000"
    assert order["status"] == "Orçamento"
    assert order["images"] == []


def test_single_order_accepts_list_of_one(client, auth_headers, customer_id, order_payload):
    ids = _create(client, auth_headers, [order_payload(customer_id)])
    order = client.get(f"/api/orders/{ids[0]}", headers=auth_headers).json()
    assert order["batch_id"] is None


def test_multi_item_order_shares_batch(client, auth_headers, customer_id, order_payload):
    ids = _create(client, auth_headers, [
        order_payload(customer_id, quantity=2, unit_price=10.0, total_price=20.0),
        order_payload(customer_id, service_type="Adesivo", quantity=1, unit_price=5.0, total_price=5.0),
    ])
    assert len(ids) == 2

    first = client.get(f"/api/orders/{ids[0]}", headers=auth_headers).json()
    second = client.get(f"/api/orders/{ids[1]}", headers=auth_headers).json()
    assert first["batch_id"]
    assert first["batch_id"].startswith("batch_")
    assert first["batch_id"] == second["batch_id"]
    assert first["total_price"] == 20.0
    assert second["total_price"] == 5.0
    assert [item["id"] for item in first["batch_items"]] == ids

    r = client.get("/api/orders", params={"grouped": "true"}, headers=auth_headers)
    grouped = r.json()
    assert len(grouped) == 1
    assert grouped[0]["service_type"] == "DIVERSOS"
    assert grouped[0]["total_price"] == 25.0
    assert grouped[0]["is_group"] is True
    assert len(grouped[0]["batch_items"]) == 2


def test_list_orders_newest_first_with_customer(client, auth_headers, customer_id, order_payload):
    _create(client, auth_headers, order_payload(customer_id, order_date="2024-01-05"))
    _create(client, auth_headers, order_payload(customer_id, order_date="2024-03-05"))
    _create(client, auth_headers, order_payload(customer_id, order_date="2024-02-05"))

    orders = client.get("/api/orders", headers=auth_headers).json()
    assert [o["order_date"] for o in orders] == ["2024-03-05", "2024-02-05", "2024-01-05"]
    assert all(o["customer_name"] == "Ana" for o in orders)


def test_list_orders_filtered_by_status(client, auth_headers, customer_id, order_payload):
    _create(client, auth_headers, order_payload(customer_id, status="Entregue"))
    _create(client, auth_headers, order_payload(customer_id, status="Arquivado"))

    r = client.get("/api/orders", params={"status": "Arquivado"}, headers=auth_headers)
    assert [o["status"] for o in r.json()] == ["Arquivado"]


def test_total_price_computed_when_missing(client, auth_headers, customer_id, order_payload):
    payload = order_payload(customer_id, quantity=3, unit_price=2.5)
    del payload["total_price"]
    ids = _create(client, auth_headers, payload)
    assert client.get(f"/api/orders/{ids[0]}", headers=auth_headers).json()["total_price"] == 7.5


def test_empty_dates_from_form_are_accepted(client, auth_headers, customer_id, order_payload):
    ids = _create(client, auth_headers, order_payload(customer_id, delivery_date=""))
    order = client.get(f"/api/orders/{ids[0]}", headers=auth_headers).json()
    assert order["delivery_date"] is None
    assert order["notes"] is None


def test_images_are_stored_per_order(client, auth_headers, customer_id, order_payload, db):
    images = ["data:image/png;base64,AAA", "data:image/png;base64,BBB"]
    ids = _create(client, auth_headers, [
        order_payload(customer_id, images=images),
        order_payload(customer_id, images=[]),
    ])
    assert client.get(f"/api/orders/{ids[0]}", headers=auth_headers).json()["images"] == images
    assert client.get(f"/api/orders/{ids[1]}", headers=auth_headers).json()["images"] == []
    assert db.query(OrderImage).count() == 2


def test_status_update_cascades_to_batch(client, auth_headers, customer_id, order_payload):
    batch_ids = _create(client, auth_headers, [order_payload(customer_id) for _ in range(3)])
    single_id = _create(client, auth_headers, order_payload(customer_id))[0]

    r = client.patch(f"/api/orders/{batch_ids[1]}/status", json={"status": "Em Produção"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    for order_id in batch_ids:
        order = client.get(f"/api/orders/{order_id}", headers=auth_headers).json()
        assert order["status"] == "Em Produção"
    single = client.get(f"/api/orders/{single_id}", headers=auth_headers).json()
    assert single["status"] == "Orçamento"

    r = client.patch(f"/api/orders/{single_id}/status", json={"status": "Entregue"}, headers=auth_headers)
    assert r.status_code == 200
    assert client.get(f"/api/orders/{single_id}", headers=auth_headers).json()["status"] == "Entregue"


def test_status_update_rejects_unknown_status(client, auth_headers, customer_id, order_payload):
    order_id = _create(client, auth_headers, order_payload(customer_id))[0]
    r = client.patch(f"/api/orders/{order_id}/status", json={"status": "Cancelado"}, headers=auth_headers)
    assert r.status_code == 422


def test_delete_cascades_to_batch(client, auth_headers, customer_id, order_payload, db):
    batch_ids = _create(client, auth_headers, [
        order_payload(customer_id, images=["data:image/png;base64,AAA"]),
        order_payload(customer_id),
    ])
    single_id = _create(client, auth_headers, order_payload(customer_id))[0]

    r = client.delete(f"/api/orders/{batch_ids[1]}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    for order_id in batch_ids:
        assert client.get(f"/api/orders/{order_id}", headers=auth_headers).status_code == 404
    assert client.get(f"/api/orders/{single_id}", headers=auth_headers).status_code == 200
    assert db.query(OrderImage).count() == 0


def test_unknown_order_returns_404(client, auth_headers):
    r = client.get("/api/orders/9999", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Pedido não encontrado"}
    assert client.patch("/api/orders/9999/status", json={"status": "Entregue"}, headers=auth_headers).status_code == 404
    assert client.delete("/api/orders/9999", headers=auth_headers).status_code == 404


def test_orders_are_scoped_to_owner(client, auth_headers, other_headers, customer_id, order_payload):
    order_id = _create(client, auth_headers, order_payload(customer_id))[0]

    assert client.get("/api/orders", headers=other_headers).json() == []
    assert client.get(f"/api/orders/{order_id}", headers=other_headers).status_code == 404
    r = client.patch(f"/api/orders/{order_id}/status", json={"status": "Entregue"}, headers=other_headers)
    assert r.status_code == 404
    assert client.delete(f"/api/orders/{order_id}", headers=other_headers).status_code == 404

    # Pedido com cliente de outro usuário não é criado
    r = client.post("/api/orders", json=order_payload(customer_id), headers=other_headers)
    assert r.status_code == 404
    assert client.get(f"/api/orders/{order_id}", headers=auth_headers).json()["status"] == "Orçamento"


def test_empty_order_list_is_rejected(client, auth_headers):
    r = client.post("/api/orders", json=[], headers=auth_headers)
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.parametrize("field,value", [("quantity", 0), ("unit_price", -1), ("service_type", "")])
def test_invalid_order_payload(client, auth_headers, customer_id, order_payload, field, value):
    r = client.post("/api/orders", json=order_payload(customer_id, **{field: value}), headers=auth_headers)
    assert r.status_code == 422


def test_delete_single_order(client, auth_headers, customer_id, order_payload, db):
    order_id = _create(client, auth_headers, order_payload(customer_id, images=["data:image/png;base64,AAA"]))[0]
    other_id = _create(client, auth_headers, order_payload(customer_id))[0]

    r = client.delete(f"/api/orders/{order_id}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    assert client.get(f"/api/orders/{order_id}", headers=auth_headers).status_code == 404
    assert [o["id"] for o in client.get("/api/orders", headers=auth_headers).json()] == [other_id]
    assert db.query(OrderImage).count() == 0


def test_grouped_row_matches_detail_order(client, auth_headers, customer_id, order_payload):
    ids = _create(client, auth_headers, [
        order_payload(customer_id, service_type="Cartão"),
        order_payload(customer_id, service_type="Adesivo"),
        order_payload(customer_id, service_type="Banner"),
    ])

    [group] = client.get("/api/orders", params={"grouped": "true"}, headers=auth_headers).json()
    detail = client.get(f"/api/orders/{ids[2]}", headers=auth_headers).json()
    assert group["id"] == ids[0]
    assert [m["id"] for m in group["batch_items"]] == ids
    assert [m["id"] for m in detail["batch_items"]] == ids


def test_list_orders_search(client, auth_headers, customer_id, order_payload):
    r = client.post("/api/customers", json={"name": "Bruno Lima", "phone": "21988887777"}, headers=auth_headers)
    bruno_id = r.json()["id"]
    ana_order = _create(client, auth_headers, order_payload(customer_id, service_type="Banner"))[0]
    bruno_order = _create(client, auth_headers, order_payload(bruno_id, service_type="Cartão de visita"))[0]
    batch = _create(client, auth_headers, [
        order_payload(bruno_id, service_type="Adesivo"),
        order_payload(bruno_id, service_type="Panfleto"),
    ])

    def search(q, **params):
        r = client.get("/api/orders", params={"q": q, **params}, headers=auth_headers)
        assert r.status_code == 200
        return sorted(o["id"] for o in r.json())

    assert search("ana") == [ana_order]
    assert search("BRUNO") == sorted([bruno_order] + batch)
    assert search("21988") == sorted([bruno_order] + batch)
    assert search("banner") == [ana_order]
    assert search("adesivo") == [batch[0]]
    assert search("zzz") == []
    assert len(search("")) == 4

    # Na visão agrupada o lote é a linha DIVERSOS
    assert search("diversos", grouped="true") == [batch[0]]
    assert search("adesivo", grouped="true") == []


def _failing_commit(self):
    raise SQLAlchemyError("connection lost: secret-dsn")


def test_status_update_failure_returns_generic_500(client, auth_headers, customer_id, order_payload, monkeypatch):
    ids = _create(client, auth_headers, [order_payload(customer_id), order_payload(customer_id)])

    monkeypatch.setattr(Session, "commit", _failing_commit)
    r = client.patch(f"/api/orders/{ids[0]}/status", json={"status": "Entregue"}, headers=auth_headers)
    assert r.status_code == 500
    assert r.json() == {"error": "Erro ao atualizar status."}
    assert "secret-dsn" not in r.text

    monkeypatch.undo()
    statuses = [client.get(f"/api/orders/{i}", headers=auth_headers).json()["status"] for i in ids]
    assert statuses == ["Orçamento", "Orçamento"]


def test_delete_failure_keeps_whole_batch(client, auth_headers, customer_id, order_payload, monkeypatch):
    ids = _create(client, auth_headers, [
        order_payload(customer_id, images=["data:image/png;base64,AAA"]),
        order_payload(customer_id),
    ])

    monkeypatch.setattr(Session, "commit", _failing_commit)
    r = client.delete(f"/api/orders/{ids[1]}", headers=auth_headers)
    assert r.status_code == 500
    assert r.json() == {"error": "Erro ao excluir pedido."}
    assert "secret-dsn" not in r.text

    monkeypatch.undo()
    for order_id in ids:
        assert client.get(f"/api/orders/{order_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/orders/{ids[0]}", headers=auth_headers).json()["images"] == [
        "data:image/png;base64,AAA"
    ]


def test_create_failure_returns_generic_500(client, auth_headers, customer_id, order_payload, monkeypatch):
    monkeypatch.setattr(Session, "commit", _failing_commit)
    r = client.post("/api/orders", json=[order_payload(customer_id), order_payload(customer_id)], headers=auth_headers)
    assert r.status_code == 500
    assert r.json() == {"error": "Erro ao salvar pedidos."}
    assert "secret-dsn" not in r.text

    monkeypatch.undo()
    assert client.get("/api/orders", headers=auth_headers).json() == []
