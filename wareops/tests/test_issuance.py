import pytest
from sqlalchemy import select

from wareops.app.db.models.models_v1 import Backorder, Issuance, StockHistory
from wareops.app.db.models.core_types import BackorderStatus, OrderLineStatus, OrderStatus
from wareops.services import inventory, orders
from wareops.services.errors import InsufficientStock, InvariantViolation, NotFound
from wareops.services.issuance import create_issuance, delete_issuance, get_issuance, list_issuances


def test_issuance_is_all_or_nothing(db_session, make_client, make_product):
    """
    GIVEN
    - A : 10 en stock, B : 1 en stock
    - une issuance (A x4, B x2)

    THEN
    - InsufficientStock sur B (disponible 1, demandé 2)
    - A n'a PAS été décrémenté, aucune issuance écrite
    """
    c = make_client()
    a = make_product(stock=10)
    b = make_product("Plywood 18mm", stock=1)

    with pytest.raises(InsufficientStock) as exc_info:
        create_issuance(db_session, client_id=c.id, lines=[(a.id, 4), (b.id, 2)], issued_by="Marama")

    assert (exc_info.value.product, exc_info.value.available, exc_info.value.requested) == ("Plywood 18mm", 1, 2)
    assert inventory.current_stock(db_session, a.id) == 10
    assert inventory.current_stock(db_session, b.id) == 1
    assert list_issuances(db_session) == []
    assert db_session.execute(select(StockHistory)).scalars().all() == []


def test_issuance_decrements_stock_and_merges_lines(db_session, make_client, make_product):
    c = make_client()
    a = make_product(stock=10)

    issuance_id = create_issuance(
        db_session,
        client_id=c.id,
        lines=[(a.id, 2), (a.id, 3)],
        issued_by="Marama",
        received_by="Site foreman",
    )

    issuance = get_issuance(db_session, issuance_id)
    assert issuance.issuance_number.startswith("IS-")
    assert [(il.product_id, il.quantity) for il in issuance.lines] == [(a.id, 5)]
    assert inventory.current_stock(db_session, a.id) == 5

    (entry,) = inventory.stock_history(db_session, a.id)
    assert entry.reason == f"Issuance #{issuance.issuance_number}"


def test_unknown_client_is_not_found(db_session, make_product):
    a = make_product(stock=10)
    with pytest.raises(NotFound):
        create_issuance(db_session, client_id=42, lines=[(a.id, 1)], issued_by="Marama")
    assert inventory.current_stock(db_session, a.id) == 10


def test_delete_issuance_restores_stock_and_unblocks_awaiting_order(db_session, make_client, make_product):
    """
    GIVEN
    - P : 5 en stock, entièrement sorti par une issuance manuelle
    - une commande de 5 P ensuite -> Awaiting Purchase

    THEN
    - supprimer l'issuance rend exactement 5 au stock
    - le balayage passe la commande en Ready for Issuance
    """
    c = make_client()
    p = make_product(stock=5)

    # ---------- ARRANGE ----------
    issuance_id = create_issuance(db_session, client_id=c.id, lines=[(p.id, 5)], issued_by="Marama")
    waiting = orders.create_order(db_session, client_id=c.id, lines=[(p.id, 5)])
    assert waiting.status == OrderStatus.awaiting_purchase

    # ---------- ACT ----------
    delete_issuance(db_session, issuance_id)

    # ---------- ASSERT ----------
    assert inventory.current_stock(db_session, p.id) == 5
    assert db_session.get(Issuance, issuance_id) is None
    assert orders.get_order(db_session, waiting.order_id).status == OrderStatus.ready_for_issuance

    reasons = [h.reason for h in inventory.stock_history(db_session, p.id)]
    assert reasons[-1].startswith("Deletion of issuance #IS-")


def test_delete_issuance_twice_is_not_found(db_session, make_client, make_product):
    c = make_client()
    p = make_product(stock=5)
    issuance_id = create_issuance(db_session, client_id=c.id, lines=[(p.id, 2)], issued_by="Marama")

    delete_issuance(db_session, issuance_id)
    with pytest.raises(NotFound):
        delete_issuance(db_session, issuance_id)

    assert inventory.current_stock(db_session, p.id) == 5


def test_issuance_against_order_resolves_backorder_and_can_be_undone(db_session, make_client, make_product):
    c = make_client()
    p = make_product(stock=0)

    # ---------- ARRANGE ----------
    result = orders.create_order(db_session, client_id=c.id, lines=[(p.id, 5)])
    inventory.adjust_stock(db_session, p.id, 5, "Stock count correction")
    assert orders.get_order(db_session, result.order_id).status == OrderStatus.ready_for_issuance

    # ---------- ACT : issuance rattachée à la commande ----------
    issuance_id = create_issuance(
        db_session, client_id=c.id, lines=[(p.id, 5)], issued_by="Marama", order_id=result.order_id
    )

    order = orders.get_order(db_session, result.order_id)
    bo = db_session.execute(select(Backorder).where(Backorder.order_id == result.order_id)).scalar_one()
    assert order.status == OrderStatus.fulfilled
    assert order.lines[0].status == OrderLineStatus.fulfilled
    assert bo.status == BackorderStatus.fulfilled
    assert bo.issuance_id == issuance_id
    assert inventory.current_stock(db_session, p.id) == 0

    # ---------- ACT : annulation ----------
    delete_issuance(db_session, issuance_id)

    order = orders.get_order(db_session, result.order_id)
    db_session.refresh(bo)
    assert bo.status == BackorderStatus.pending
    assert bo.issuance_id is None
    assert order.lines[0].qty_issued == 0
    # le stock rendu couvre à nouveau la commande
    assert order.status == OrderStatus.ready_for_issuance
    assert inventory.current_stock(db_session, p.id) == 5


def test_issuance_against_another_clients_order_is_refused(db_session, make_client, make_product):
    """
    GIVEN
    - commande du client A (5 en backorder), stock réajusté à 5
    - issuance demandée par le client B sur cette commande

    THEN
    - InvariantViolation, rien ne bouge : stock, backorder, statut de commande
    """
    owner = make_client()
    other = make_client("Motu Hardware")
    p = make_product(stock=0)
    result = orders.create_order(db_session, client_id=owner.id, lines=[(p.id, 5)])
    inventory.adjust_stock(db_session, p.id, 5, "Stock count correction")

    with pytest.raises(InvariantViolation):
        create_issuance(
            db_session, client_id=other.id, lines=[(p.id, 5)], issued_by="Marama", order_id=result.order_id
        )

    bo = db_session.execute(select(Backorder).where(Backorder.order_id == result.order_id)).scalar_one()
    assert bo.status == BackorderStatus.pending
    assert bo.issuance_id is None
    assert inventory.current_stock(db_session, p.id) == 5
    assert orders.get_order(db_session, result.order_id).status == OrderStatus.ready_for_issuance
    assert list_issuances(db_session, order_id=result.order_id) == []
