from __future__ import annotations

import pytest
from fastapi.routing import APIRoute

from stockdb.main import app
from stockdb.apps.catalog import router as catalog_router
from stockdb.apps.catalog import schemas as catalog_schemas
from stockdb.apps.counting import router as counting_router
from stockdb.apps.counting import schemas as counting_schemas
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.inventory import router as inventory_router
from stockdb.apps.inventory import schemas as inventory_schemas
from stockdb.apps.audit import router as audit_router
from stockdb.errors import InsufficientStock, InvalidTransition


def _routes():
    return {
        (method, route.path)
        for route in app.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/health"),
        ("GET", "/categories"),
        ("POST", "/categories"),
        ("GET", "/cost-centers"),
        ("POST", "/cost-centers"),
        ("GET", "/articles"),
        ("POST", "/articles"),
        ("GET", "/articles/{article_id}"),
        ("DELETE", "/articles/{article_id}"),
        ("POST", "/stock-movements"),
        ("GET", "/stock-movements"),
        ("GET", "/stock-movements/article/{article_id}"),
        ("GET", "/inventory/{article_id}"),
        ("GET", "/inventory-counts"),
        ("POST", "/inventory-counts"),
        ("GET", "/inventory-counts/{count_id}"),
        ("PUT", "/inventory-counts/{count_id}/status"),
        ("DELETE", "/inventory-counts/{count_id}"),
        ("POST", "/inventory-counts/{count_id}/items"),
        ("GET", "/inventory-counts/{count_id}/items"),
        ("GET", "/inventory-counts/{count_id}/deviations"),
        ("PUT", "/inventory-count-items/{item_id}"),
        ("GET", "/audit-events"),
    ],
)
def test_route_is_registered(method, path):
    assert (method, path) in _routes()


def _seed_article(db, user, *, stock: int):
    category = catalog_router.create_category(
        catalog_schemas.CategoryCreate(code="EMA", name="Einzelmaterial"),
        db=db,
        current_user=user,
    )
    article = catalog_router.create_article(
        catalog_schemas.ArticleCreate(article_number="E-100", name="Filter", category_id=category.id),
        db=db,
        current_user=user,
    )
    if stock:
        inventory_router.create_stock_movement(
            inventory_schemas.StockMovementCreate(
                article_id=article.id,
                type=inventory_models.StockMovementTypeEnum.CHECKIN,
                quantity=stock,
            ),
            db=db,
            current_user=user,
        )
    return article


def test_stock_movement_endpoints(db_session, manager_user):
    article = _seed_article(db_session, manager_user, stock=50)
    cost_center = catalog_router.create_cost_center(
        catalog_schemas.CostCenterCreate(code="KST-1", name="Werkstatt"),
        db=db_session,
        current_user=manager_user,
    )

    movement = inventory_router.create_stock_movement(
        inventory_schemas.StockMovementCreate(
            article_id=article.id,
            type=inventory_models.StockMovementTypeEnum.CHECKOUT,
            quantity=10,
            cost_center_id=cost_center.id,
        ),
        db=db_session,
        current_user=manager_user,
    )
    assert movement.stock_after == 40

    with pytest.raises(InsufficientStock):
        inventory_router.create_stock_movement(
            inventory_schemas.StockMovementCreate(
                article_id=article.id,
                type=inventory_models.StockMovementTypeEnum.CHECKOUT,
                quantity=45,
                cost_center_id=cost_center.id,
            ),
            db=db_session,
            current_user=manager_user,
        )
    db_session.rollback()

    level = inventory_router.get_stock_level(article.id, db=db_session, current_user=manager_user)
    assert level.current_stock == 40
    history = inventory_router.list_article_stock_movements(
        article.id, limit=10, db=db_session, current_user=manager_user
    )
    assert [m.quantity for m in history] == [10, 50]


def test_count_session_endpoints_end_to_end(db_session, manager_user, technician_user):
    _seed_article(db_session, manager_user, stock=10)

    detail = counting_router.create_inventory_count(
        counting_schemas.InventoryCountCreate(title="Monthly count"),
        db=db_session,
        current_user=manager_user,
    )
    assert detail.total_items == 1
    item = detail.items[0]

    counted = counting_router.update_inventory_count_item(
        item.id,
        counting_schemas.InventoryCountItemUpdate(counted_quantity=5, notes="two cartons missing"),
        db=db_session,
        current_user=technician_user,
    )
    assert counted.deviation == -5

    deviations = counting_router.get_inventory_count_deviations(
        detail.id, db=db_session, current_user=technician_user
    )
    assert [line.id for line in deviations] == [item.id]

    for target in ("in_progress", "completed", "approved"):
        detail = counting_router.update_inventory_count_status(
            detail.id,
            counting_schemas.InventoryCountStatusUpdate(status=target),
            db=db_session,
            current_user=manager_user,
        )
    assert detail.status == "approved"
    assert detail.has_deviations is True
    assert detail.total_deviations == 5

    with pytest.raises(InvalidTransition):
        counting_router.update_inventory_count_status(
            detail.id,
            counting_schemas.InventoryCountStatusUpdate(status="open"),
            db=db_session,
            current_user=manager_user,
        )
    db_session.rollback()

    listing = counting_router.list_inventory_counts(db=db_session, current_user=technician_user)
    assert [s.id for s in listing] == [detail.id]


def test_delete_inventory_count_endpoint(db_session, manager_user):
    detail = counting_router.create_inventory_count(
        counting_schemas.InventoryCountCreate(title="Mistake"),
        db=db_session,
        current_user=manager_user,
    )

    response = counting_router.delete_inventory_count(detail.id, db=db_session, current_user=manager_user)

    assert response == {"message": "Inventory count deleted successfully"}
    assert counting_router.list_inventory_counts(db=db_session, current_user=manager_user) == []


def test_audit_endpoint_lists_transitions(db_session, manager_user):
    detail = counting_router.create_inventory_count(
        counting_schemas.InventoryCountCreate(title="Audit me"),
        db=db_session,
        current_user=manager_user,
    )
    counting_router.update_inventory_count_status(
        detail.id,
        counting_schemas.InventoryCountStatusUpdate(status="in_progress"),
        db=db_session,
        current_user=manager_user,
    )

    events = audit_router.list_audit_events(
        entity_type="inventory_count",
        entity_id=str(detail.id),
        action="transition",
        start=None,
        end=None,
        db=db_session,
        current_user=manager_user,
    )

    assert len(events) == 1
    assert events[0].after["status"] == "in_progress"
