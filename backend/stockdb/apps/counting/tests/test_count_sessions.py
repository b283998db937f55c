from __future__ import annotations

import pytest

from stockdb.apps.audit import models as audit_models
from stockdb.apps.catalog import schemas as catalog_schemas
from stockdb.apps.catalog import services as catalog_services
from stockdb.apps.counting import models as counting_models
from stockdb.apps.counting import schemas as counting_schemas
from stockdb.apps.counting import services as counting_services
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.inventory import schemas as inventory_schemas
from stockdb.apps.inventory import services as inventory_services
from stockdb.errors import InvalidTransition, NotDeletable, NotFound, PermissionDenied

Status = counting_models.InventoryCountStatus


def _category(db, code: str):
    return catalog_services.create_category(db, payload=catalog_schemas.CategoryCreate(code=code, name=code))


def _article(db, number: str, category_id: int, *, location: str = None, stock: int = 0):
    article = catalog_services.create_article(
        db,
        payload=catalog_schemas.ArticleCreate(
            article_number=number,
            name=f"Article {number}",
            category_id=category_id,
            location=location,
        ),
        actor_user_id=None,
    )
    if stock:
        inventory_services.apply_movement(
            db,
            payload=inventory_schemas.StockMovementCreate(
                article_id=article.id,
                type=inventory_models.StockMovementTypeEnum.CHECKIN,
                quantity=stock,
            ),
            actor_user_id=None,
        )
    db.commit()
    return article


def _open_session(db, user, **filters):
    count = counting_services.create_session(
        db,
        payload=counting_schemas.InventoryCountCreate(title="Q4 count", **filters),
        created_by=user.id,
    )
    db.commit()
    return count


def _advance(db, count_id, target, user):
    count = counting_services.advance_status(db, count_id=count_id, target_status=target, acting_user=user)
    db.commit()
    return count


def test_session_without_filters_covers_every_article(db_session, manager_user):
    ema = _category(db_session, "EMA")
    first = _article(db_session, "A-001", ema.id, stock=10)
    second = _article(db_session, "A-002", ema.id, stock=5)

    count = _open_session(db_session, manager_user)
    detail = counting_services.get_session_detail(db_session, count_id=count.id)

    assert detail.status == Status.OPEN
    assert detail.created_by == manager_user.id
    assert [item.article_id for item in detail.items] == [first.id, second.id]
    assert [item.expected_quantity for item in detail.items] == [10, 5]
    assert detail.total_items == 2
    assert detail.completed_items == 0
    assert detail.has_deviations is False


def test_counting_short_reports_negative_deviation(db_session, manager_user, technician_user):
    ema = _category(db_session, "EMA")
    _article(db_session, "A-001", ema.id, stock=10)
    _article(db_session, "A-002", ema.id, stock=5)
    count = _open_session(db_session, manager_user)
    first_line = counting_services.list_lines(db_session, count_id=count.id)[0]

    counting_services.record_count(
        db_session,
        item_id=first_line.id,
        counted_quantity=5,
        notes=None,
        counted_by=technician_user.id,
    )
    db_session.commit()

    detail = counting_services.get_session_detail(db_session, count_id=count.id)
    assert detail.items[0].deviation == -5
    assert detail.completed_items == 1
    assert detail.total_deviations == 5
    assert detail.has_deviations is True


def test_category_filter_limits_lines(db_session, manager_user):
    bma = _category(db_session, "BMA")
    ema = _category(db_session, "EMA")
    bma_articles = [_article(db_session, f"B-00{i}", bma.id, stock=i) for i in range(1, 4)]
    _article(db_session, "E-001", ema.id, stock=9)
    _article(db_session, "E-002", ema.id, stock=9)

    count = _open_session(db_session, manager_user, category_id=bma.id)
    lines = counting_services.list_lines(db_session, count_id=count.id)

    assert {line.article_id for line in lines} == {a.id for a in bma_articles}
    assert [line.expected_quantity for line in lines] == [1, 2, 3]


def test_location_filter_is_substring_and_combines_with_category(db_session, manager_user):
    bma = _category(db_session, "BMA")
    ema = _category(db_session, "EMA")
    match = _article(db_session, "B-001", bma.id, location="Lager A-12-3")
    _article(db_session, "B-002", bma.id, location="Lager B-01-1")
    _article(db_session, "E-001", ema.id, location="Lager A-12-9")

    count = _open_session(db_session, manager_user, category_id=bma.id, location_filter="A-12")
    lines = counting_services.list_lines(db_session, count_id=count.id)

    assert [line.article_id for line in lines] == [match.id]


def test_filter_without_matches_creates_empty_session(db_session, manager_user):
    ema = _category(db_session, "EMA")
    bma = _category(db_session, "BMA")
    _article(db_session, "E-001", ema.id, stock=3)

    count = _open_session(db_session, manager_user, category_id=bma.id)
    detail = counting_services.get_session_detail(db_session, count_id=count.id)

    assert detail.items == []
    assert detail.total_items == 0
    assert detail.completed_items == 0
    assert detail.total_deviations == 0
    assert detail.has_deviations is False


def test_expected_quantity_is_a_snapshot(db_session, manager_user):
    ema = _category(db_session, "EMA")
    article = _article(db_session, "A-001", ema.id, stock=10)
    count = _open_session(db_session, manager_user)

    inventory_services.apply_movement(
        db_session,
        payload=inventory_schemas.StockMovementCreate(
            article_id=article.id,
            type=inventory_models.StockMovementTypeEnum.CHECKIN,
            quantity=7,
        ),
        actor_user_id=None,
    )
    db_session.commit()

    line = counting_services.list_lines(db_session, count_id=count.id)[0]
    assert inventory_services.get_stock_level(db_session, article_id=article.id).current_stock == 17
    assert line.expected_quantity == 10


def test_session_creation_is_audited(db_session, manager_user):
    ema = _category(db_session, "EMA")
    _article(db_session, "A-001", ema.id)

    count = _open_session(db_session, manager_user)

    event = (
        db_session.query(audit_models.AuditEvent)
        .filter(audit_models.AuditEvent.entity_type == "InventoryCount")
        .filter(audit_models.AuditEvent.action == "create")
        .one()
    )
    assert event.entity_id == str(count.id)
    assert event.after["total_items"] == 1


def test_status_moves_forward_one_step_at_a_time(db_session, manager_user):
    count = _open_session(db_session, manager_user)

    assert _advance(db_session, count.id, "in_progress", manager_user).status == Status.IN_PROGRESS
    completed = _advance(db_session, count.id, "completed", manager_user)
    assert completed.status == Status.COMPLETED
    assert completed.completed_at is not None

    approved = _advance(db_session, count.id, "approved", manager_user)
    assert approved.status == Status.APPROVED
    assert approved.approved_by == manager_user.id
    assert approved.approved_at is not None

    transitions = (
        db_session.query(audit_models.AuditEvent)
        .filter(audit_models.AuditEvent.action == "transition")
        .order_by(audit_models.AuditEvent.occurred_at.asc())
        .all()
    )
    assert [event.after["status"] for event in transitions] == ["in_progress", "completed", "approved"]


@pytest.mark.parametrize(
    "path, target",
    [
        ([], "open"),
        ([], "completed"),
        ([], "approved"),
        (["in_progress"], "open"),
        (["in_progress"], "approved"),
        (["in_progress", "completed"], "in_progress"),
        (["in_progress", "completed", "approved"], "completed"),
        (["in_progress", "completed", "approved"], "approved"),
        ([], "archived"),
    ],
)
def test_illegal_transitions_are_rejected(db_session, admin_user, path, target):
    count = _open_session(db_session, admin_user)
    for step in path:
        _advance(db_session, count.id, step, admin_user)
    before = counting_services.get_session(db_session, count_id=count.id).status

    with pytest.raises(InvalidTransition) as excinfo:
        _advance(db_session, count.id, target, admin_user)
    db_session.rollback()

    assert excinfo.value.status_code == 409
    assert counting_services.get_session(db_session, count_id=count.id).status == before


def test_technician_cannot_approve(db_session, manager_user, technician_user):
    count = _open_session(db_session, manager_user)
    _advance(db_session, count.id, "in_progress", technician_user)
    _advance(db_session, count.id, "completed", technician_user)

    with pytest.raises(PermissionDenied):
        _advance(db_session, count.id, "approved", technician_user)
    db_session.rollback()

    assert counting_services.get_session(db_session, count_id=count.id).status == Status.COMPLETED


def test_completion_does_not_require_all_lines_counted(db_session, manager_user):
    ema = _category(db_session, "EMA")
    _article(db_session, "A-001", ema.id, stock=2)
    count = _open_session(db_session, manager_user)
    _advance(db_session, count.id, "in_progress", manager_user)

    completed = _advance(db_session, count.id, "completed", manager_user)

    assert completed.status == Status.COMPLETED


def test_add_lines_snapshots_new_articles_and_skips_existing(db_session, manager_user):
    bma = _category(db_session, "BMA")
    ema = _category(db_session, "EMA")
    existing = _article(db_session, "B-001", bma.id, stock=4)
    extra = _article(db_session, "E-001", ema.id, stock=6)
    count = _open_session(db_session, manager_user, category_id=bma.id)

    added = counting_services.add_lines(
        db_session,
        count_id=count.id,
        article_ids=[existing.id, extra.id, extra.id],
        actor_user_id=manager_user.id,
    )
    db_session.commit()

    assert [line.article_id for line in added] == [extra.id]
    assert added[0].expected_quantity == 6
    assert len(counting_services.list_lines(db_session, count_id=count.id)) == 2


def test_add_lines_rejects_unknown_articles_and_completed_sessions(db_session, manager_user):
    ema = _category(db_session, "EMA")
    article = _article(db_session, "E-001", ema.id)
    count = _open_session(db_session, manager_user)

    with pytest.raises(NotFound):
        counting_services.add_lines(db_session, count_id=count.id, article_ids=[999], actor_user_id=None)
    db_session.rollback()

    _advance(db_session, count.id, "in_progress", manager_user)
    _advance(db_session, count.id, "completed", manager_user)
    with pytest.raises(InvalidTransition) as excinfo:
        counting_services.add_lines(db_session, count_id=count.id, article_ids=[article.id], actor_user_id=None)
    assert excinfo.value.reason_code == "session_locked"


def test_delete_open_session_removes_lines(db_session, manager_user):
    ema = _category(db_session, "EMA")
    _article(db_session, "A-001", ema.id)
    _article(db_session, "A-002", ema.id)
    count = _open_session(db_session, manager_user)
    count_id = count.id

    counting_services.delete_session(db_session, count_id=count_id, actor_user_id=manager_user.id)
    db_session.commit()

    with pytest.raises(NotFound):
        counting_services.get_session(db_session, count_id=count_id)
    remaining = (
        db_session.query(counting_models.InventoryCountItem)
        .filter(counting_models.InventoryCountItem.inventory_count_id == count_id)
        .count()
    )
    assert remaining == 0


def test_only_open_sessions_can_be_deleted(db_session, manager_user):
    count = _open_session(db_session, manager_user)
    _advance(db_session, count.id, "in_progress", manager_user)

    with pytest.raises(NotDeletable):
        counting_services.delete_session(db_session, count_id=count.id, actor_user_id=manager_user.id)


def test_list_sessions_newest_first_with_rollups(db_session, manager_user):
    ema = _category(db_session, "EMA")
    _article(db_session, "A-001", ema.id, stock=1)
    first = _open_session(db_session, manager_user)
    second = _open_session(db_session, manager_user, category_id=ema.id)

    sessions = counting_services.list_sessions(db_session)

    assert [s.id for s in sessions] == [second.id, first.id]
    assert all(s.total_items == 1 for s in sessions)


def test_get_missing_session_raises_not_found(db_session):
    with pytest.raises(NotFound):
        counting_services.get_session_detail(db_session, count_id=404)


def test_unknown_category_filter_is_rejected(db_session, manager_user):
    ema = _category(db_session, "EMA")
    _article(db_session, "E-001", ema.id, stock=3)

    with pytest.raises(NotFound):
        _open_session(db_session, manager_user, category_id=999)
    db_session.rollback()

    assert db_session.query(counting_models.InventoryCount).count() == 0
    assert db_session.query(counting_models.InventoryCountItem).count() == 0
