from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from stockdb.apps.counting import models as counting_models
from stockdb.apps.inventory import models as inventory_models
from stockdb.errors import DependencyConflict, NotFound
from stockdb.utils.identifiers import normalize_code

from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CATEGORIES
# ---------------------------------------------------------------------------


def list_categories(db: Session) -> List[models.Category]:
    return db.query(models.Category).order_by(models.Category.code.asc()).all()


def get_category(db: Session, *, category_id: int) -> models.Category:
    category = db.query(models.Category).filter(models.Category.id == category_id).first()
    if not category:
        raise NotFound("Category not found.")
    return category


def create_category(db: Session, *, payload: schemas.CategoryCreate) -> models.Category:
    code = normalize_code(payload.code)
    existing = db.query(models.Category).filter(models.Category.code == code).first()
    if existing:
        raise DependencyConflict(
            f"Category code {code} already exists.",
            dependency_type="category",
            dependency_count=1,
        )
    category = models.Category(code=code, name=payload.name.strip(), description=payload.description)
    db.add(category)
    db.flush()
    return category


def delete_category(db: Session, *, category_id: int) -> None:
    category = get_category(db, category_id=category_id)
    article_count = db.query(models.Article).filter(models.Article.category_id == category.id).count()
    if article_count:
        raise DependencyConflict(
            f"Category {category.code} is used by {article_count} article(s).",
            dependency_type="article",
            dependency_count=article_count,
        )
    db.delete(category)
    db.flush()


# ---------------------------------------------------------------------------
# COST CENTERS
# ---------------------------------------------------------------------------


def list_cost_centers(db: Session, *, active_only: bool = False) -> List[models.CostCenter]:
    query = db.query(models.CostCenter)
    if active_only:
        query = query.filter(models.CostCenter.is_active.is_(True))
    return query.order_by(models.CostCenter.code.asc()).all()


def get_cost_center(db: Session, *, cost_center_id: int) -> models.CostCenter:
    cost_center = db.query(models.CostCenter).filter(models.CostCenter.id == cost_center_id).first()
    if not cost_center:
        raise NotFound("Cost center not found.")
    return cost_center


def create_cost_center(db: Session, *, payload: schemas.CostCenterCreate) -> models.CostCenter:
    code = normalize_code(payload.code)
    existing = db.query(models.CostCenter).filter(models.CostCenter.code == code).first()
    if existing:
        raise DependencyConflict(
            f"Cost center code {code} already exists.",
            dependency_type="cost_center",
            dependency_count=1,
        )
    cost_center = models.CostCenter(code=code, name=payload.name.strip(), description=payload.description)
    db.add(cost_center)
    db.flush()
    return cost_center


# ---------------------------------------------------------------------------
# ARTICLES
# ---------------------------------------------------------------------------


def get_article(db: Session, *, article_id: int) -> models.Article:
    article = db.query(models.Article).filter(models.Article.id == article_id).first()
    if not article:
        raise NotFound("Article not found.")
    return article


def list_articles(
    db: Session,
    *,
    category_id: Optional[int] = None,
    location: Optional[str] = None,
) -> List[models.Article]:
    return filter_articles(db, category_id=category_id, location=location).all()


def filter_articles(
    db: Session,
    *,
    category_id: Optional[int] = None,
    location: Optional[str] = None,
):
    """
    Query of articles matching a category and/or location substring.

    Both filters are optional and combine with AND; no filters match every
    article. Shared by article listing and count-session population.
    """
    query = db.query(models.Article)
    if category_id is not None:
        query = query.filter(models.Article.category_id == category_id)
    if location:
        query = query.filter(models.Article.location.contains(location, autoescape=True))
    return query.order_by(models.Article.article_number.asc())


def create_article(
    db: Session,
    *,
    payload: schemas.ArticleCreate,
    actor_user_id: Optional[str],
) -> models.Article:
    get_category(db, category_id=payload.category_id)

    article_number = normalize_code(payload.article_number)
    existing = db.query(models.Article).filter(models.Article.article_number == article_number).first()
    if existing:
        raise DependencyConflict(
            f"Article number {article_number} already exists.",
            dependency_type="article",
            dependency_count=1,
        )

    article = models.Article(
        article_number=article_number,
        name=payload.name.strip(),
        description=payload.description,
        category_id=payload.category_id,
        barcode=payload.barcode,
        location=payload.location,
        minimum_stock=payload.minimum_stock,
        unit_price=payload.unit_price,
        created_by=actor_user_id,
    )
    db.add(article)
    db.flush()

    # Every article starts with an empty stock row so the ledger can lock it.
    db.add(inventory_models.StockLevel(article_id=article.id, current_stock=0, reserved_stock=0))
    db.flush()

    logger.info(
        "Article created",
        extra={"article_id": article.id, "article_number": article.article_number},
    )
    return article


def delete_article(db: Session, *, article_id: int) -> None:
    article = get_article(db, article_id=article_id)

    movement_count = (
        db.query(inventory_models.StockMovement)
        .filter(inventory_models.StockMovement.article_id == article.id)
        .count()
    )
    if movement_count:
        raise DependencyConflict(
            f"Article {article.article_number} has {movement_count} stock movement(s).",
            dependency_type="stock_movement",
            dependency_count=movement_count,
        )

    line_count = (
        db.query(counting_models.InventoryCountItem)
        .filter(counting_models.InventoryCountItem.article_id == article.id)
        .count()
    )
    if line_count:
        raise DependencyConflict(
            f"Article {article.article_number} is referenced by {line_count} inventory count line(s).",
            dependency_type="inventory_count_item",
            dependency_count=line_count,
        )

    db.query(inventory_models.StockLevel).filter(
        inventory_models.StockLevel.article_id == article.id
    ).delete(synchronize_session=False)
    db.delete(article)
    db.flush()
