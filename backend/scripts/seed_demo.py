from __future__ import annotations

from stockdb.database import WriteSessionLocal
from stockdb.apps.accounts import models as account_models
from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.catalog import schemas as catalog_schemas
from stockdb.apps.catalog import services as catalog_services
from stockdb.apps.counting import models as counting_models
from stockdb.apps.counting import schemas as counting_schemas
from stockdb.apps.counting import services as counting_services
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.inventory import schemas as inventory_schemas
from stockdb.apps.inventory import services as inventory_services

DEMO_CATEGORIES = [
    ("BMA", "Betriebsmittel", "Consumables and operating supplies"),
    ("EMA", "Einzelmaterial", "Project-specific material"),
]

DEMO_COST_CENTERS = [
    ("KST-100", "Werkstatt"),
    ("KST-200", "Baustelle Nord"),
]

# (article number, name, category code, location, opening stock)
DEMO_ARTICLES = [
    ("BMA-0001", "Schutzhandschuhe Gr. 9", "BMA", "Lager A-01-1", 120),
    ("BMA-0002", "Kabelbinder 200mm", "BMA", "Lager A-01-2", 800),
    ("BMA-0003", "Bohrer HSS 8mm", "BMA", "Lager A-02-1", 35),
    ("EMA-0001", "Schaltschrank 600x400", "EMA", "Lager B-10-1", 4),
    ("EMA-0002", "Kupferkabel NYM 3x1,5", "EMA", "Lager B-11-3", 250),
]


def _get_or_create_admin(db) -> account_models.User:
    email = "admin@stockdb.example"
    user = db.query(account_models.User).filter(account_models.User.email == email).first()
    if user:
        return user
    user = account_models.User(
        email=email,
        first_name="Demo",
        last_name="Admin",
        role=account_models.AccountRole.ADMIN,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _seed_reference_data(db) -> dict:
    categories = {}
    for code, name, description in DEMO_CATEGORIES:
        category = db.query(catalog_models.Category).filter(catalog_models.Category.code == code).first()
        if not category:
            category = catalog_services.create_category(
                db,
                payload=catalog_schemas.CategoryCreate(code=code, name=name, description=description),
            )
        categories[code] = category

    for code, name in DEMO_COST_CENTERS:
        exists = db.query(catalog_models.CostCenter).filter(catalog_models.CostCenter.code == code).first()
        if not exists:
            catalog_services.create_cost_center(
                db,
                payload=catalog_schemas.CostCenterCreate(code=code, name=name),
            )
    db.commit()
    return categories


def _seed_articles(db, categories: dict, admin: account_models.User) -> None:
    for number, name, category_code, location, opening_stock in DEMO_ARTICLES:
        exists = db.query(catalog_models.Article).filter(catalog_models.Article.article_number == number).first()
        if exists:
            continue
        article = catalog_services.create_article(
            db,
            payload=catalog_schemas.ArticleCreate(
                article_number=number,
                name=name,
                category_id=categories[category_code].id,
                location=location,
            ),
            actor_user_id=admin.id,
        )
        inventory_services.apply_movement(
            db,
            payload=inventory_schemas.StockMovementCreate(
                article_id=article.id,
                type=inventory_models.StockMovementTypeEnum.CHECKIN,
                quantity=opening_stock,
                notes="Opening stock",
            ),
            actor_user_id=admin.id,
        )
        db.commit()


def _seed_open_count(db, categories: dict, admin: account_models.User) -> None:
    title = "Demo count BMA"
    exists = db.query(counting_models.InventoryCount).filter(counting_models.InventoryCount.title == title).first()
    if exists:
        return
    counting_services.create_session(
        db,
        payload=counting_schemas.InventoryCountCreate(title=title, category_id=categories["BMA"].id),
        created_by=admin.id,
    )
    db.commit()


def main() -> None:
    db = WriteSessionLocal()
    try:
        admin = _get_or_create_admin(db)
        categories = _seed_reference_data(db)
        _seed_articles(db, categories, admin)
        _seed_open_count(db, categories, admin)
    finally:
        db.close()


if __name__ == "__main__":
    main()
