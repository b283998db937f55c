from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockdb.security import get_current_active_user, require_elevated
from stockdb.database import get_db, get_read_db
from stockdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="", tags=["catalog"])


@router.get("/categories", response_model=List[schemas.CategoryRead])
def list_categories(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_categories(db)


@router.post(
    "/categories",
    response_model=schemas.CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    category = services.create_category(db, payload=payload)
    db.commit()
    db.refresh(category)
    return category


@router.get("/cost-centers", response_model=List[schemas.CostCenterRead])
def list_cost_centers(
    active_only: bool = False,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_cost_centers(db, active_only=active_only)


@router.post(
    "/cost-centers",
    response_model=schemas.CostCenterRead,
    status_code=status.HTTP_201_CREATED,
)
def create_cost_center(
    payload: schemas.CostCenterCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    cost_center = services.create_cost_center(db, payload=payload)
    db.commit()
    db.refresh(cost_center)
    return cost_center


@router.get("/articles", response_model=List[schemas.ArticleRead])
def list_articles(
    category_id: Optional[int] = None,
    location: Optional[str] = None,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_articles(db, category_id=category_id, location=location)


@router.get("/articles/{article_id}", response_model=schemas.ArticleRead)
def get_article(
    article_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_article(db, article_id=article_id)


@router.post(
    "/articles",
    response_model=schemas.ArticleRead,
    status_code=status.HTTP_201_CREATED,
)
def create_article(
    payload: schemas.ArticleCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    article = services.create_article(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(article)
    return article


@router.delete("/articles/{article_id}")
def delete_article(
    article_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_elevated),
):
    services.delete_article(db, article_id=article_id)
    db.commit()
    return {"message": "Article deleted successfully"}
