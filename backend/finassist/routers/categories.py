from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from .. import models, schemas
from ..dependencies import get_db, get_current_user
from ..services.category_service import (
    CategoryCatalogService,
    CategoryNotFoundError,
    CategoryOwnershipError,
    CategoryProtectedError,
)

router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[schemas.Category])
def list_categories(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """List the active categories of the current user's tenant"""
    return CategoryCatalogService(db).list_active(current_user.tenant_id)


@router.post("", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Create a custom category; an active category with the same name is returned as is"""
    try:
        return CategoryCatalogService(db).create_custom(
            current_user.tenant_id, category.name, category.type, category.icon
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{category_id}", response_model=schemas.Category)
def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user)
):
    """Soft delete a category. Transactions keep pointing at it."""
    try:
        return CategoryCatalogService(db).soft_delete(category_id, current_user.tenant_id, current_user.id)
    except CategoryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    except CategoryOwnershipError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Category belongs to another tenant")
    except CategoryProtectedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
