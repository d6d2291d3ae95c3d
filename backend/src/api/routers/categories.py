"""Category endpoints. Reads are public; changes are admin-only."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_admin
from core.exceptions import NotFoundError, ValidationFailedError
from models.category import Category
from models.user import User
from schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from schemas.envelope import Envelope
from services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


def _duplicate_name() -> ValidationFailedError:
    return ValidationFailedError(
        [{"msg": "Category already exists", "field": "name"}],
        message="Category already exists",
    )


async def _get_category_or_404(db: AsyncSession, category_id: int) -> Category:
    category = await category_service.get_category(db, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


@router.get("/", response_model=Envelope[list[CategoryResponse]])
async def list_categories(
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[list[CategoryResponse]]:
    """All categories, alphabetically."""
    categories = await category_service.list_categories(db)
    return Envelope(data=[CategoryResponse.model_validate(c) for c in categories])


@router.get("/{category_id}", response_model=Envelope[CategoryResponse])
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[CategoryResponse]:
    """Get a single category."""
    category = await _get_category_or_404(db, category_id)
    return Envelope(data=CategoryResponse.model_validate(category))


@router.post("/", response_model=Envelope[CategoryResponse], status_code=201)
async def create_category(
    data: CategoryCreate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[CategoryResponse]:
    """Create a category."""
    try:
        category = await category_service.create_category(db, data)
    except category_service.DuplicateCategoryError as e:
        raise _duplicate_name() from e
    return Envelope(
        message="Category created successfully",
        data=CategoryResponse.model_validate(category),
    )


@router.put("/{category_id}", response_model=Envelope[CategoryResponse])
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[CategoryResponse]:
    """Rename or redescribe a category."""
    category = await _get_category_or_404(db, category_id)
    try:
        category = await category_service.update_category(db, category, data)
    except category_service.DuplicateCategoryError as e:
        raise _duplicate_name() from e
    return Envelope(
        message="Category updated successfully",
        data=CategoryResponse.model_validate(category),
    )


@router.delete("/{category_id}", response_model=Envelope[None])
async def delete_category(
    category_id: int,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[None]:
    """Delete a category that no post uses."""
    category = await _get_category_or_404(db, category_id)
    try:
        await category_service.delete_category(db, category)
    except category_service.CategoryInUseError as e:
        raise ValidationFailedError(
            [{"msg": "Category has posts and cannot be deleted", "field": None}],
            message="Category has posts and cannot be deleted",
        ) from e
    return Envelope(message="Category deleted successfully")
