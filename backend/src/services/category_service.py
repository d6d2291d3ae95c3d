"""Service layer for categories."""
from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category
from models.post import Post
from schemas.category import CategoryCreate, CategoryUpdate
from services.utils import unique_slug


class DuplicateCategoryError(Exception):
    """Raised when a category name is already taken."""


class CategoryInUseError(Exception):
    """Raised when deleting a category that posts still reference."""


async def _name_taken(db: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
    query = select(Category.id).where(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    return await db.scalar(select(exists(query))) or False


async def list_categories(db: AsyncSession) -> list[Category]:
    """All categories, alphabetically."""
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return list(result.scalars().all())


async def get_category(db: AsyncSession, category_id: int) -> Category | None:
    """Get a category by id."""
    return await db.get(Category, category_id)


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    """Create a category with a unique slug derived from its name."""
    if await _name_taken(db, data.name):
        raise DuplicateCategoryError(data.name)
    category = Category(
        name=data.name,
        description=data.description,
        slug=await unique_slug(db, data.name, Category.slug, 60),
    )
    db.add(category)
    await db.flush()
    return category


async def update_category(
    db: AsyncSession, category: Category, data: CategoryUpdate,
) -> Category:
    """Rename and/or redescribe a category. Renaming regenerates the slug."""
    if data.name is not None and data.name != category.name:
        if await _name_taken(db, data.name, exclude_id=category.id):
            raise DuplicateCategoryError(data.name)
        category.name = data.name
        category.slug = await unique_slug(db, data.name, Category.slug, 60)
    if data.description is not None:
        category.description = data.description
    await db.flush()
    return category


async def delete_category(db: AsyncSession, category: Category) -> None:
    """
    Delete a category.

    Raises:
        CategoryInUseError: If any post still belongs to the category.
    """
    in_use = await db.scalar(select(exists().where(Post.category_id == category.id)))
    if in_use:
        raise CategoryInUseError(category.name)
    await db.delete(category)
    await db.flush()
