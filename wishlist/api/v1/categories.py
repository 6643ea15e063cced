"""Category directory endpoint."""

from fastapi import APIRouter

from wishlist.core.deps import DBSession
from wishlist.schemas.category import CategoryResponse
from wishlist.services.category_directory import CategoryDirectory

router = APIRouter()


@router.get(
    "",
    response_model=list[CategoryResponse],
    summary="List categories",
)
async def list_categories(db: DBSession) -> list[CategoryResponse]:
    """List all categories in display order."""
    return await CategoryDirectory(db).list()
