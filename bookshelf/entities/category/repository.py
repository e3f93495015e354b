"""Category repository."""

from bookshelf.entities._repository import EntityRepository
from bookshelf.entities.category.entity import Category, CategoryCreate, CategoryUpdate
from bookshelf.entities.category.table import CategoryTable


class CategoryRepository(EntityRepository[Category]):
    """Data-access layer for categories."""

    kind = "category"
    entity = Category
    table = CategoryTable
    create_model = CategoryCreate
    update_model = CategoryUpdate
