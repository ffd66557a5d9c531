"""Category domain service."""

import logging
from typing import Optional

from fundtrack.database.base import Database
from fundtrack.domain.entities import Category
from fundtrack.domain.errors import NotFoundError, ValidationError, category_not_found, require_owner

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for managing flat, per-owner categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_name(self, owner: str, name: str, category_id: Optional[int] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required", field="name")
        existing = self.db.get_category_by_name(owner, name)
        if existing is not None and existing.id != category_id:
            raise ValidationError(f"Category '{name}' already exists", field="name")
        return name

    def create_category(self, owner: str, name: str) -> int:
        """Create a category.

        Args:
            owner: Caller identity
            name: Category name, unique per owner

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty or already used
        """
        require_owner(owner)
        category_id = self.db.create_category(owner, self._check_name(owner, name))
        logger.info("Created category %s for %s", category_id, owner)
        return category_id

    def get_category(self, owner: str, category_id: int) -> Optional[Category]:
        """Get category by ID, or None if not found."""
        require_owner(owner)
        return self.db.get_category(owner, category_id)

    def require_category(self, owner: str, category_id: int) -> Category:
        category = self.get_category(owner, category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def get_category_by_name(self, owner: str, name: str) -> Optional[Category]:
        require_owner(owner)
        return self.db.get_category_by_name(owner, name)

    def list_categories(self, owner: str) -> list[Category]:
        """List the owner's categories by name."""
        require_owner(owner)
        return self.db.list_categories(owner)

    def rename_category(self, owner: str, category_id: int, name: str) -> None:
        """Rename a category.

        Raises:
            NotFoundError: If the category is missing or not owned
            ValidationError: If the new name is empty or already used
        """
        self.require_category(owner, category_id)
        self.db.update_category_name(category_id, self._check_name(owner, name, category_id))

    def delete_category(self, owner: str, category_id: int) -> None:
        """Delete a category; its transactions become uncategorized."""
        self.require_category(owner, category_id)
        self.db.delete_category(category_id)
        logger.info("Deleted category %s", category_id)
