"""Category models - hierarchy nodes, document assignments and request payloads."""

from collections.abc import Iterator
from datetime import datetime

from pydantic import Field, field_validator

from dashboard.app.models.common import DEFAULT_CATEGORY_COLOR, ApiModel


class Category(ApiModel):
    """Category record; `children` is populated for tree views only."""

    id: str
    name: str
    description: str | None = None
    parent_id: str | None = None
    user_id: str | None = None
    color: str | None = None
    icon: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    document_count: int = 0
    children: list["Category"] = Field(default_factory=list)

    @field_validator("document_count", mode="before")
    @classmethod
    def default_missing_count(cls, v: object) -> object:
        """Treat a null count as zero."""
        return 0 if v is None else v

    @property
    def is_system_category(self) -> bool:
        return self.user_id is None

    @property
    def is_user_category(self) -> bool:
        return not self.is_system_category

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    @property
    def has_parent(self) -> bool:
        return self.parent_id is not None

    @property
    def has_documents(self) -> bool:
        return self.document_count > 0

    @property
    def display_color(self) -> str:
        return self.color or DEFAULT_CATEGORY_COLOR

    @property
    def total_document_count(self) -> int:
        """Documents in this category and every descendant."""
        return self.document_count + sum(node.document_count for node in self.iter_descendants())

    def iter_descendants(self) -> Iterator["Category"]:
        """Yield descendants depth-first, pre-order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def all_descendants(self) -> list["Category"]:
        return list(self.iter_descendants())

    def find_child(self, category_id: str) -> "Category | None":
        """Find a descendant by id."""
        for node in self.iter_descendants():
            if node.id == category_id:
                return node
        return None

    def can_delete(self) -> bool:
        """Only empty leaf categories may be deleted."""
        return not self.has_documents and not self.has_children


class DocumentCategoryAssignment(ApiModel):
    """Link between a document and a category."""

    id: str
    document_id: str
    category_id: str
    confidence_score: float | None = None
    is_ai_generated: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryRef(ApiModel):
    """Document-facing join of an assignment and its category."""

    id: str
    name: str
    color: str | None = None
    icon: str | None = None
    confidence_score: float | None = None
    is_ai_generated: bool = False

    @classmethod
    def from_assignment(
        cls, assignment: DocumentCategoryAssignment, category: Category
    ) -> "CategoryRef":
        return cls(
            id=category.id,
            name=category.name,
            color=category.color,
            icon=category.icon,
            confidence_score=assignment.confidence_score,
            is_ai_generated=assignment.is_ai_generated,
        )


class CategoryQueryParams(ApiModel):
    """Filters for listing categories."""

    include_system_categories: bool | None = None
    hierarchical: bool | None = None
    parent_id: str | None = None


class CategoryCreateRequest(ApiModel):
    """Payload for creating a category."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    parent_id: str | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = Field(default=None, max_length=50)


class CategoryUpdateRequest(ApiModel):
    """Partial update; unset fields are left untouched server-side."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    parent_id: str | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = Field(default=None, max_length=50)


class DocumentAssignmentRequest(ApiModel):
    """Assign one document to a category."""

    document_id: str
    confidence_score: float | None = None
    is_ai_generated: bool | None = None


class BulkDocumentAssignmentRequest(ApiModel):
    """Assign many documents to a category at once."""

    document_ids: list[str] = Field(..., min_length=1)
    confidence_score: float | None = None
    is_ai_generated: bool | None = None
    override_existing: bool | None = None


class BulkAssignmentResult(ApiModel):
    """Per-request counts returned by bulk assignment."""

    success: int = 0
    failed: int = 0
