"""
models/recipe.py — SQLAlchemy ORM model for brewing recipes.

Table: recipes

Scalar columns hold what lists, filters and collection statistics query on;
the complete camelCase RecipeInput body (bean info, brewing parameters,
measurements, sensation record) is kept in recipe_data. The two never
disagree: store.py writes both from the same RecipeInput.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from coffee_tracker.database import Base, JSONType


class RecipeORM(Base):
    """
    ORM model for one brewing recipe.

    evaluation_system: the persisted tag only. "quick-tasting" is never a legal
    value here; normalizer.prepare_for_persistence() remaps it to "legacy".
    """
    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint(
            "evaluation_system IN ('traditional-sca', 'cva-descriptive', 'cva-affective', 'legacy')",
            name="ck_recipes_evaluation_system",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Recipe UUID",
    )
    recipe_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="User-provided or generated '<origin> - <date>' name",
    )
    is_favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    origin: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="beanInfo.origin",
    )
    processing_method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="beanInfo.processingMethod",
    )
    brewing_method: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="brewingParameters.brewingMethod",
    )
    evaluation_system: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="legacy",
        comment="traditional-sca | cva-descriptive | cva-affective | legacy",
    )
    overall_impression: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Legacy 1-10 rating, used by collection statistics",
    )
    recipe_data: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        comment="Full RecipeInput body (camelCase), collections excluded",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
