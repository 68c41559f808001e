"""initial_schema

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-17 12:00:00.000000 UTC

Creates the three tables of the canonical schema:
  - recipes             (scalar query columns + full recipe body as JSONB)
  - collections         (user-defined recipe groups)
  - recipe_collections  (many-to-many membership, cascades with either side)

recipes.evaluation_system only accepts the four storable tags; quick-tasting
records are written as 'legacy' by the application.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    # --- recipes table ---
    op.create_table(
        "recipes",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Recipe UUID"),
        sa.Column("recipe_name", sa.String(length=200), nullable=False, comment="User-provided or generated '<origin> - <date>' name"),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        sa.Column("origin", sa.String(length=100), nullable=False, comment="beanInfo.origin"),
        sa.Column("processing_method", sa.String(length=50), nullable=False, comment="beanInfo.processingMethod"),
        sa.Column("brewing_method", sa.String(length=50), nullable=True, comment="brewingParameters.brewingMethod"),
        sa.Column("evaluation_system", sa.String(length=20), nullable=False, comment="traditional-sca | cva-descriptive | cva-affective | legacy"),
        sa.Column("overall_impression", sa.Integer(), nullable=True, comment="Legacy 1-10 rating, used by collection statistics"),
        sa.Column("recipe_data", _JSON, nullable=False, comment="Full RecipeInput body (camelCase), collections excluded"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "evaluation_system IN ('traditional-sca', 'cva-descriptive', 'cva-affective', 'legacy')",
            name="ck_recipes_evaluation_system",
        ),
    )
    op.create_index(op.f("ix_recipes_origin"), "recipes", ["origin"], unique=False)

    # --- collections table ---
    op.create_table(
        "collections",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Collection UUID"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=False, comment="UI colour key: blue, green, orange, red, purple, teal, pink, indigo, gray"),
        sa.Column("is_private", sa.Boolean(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("tags", _JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # --- recipe_collections table ---
    op.create_table(
        "recipe_collections",
        sa.Column("recipe_id", sa.String(length=36), nullable=False),
        sa.Column("collection_id", sa.String(length=36), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("recipe_id", "collection_id"),
    )
    op.create_index(
        op.f("ix_recipe_collections_collection_id"),
        "recipe_collections",
        ["collection_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_recipe_collections_collection_id"), table_name="recipe_collections")
    op.drop_table("recipe_collections")
    op.drop_table("collections")
    op.drop_index(op.f("ix_recipes_origin"), table_name="recipes")
    op.drop_table("recipes")
