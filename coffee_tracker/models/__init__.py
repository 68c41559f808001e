"""
models/__init__.py — imports all ORM models so Alembic's env.py
sees them via Base.metadata when generating migrations.
"""
from coffee_tracker.models.recipe import RecipeORM
from coffee_tracker.models.collection import CollectionORM, recipe_collections

__all__ = ["RecipeORM", "CollectionORM", "recipe_collections"]
