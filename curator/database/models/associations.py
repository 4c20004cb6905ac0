"""
Association Tables
-------------------

Many-to-many relationship tables for the catalog database.

This module contains the two join tables:
- collection_thing: things grouped into a collection
- thing_tag: secondary classification of things

These are pure association tables with no additional metadata. Foreign
keys carry no ON DELETE action: a referenced row cannot be removed until
its join rows are removed explicitly.
"""
# --- Third party imports ---
from sqlalchemy import Column, ForeignKey, String, Table

# --- Local imports ---
from .base import Base


collection_thing = Table(
    "collection_thing",
    Base.metadata,
    Column(
        "collection_id",
        String,
        ForeignKey("collection.id"),
        primary_key=True,
    ),
    Column("thing_id", String, ForeignKey("thing.url"), primary_key=True),
)


thing_tag = Table(
    "thing_tag",
    Base.metadata,
    Column("thing_id", String, ForeignKey("thing.url"), primary_key=True),
    Column("tag_id", String, ForeignKey("tag.id"), primary_key=True),
)
