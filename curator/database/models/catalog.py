"""
Catalog Models
---------------

The normalized catalog entities.

Models:
    - Tag: A classifier for things
    - Thing: A cataloged resource, identified by its url
    - Collection: A named, curated grouping of things

Relationships are read-only views over the foreign keys and association
tables; managers write join rows explicitly so that duplicate handling
and referential checks stay under their control.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import List, Optional

# --- Third party imports ---
from sqlalchemy import CheckConstraint, ForeignKey, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# --- Local imports ---
from .associations import collection_thing, thing_tag
from .base import Base

MISCELLANEOUS_TAG_ID = "miscellaneous"


class Tag(Base):
    """
    A classifier for things.

    A thing carries exactly one tag as its primary category and any
    number of supplementary tags through ``thing_tag``.

    Attributes:
        id: Stable identifier (primary key)
        name: Display label
        summary: Description of the classifier
        icon: Optional binary icon

    Relationships:
        things: Things whose primary category is this tag
        tagged_things: Things carrying this tag as a secondary classifier
    """

    __tablename__ = "tag"
    __table_args__ = (CheckConstraint("id != ''", name="ck_tag_non_empty_id"),)

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)

    things: Mapped[List["Thing"]] = relationship(
        "Thing", back_populates="category", viewonly=True
    )
    tagged_things: Mapped[List["Thing"]] = relationship(
        "Thing", secondary=thing_tag, back_populates="tags", viewonly=True
    )

    @property
    def display_name(self) -> str:
        """Name if set, otherwise the identifier."""
        return self.name or self.id

    def __repr__(self) -> str:
        return f"<Tag(id='{self.id}')>"


class Thing(Base):
    """
    A cataloged resource.

    Attributes:
        url: Location of the resource (primary key)
        name: Display name
        summary: Optional description
        category_id: Primary classifier (FK to tag.id)

    Relationships:
        category: The primary Tag
        tags: Supplementary tags
        collections: Collections the thing belongs to
    """

    __tablename__ = "thing"
    __table_args__ = (
        CheckConstraint("url != ''", name="ck_thing_non_empty_url"),
        CheckConstraint("name != ''", name="ck_thing_non_empty_name"),
    )

    url: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[str] = mapped_column(
        String, ForeignKey("tag.id"), nullable=False, index=True
    )

    category: Mapped["Tag"] = relationship(
        "Tag", back_populates="things", viewonly=True
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag", secondary=thing_tag, back_populates="tagged_things", viewonly=True
    )
    collections: Mapped[List["Collection"]] = relationship(
        "Collection",
        secondary=collection_thing,
        back_populates="things",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Thing(url='{self.url}', category='{self.category_id}')>"


class Collection(Base):
    """
    A named grouping of things.

    Attributes:
        id: Identifier (primary key)
        url: Optional source location of the collection
        summary: Required description
    """

    __tablename__ = "collection"
    __table_args__ = (
        CheckConstraint("id != ''", name="ck_collection_non_empty_id"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)

    things: Mapped[List["Thing"]] = relationship(
        "Thing",
        secondary=collection_thing,
        back_populates="collections",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Collection(id='{self.id}')>"
