"""initial_catalog_schema

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the catalog tables.

    Changes:
    1. tag, collection, thing (thing.category_id -> tag.id)
    2. collection_thing and thing_tag join tables
    3. package (content-addressed descriptors) and changelog
    """
    op.create_table(
        'tag',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('icon', sa.LargeBinary(), nullable=True),
        sa.CheckConstraint("id != ''", name='ck_tag_non_empty_id'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'collection',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.CheckConstraint("id != ''", name='ck_collection_non_empty_id'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'thing',
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('category_id', sa.String(), nullable=False),
        sa.CheckConstraint("url != ''", name='ck_thing_non_empty_url'),
        sa.CheckConstraint("name != ''", name='ck_thing_non_empty_name'),
        sa.ForeignKeyConstraint(['category_id'], ['tag.id']),
        sa.PrimaryKeyConstraint('url'),
    )
    op.create_index('ix_thing_category_id', 'thing', ['category_id'])
    op.create_table(
        'collection_thing',
        sa.Column('collection_id', sa.String(), nullable=False),
        sa.Column('thing_id', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['collection_id'], ['collection.id']),
        sa.ForeignKeyConstraint(['thing_id'], ['thing.url']),
        sa.PrimaryKeyConstraint('collection_id', 'thing_id'),
    )
    op.create_table(
        'thing_tag',
        sa.Column('thing_id', sa.String(), nullable=False),
        sa.Column('tag_id', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['thing_id'], ['thing.url']),
        sa.ForeignKeyConstraint(['tag_id'], ['tag.id']),
        sa.PrimaryKeyConstraint('thing_id', 'tag_id'),
    )
    op.create_table(
        'package',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('hash', sa.String(length=64), nullable=False),
        sa.Column('body', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_package_hash', 'package', ['hash'])
    op.create_table(
        'changelog',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('operation', sa.String(length=16), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_changelog_kind', 'changelog', ['kind'])


def downgrade() -> None:
    """Drop every catalog table."""
    op.drop_index('ix_changelog_kind', table_name='changelog')
    op.drop_table('changelog')
    op.drop_index('ix_package_hash', table_name='package')
    op.drop_table('package')
    op.drop_table('thing_tag')
    op.drop_table('collection_thing')
    op.drop_index('ix_thing_category_id', table_name='thing')
    op.drop_table('thing')
    op.drop_table('collection')
    op.drop_table('tag')
