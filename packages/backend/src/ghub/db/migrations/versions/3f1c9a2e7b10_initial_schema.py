"""Initial schema: auth users, profiles, owned and shareable tables

Learn: Owned tables carry user_id; shareable tables add is_public.
Every user_id cascades on account deletion so no orphaned rows survive.

Revision ID: 3f1c9a2e7b10
Revises:
Create Date: 2026-10-16 09:12:40.118204
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2e7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', sa.String(length=36), primary_key=True)


def _owner() -> sa.Column:
    return sa.Column(
        'user_id', sa.String(length=36),
        sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)


def _public() -> sa.Column:
    return sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true())


OWNED_TABLES = ('workouts', 'workout_library', 'goals', 'measurements', 'daily_logs', 'sobriety')
SHAREABLE_TABLES = ('blog_posts', 'recipes', 'gallery', 'travel')


def upgrade() -> None:
    # ─── Auth ────────────────────────────────────────────
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        _created_at(),
    )
    op.create_table(
        'profiles',
        sa.Column(
            'id', sa.String(length=36),
            sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True,
        ),
        sa.Column('email', sa.String(length=255)),
        sa.Column('display_name', sa.String(length=100)),
        sa.Column('avatar_url', sa.Text()),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ─── Owned ───────────────────────────────────────────
    op.create_table(
        'workouts',
        _id(), _owner(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=50)),
        sa.Column('duration', sa.Integer()),
        sa.Column('calories', sa.Integer()),
        sa.Column('notes', sa.Text()),
        sa.Column('date', sa.Date()),
        _created_at(),
    )
    op.create_table(
        'workout_library',
        _id(), _owner(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('goal', sa.String(length=50)),
        sa.Column('muscle_group', sa.String(length=50)),
        sa.Column('cardio_mode', sa.String(length=50)),
        sa.Column('estimated_duration', sa.Integer()),
        sa.Column(
            'exercises',
            sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
        ),
        _created_at(),
    )
    op.create_table(
        'goals',
        _id(), _owner(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('target', sa.Float(), nullable=False),
        sa.Column('current', sa.Float()),
        sa.Column('unit', sa.String(length=50)),
        sa.Column('category', sa.String(length=50)),
        sa.Column('completed', sa.Boolean()),
        _created_at(),
    )
    op.create_table(
        'measurements',
        _id(), _owner(),
        sa.Column('date', sa.Date()),
        sa.Column('weight', sa.Float()),
        sa.Column('chest', sa.Float()),
        sa.Column('waist', sa.Float()),
        sa.Column('hips', sa.Float()),
        sa.Column('arms', sa.Float()),
        sa.Column('thighs', sa.Float()),
        _created_at(),
    )
    op.create_table(
        'daily_logs',
        _id(), _owner(),
        sa.Column('date', sa.Date()),
        sa.Column('water_intake', sa.Integer()),
        sa.Column('sleep_hours', sa.Float()),
        sa.Column('sleep_quality', sa.Integer()),
        sa.Column('mood', sa.String(length=20)),
        sa.Column('energy', sa.Integer()),
        sa.Column('notes', sa.Text()),
        _created_at(),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_logs_user_date'),
    )
    op.create_table(
        'sobriety',
        _id(), _owner(),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date()),
        sa.Column('is_active', sa.Boolean()),
        _created_at(),
    )

    # ─── Shareable ───────────────────────────────────────
    op.create_table(
        'blog_posts',
        _id(), _owner(),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('excerpt', sa.Text()),
        _public(),
        _created_at(),
    )
    op.create_index('ix_blog_posts_public_created', 'blog_posts', ['is_public', 'created_at'])
    op.create_table(
        'recipes',
        _id(), _owner(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=50)),
        sa.Column('description', sa.Text()),
        sa.Column('calories', sa.Integer()),
        sa.Column('protein', sa.Integer()),
        sa.Column('prep_time', sa.Integer()),
        sa.Column('instructions', sa.Text()),
        _public(),
        _created_at(),
    )
    op.create_table(
        'gallery',
        _id(), _owner(),
        sa.Column('title', sa.String(length=200)),
        sa.Column('description', sa.Text()),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=10)),
        sa.Column('date', sa.Date()),
        _public(),
        _created_at(),
    )
    op.create_table(
        'travel',
        _id(), _owner(),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('city', sa.String(length=100)),
        sa.Column('description', sa.Text()),
        sa.Column('highlights', sa.Text()),
        sa.Column('date_visited', sa.Date()),
        sa.Column('rating', sa.Integer()),
        sa.Column('would_return', sa.Boolean()),
        _public(),
        _created_at(),
    )

    for table in OWNED_TABLES + SHAREABLE_TABLES:
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])


def downgrade() -> None:
    for table in reversed(OWNED_TABLES + SHAREABLE_TABLES):
        op.drop_index(f'ix_{table}_user_id', table_name=table)
    op.drop_index('ix_blog_posts_public_created', table_name='blog_posts')
    for table in reversed(SHAREABLE_TABLES + OWNED_TABLES):
        op.drop_table(table)
    op.drop_table('profiles')
    op.drop_table('users')
