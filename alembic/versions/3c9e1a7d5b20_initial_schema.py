"""initial_schema

Revision ID: 3c9e1a7d5b20
Revises:
Create Date: 2026-10-18 10:12:41.305118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9e1a7d5b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('username', sa.String(), nullable=False, unique=True),
        sa.Column('password', sa.String(), nullable=False),
    )

    op.create_table(
        'gallery_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('design_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('keywords', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_keys', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_gallery_images_design_id'), 'gallery_images', ['design_id'], unique=True)
    op.create_index(op.f('ix_gallery_images_category'), 'gallery_images', ['category'], unique=False)
    op.create_index(op.f('ix_gallery_images_created_at'), 'gallery_images', ['created_at'], unique=False)

    op.create_table(
        'contact_messages',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('event_date', sa.String(), nullable=True),
        sa.Column('design_id', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_contact_messages_phone'), 'contact_messages', ['phone'], unique=False)
    op.create_index(op.f('ix_contact_messages_created_at'), 'contact_messages', ['created_at'], unique=False)

    op.create_table(
        'design_id_sequences',
        sa.Column('prefix', sa.String(), primary_key=True),
        sa.Column('last_value', sa.Integer(), nullable=False, server_default='0'),
    )


def downgrade() -> None:
    op.drop_table('design_id_sequences')

    op.drop_index(op.f('ix_contact_messages_created_at'), table_name='contact_messages')
    op.drop_index(op.f('ix_contact_messages_phone'), table_name='contact_messages')
    op.drop_table('contact_messages')

    op.drop_index(op.f('ix_gallery_images_created_at'), table_name='gallery_images')
    op.drop_index(op.f('ix_gallery_images_category'), table_name='gallery_images')
    op.drop_index(op.f('ix_gallery_images_design_id'), table_name='gallery_images')
    op.drop_table('gallery_images')

    op.drop_table('users')
