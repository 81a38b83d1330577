"""buildings, doors, classification catalog

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('building',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('long', sa.Float(), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('territory_id', sa.Integer(), nullable=True),
        sa.Column('last_modified', sa.DateTime(), nullable=False),
        sa.CheckConstraint('lat >= -90 AND lat <= 90', name='ck_building_lat_range'),
        sa.CheckConstraint('long >= -180 AND long <= 180', name='ck_building_long_range'),
    )
    op.create_index('ix_building_last_modified', 'building', ['last_modified'])

    op.create_table('classification',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('congregation_id', sa.Integer(), nullable=False),
        sa.Column('language_name', sa.String(length=64), nullable=False),
        sa.Column('pin_color', sa.Integer(), nullable=True),
        sa.Column('pin_image', sa.String(length=255), nullable=True),
        sa.UniqueConstraint('congregation_id', 'language_name', name='uq_classification_cong_lang'),
    )

    op.create_table('door',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('building_id', sa.Integer(), sa.ForeignKey('building.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('language_name', sa.String(length=64), nullable=False),
        sa.Column('info_text', sa.Text(), nullable=False, server_default=''),
        sa.Column('congregation_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('classification_id', sa.Integer(), sa.ForeignKey('classification.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_door_building_position', 'door', ['building_id', 'position'])

def downgrade():
    op.drop_index('ix_door_building_position', table_name='door')
    op.drop_table('door')
    op.drop_table('classification')
    op.drop_index('ix_building_last_modified', table_name='building')
    op.drop_table('building')
