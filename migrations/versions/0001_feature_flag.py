"""feature_flag table

Revision ID: 0001_feature_flag
Revises: 
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_feature_flag"
down_revision = None
branch_labels = None
depends_on = None

ENVIRONMENTS = ("local", "development", "staging", "production")


def upgrade():
    op.create_table('feature_flag',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('environment', sa.Enum(*ENVIRONMENTS, name='flag_environment', native_enum=False, length=32), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_feature_flag_key', 'feature_flag', ['key'])
    op.create_index(
        'uq_feature_flag_key_environment_live',
        'feature_flag',
        ['key', 'environment'],
        unique=True,
        sqlite_where=sa.text('deleted = 0'),
        postgresql_where=sa.text('deleted = false'),
    )


def downgrade():
    op.drop_index('uq_feature_flag_key_environment_live', table_name='feature_flag')
    op.drop_index('ix_feature_flag_key', table_name='feature_flag')
    op.drop_table('feature_flag')
