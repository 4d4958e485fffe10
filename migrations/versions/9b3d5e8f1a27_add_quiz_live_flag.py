"""Add is_live_active flag to quizzes

Revision ID: 9b3d5e8f1a27
Revises: 4e1a9c7b2d30
Create Date: 2026-10-06 16:40:22.503117

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '9b3d5e8f1a27'
down_revision = '4e1a9c7b2d30'
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    columns = [col['name'] for col in inspector.get_columns('quizzes')]
    if 'is_live_active' not in columns:
        op.add_column('quizzes', sa.Column('is_live_active', sa.Boolean(), nullable=False, server_default='0'))

    existing_indexes = [idx['name'] for idx in inspector.get_indexes('quizzes')]
    if 'ix_quizzes_is_live_active' not in existing_indexes:
        op.create_index('ix_quizzes_is_live_active', 'quizzes', ['is_live_active'], unique=False)
    if 'ix_quizzes_class_live' not in existing_indexes:
        op.create_index('ix_quizzes_class_live', 'quizzes', ['class_id', 'is_live_active'], unique=False)


def downgrade():
    op.drop_index('ix_quizzes_class_live', table_name='quizzes')
    op.drop_index('ix_quizzes_is_live_active', table_name='quizzes')
    op.drop_column('quizzes', 'is_live_active')
