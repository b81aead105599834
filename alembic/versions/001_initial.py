# alembic/versions/001_initial.py

"""Fund tables (gemel, policies, pension)

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

FUND_TABLES = ('gemel', 'policies', 'pension')


def _fund_table(name):
    op.create_table(name,
        sa.Column('FUND_ID', sa.String(length=32), nullable=False),
        sa.Column('REPORT_PERIOD', sa.String(length=6), nullable=False),
        sa.Column('FUND_CLASSIFICATION', sa.Text(), nullable=True),
        sa.Column('FUND_NAME', sa.Text(), nullable=True),
        sa.Column('FUND_ID_NAME', sa.Text(), nullable=True),
        sa.Column('FUND_TRACK_NAME', sa.Text(), nullable=True),
        sa.Column('YEAR_TO_DATE_YIELD', sa.Float(), nullable=True),
        sa.Column('AVG_ANNUAL_YIELD_TRAILING_3YRS', sa.Float(), nullable=True),
        sa.Column('AVG_ANNUAL_YIELD_TRAILING_5YRS', sa.Float(), nullable=True),
        sa.Column('STOCK_MARKET_EXPOSURE', sa.Float(), nullable=True),
        sa.Column('FOREIGN_CURRENCY_EXPOSURE', sa.Float(), nullable=True),
        sa.Column('FOREIGN_EXPOSURE', sa.Float(), nullable=True),
        sa.Column('TOTAL_ASSETS', sa.Float(), nullable=True),
        sa.Column('MONTHLY_YIELD', sa.Float(), nullable=True),
        sa.Column('ingested_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('FUND_ID', 'REPORT_PERIOD')
    )
    op.create_index(f'ix_{name}_classification', name, ['FUND_CLASSIFICATION'], unique=False)
    op.create_index(f'ix_{name}_period', name, ['REPORT_PERIOD'], unique=False)


def upgrade():
    for name in FUND_TABLES:
        _fund_table(name)


def downgrade():
    for name in reversed(FUND_TABLES):
        op.drop_index(f'ix_{name}_period', table_name=name)
        op.drop_index(f'ix_{name}_classification', table_name=name)
        op.drop_table(name)
