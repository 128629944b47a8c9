"""initial schema"""

revision = "0001"
down_revision = None

from alembic import op
import sqlalchemy as sa


def _entity_columns(name_unique=True):
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=name_unique),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('updated_by', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade():
    op.create_table(
        'users',
        *_entity_columns(name_unique=False),
        sa.Column('username', sa.String(50), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('position', sa.String(30), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'sessions',
        sa.Column('sid', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('data', sa.Text(), nullable=False),
        sa.Column('remember_me', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])
    op.create_index('ix_sessions_expires_at', 'sessions', ['expires_at'])
    op.create_table(
        'sampling_reasons',
        *_entity_columns(),
    )
    op.create_table(
        'defects',
        *_entity_columns(),
        sa.Column('defect_group', sa.String(100), nullable=True),
    )
    op.create_table(
        'sysconfig',
        *_entity_columns(),
        sa.Column('fvi_lot_qty', sa.Text(), nullable=False),
        sa.Column('general_oqa_qty', sa.Text(), nullable=False),
        sa.Column('crack_oqa_qty', sa.Text(), nullable=False),
        sa.Column('general_siv_qty', sa.Text(), nullable=False),
        sa.Column('crack_siv_qty', sa.Text(), nullable=False),
        sa.Column('defect_type', sa.Text(), nullable=False),
        sa.Column('defect_group', sa.Text(), nullable=False),
        sa.Column('shift', sa.Text(), nullable=False),
        sa.Column('site', sa.Text(), nullable=False),
        sa.Column('tabs', sa.Text(), nullable=False),
        sa.Column('product_type', sa.Text(), nullable=False),
        sa.Column('product_families', sa.Text(), nullable=False),
        sa.Column('smtp_server', sa.String(100), nullable=True),
        sa.Column('smtp_port', sa.Integer(), nullable=False),
        sa.Column('smtp_username', sa.String(100), nullable=True),
        sa.Column('smtp_password', sa.String(100), nullable=True),
        sa.Column('defect_notification_emails', sa.Text(), nullable=True),
        sa.Column('enable_defect_email_notification', sa.Boolean(), nullable=False),
        sa.Column('mssql_server', sa.String(100), nullable=True),
        sa.Column('mssql_port', sa.Integer(), nullable=False),
        sa.Column('mssql_database', sa.String(100), nullable=True),
        sa.Column('mssql_username', sa.String(100), nullable=True),
        sa.Column('mssql_password', sa.String(100), nullable=True),
        sa.Column('system_name', sa.String(100), nullable=True),
        sa.Column('news', sa.Text(), nullable=True),
    )


def downgrade():
    op.drop_table('sysconfig')
    op.drop_table('defects')
    op.drop_table('sampling_reasons')
    op.drop_index('ix_sessions_expires_at', table_name='sessions')
    op.drop_index('ix_sessions_user_id', table_name='sessions')
    op.drop_table('sessions')
    op.drop_table('users')
