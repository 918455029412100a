"""initial_schema

Revision ID: a7f3c2d9e1b4
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7f3c2d9e1b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'participants',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False, server_default=''),
        sa.Column('phone_number', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('gender', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('age', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('stake', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('ward', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('birth_date', sa.String(length=10), nullable=True),
        sa.Column('lookup_key', sa.String(length=8), nullable=True),
        sa.Column('group_id', sa.String(length=32), nullable=True),
        sa.Column('group_name', sa.String(length=100), nullable=True),
        sa.Column('room_id', sa.String(length=32), nullable=True),
        sa.Column('room_number', sa.String(length=50), nullable=True),
        sa.Column('bus_id', sa.String(length=32), nullable=True),
        sa.Column('bus_name', sa.String(length=100), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('memo', sa.Text(), nullable=False, server_default=''),
        sa.Column('registration_survey_id', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_participants_email', 'participants', ['email'])
    op.create_index('ix_participants_lookup_key', 'participants', ['lookup_key'])

    op.create_table(
        'checkin_sessions',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('participant_id', sa.String(length=32),
                  sa.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('check_out_time', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_checkin_sessions_participant', 'checkin_sessions', ['participant_id'])
    # At most one open session per participant
    op.create_index(
        'uq_checkin_sessions_open',
        'checkin_sessions',
        ['participant_id'],
        unique=True,
        sqlite_where=sa.text('check_out_time IS NULL'),
        postgresql_where=sa.text('check_out_time IS NULL'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('actor_name', sa.String(length=100), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=False),
        sa.Column('target_name', sa.String(length=200), nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('amends_id', sa.Integer(),
                  sa.ForeignKey('audit_logs.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('idx_audit_logs_timestamp_id', 'audit_logs', ['timestamp', 'id'])
    op.create_index('idx_audit_logs_target', 'audit_logs', ['target_type', 'target_id'])

    op.create_table(
        'rate_limit_counters',
        sa.Column('key', sa.String(length=120), primary_key=True),
        sa.Column('operation', sa.String(length=40), nullable=False),
        sa.Column('last_sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('daily_count', sa.Integer(), nullable=False),
        sa.Column('daily_reset_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
    )
    op.create_index('ix_rate_limit_counters_operation', 'rate_limit_counters', ['operation'])

    op.create_table(
        'surveys',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'registration_responses',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('survey_id', sa.String(length=32),
                  sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('personal_code', sa.String(length=8), nullable=False),
        sa.Column('participant_id', sa.String(length=32),
                  sa.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False, server_default=''),
        sa.Column('submitted_data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('survey_id', 'personal_code', name='uq_survey_personal_code'),
    )
    op.create_index('idx_registration_responses_code', 'registration_responses', ['personal_code'])
    op.create_index('idx_registration_responses_survey_email', 'registration_responses', ['survey_id', 'email'])


def downgrade():
    op.drop_table('registration_responses')
    op.drop_table('surveys')
    op.drop_index('ix_rate_limit_counters_operation', table_name='rate_limit_counters')
    op.drop_table('rate_limit_counters')
    op.drop_table('audit_logs')
    op.drop_index('uq_checkin_sessions_open', table_name='checkin_sessions')
    op.drop_table('checkin_sessions')
    op.drop_index('ix_participants_lookup_key', table_name='participants')
    op.drop_index('ix_participants_email', table_name='participants')
    op.drop_table('participants')
