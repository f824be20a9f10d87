"""create_checkin_and_engagement_tables

Revision ID: 3f9c2a7d1b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(name, *values):
    return sa.Enum(*values, name=name)


def upgrade() -> None:
    """Upgrade schema - Create check-in and engagement tables."""

    # ---- Check-in service -------------------------------------------------
    op.create_table(
        'gyms',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'gym_members',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('gym_id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('status', _enum('gym_member_status_enum', 'active', 'inactive', 'suspended', 'banned'), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_gym_members_gym_id', 'gym_members', ['gym_id'])
    op.create_index('ix_gym_members_user_id', 'gym_members', ['user_id'])

    op.create_table(
        'membership_plans',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('gym_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('unlimited_classes', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_membership_plans_gym_id', 'membership_plans', ['gym_id'])

    op.create_table(
        'gym_memberships',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('gym_id', UUID(as_uuid=True), nullable=False),
        sa.Column('member_id', UUID(as_uuid=True), nullable=False),
        sa.Column('plan_id', UUID(as_uuid=True), nullable=True),
        sa.Column('status', _enum('gym_membership_status_enum', 'active', 'expired', 'cancelled', 'paused'), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('credits_remaining', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id']),
        sa.ForeignKeyConstraint(['member_id'], ['gym_members.id']),
        sa.ForeignKeyConstraint(['plan_id'], ['membership_plans.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_gym_memberships_gym_id', 'gym_memberships', ['gym_id'])
    op.create_index('ix_gym_memberships_member_id', 'gym_memberships', ['member_id'])

    op.create_table(
        'gym_staff',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('gym_id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('role', _enum('gym_staff_role_enum', 'owner', 'manager', 'staff', 'trainer', 'front_desk'), nullable=False),
        sa.Column('status', _enum('gym_staff_status_enum', 'active', 'inactive'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_gym_staff_gym_id', 'gym_staff', ['gym_id'])
    op.create_index('ix_gym_staff_user_id', 'gym_staff', ['user_id'])

    op.create_table(
        'gym_check_ins',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('gym_id', UUID(as_uuid=True), nullable=False),
        sa.Column('member_id', UUID(as_uuid=True), nullable=False),
        sa.Column('check_in_method', _enum('check_in_method_enum', 'qr_code', 'manual', 'other'), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id']),
        sa.ForeignKeyConstraint(['member_id'], ['gym_members.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_gym_check_ins_gym_id', 'gym_check_ins', ['gym_id'])
    op.create_index('ix_gym_check_ins_member_id', 'gym_check_ins', ['member_id'])
    op.create_index('ix_gym_check_ins_checked_in_at', 'gym_check_ins', ['checked_in_at'])

    op.create_table(
        'gym_staff_notifications',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('gym_id', UUID(as_uuid=True), nullable=False),
        sa.Column('staff_id', UUID(as_uuid=True), nullable=False),
        sa.Column('type', _enum('gym_staff_notification_type_enum', 'check_in_failed'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_urgent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['gym_id'], ['gyms.id']),
        sa.ForeignKeyConstraint(['staff_id'], ['gym_staff.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_gym_staff_notifications_gym_id', 'gym_staff_notifications', ['gym_id'])
    op.create_index('ix_gym_staff_notifications_staff_id', 'gym_staff_notifications', ['staff_id'])

    # ---- Engagement service -----------------------------------------------
    op.create_table(
        'coach_profiles',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_coach_profiles_user_id', 'coach_profiles', ['user_id'], unique=True)

    op.create_table(
        'client_profiles',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('username', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_profiles_user_id', 'client_profiles', ['user_id'])

    op.create_table(
        'coach_clients',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('coach_id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('status', _enum('coach_client_status_enum', 'active', 'pending', 'inactive', 'ended'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['coach_id'], ['coach_profiles.id']),
        sa.ForeignKeyConstraint(['client_id'], ['client_profiles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_coach_clients_coach_id', 'coach_clients', ['coach_id'])
    op.create_index('ix_coach_clients_client_id', 'coach_clients', ['client_id'])

    op.create_table(
        'coaching_sessions',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('coach_id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', _enum('coaching_session_status_enum', 'scheduled', 'completed', 'cancelled', 'no_show'), nullable=False),
        sa.ForeignKeyConstraint(['coach_id'], ['coach_profiles.id']),
        sa.ForeignKeyConstraint(['client_id'], ['client_profiles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_coaching_sessions_coach_id', 'coaching_sessions', ['coach_id'])
    op.create_index('ix_coaching_sessions_client_id', 'coaching_sessions', ['client_id'])
    op.create_index('ix_coaching_sessions_scheduled_at', 'coaching_sessions', ['scheduled_at'])

    op.create_table(
        'client_habits',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('target_count', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['client_profiles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_habits_client_id', 'client_habits', ['client_id'])

    op.create_table(
        'habit_logs',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('habit_id', UUID(as_uuid=True), nullable=False),
        sa.Column('logged_at', sa.Date(), nullable=False),
        sa.Column('completed_count', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['habit_id'], ['client_habits.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_habit_logs_habit_id', 'habit_logs', ['habit_id'])
    op.create_index('ix_habit_logs_logged_at', 'habit_logs', ['logged_at'])

    op.create_table(
        'messages',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('sender_id', UUID(as_uuid=True), nullable=False),
        sa.Column('receiver_id', UUID(as_uuid=True), nullable=False),
        sa.Column('content', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('ix_messages_receiver_id', 'messages', ['receiver_id'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])

    op.create_table(
        'client_progress',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['client_profiles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_progress_client_id', 'client_progress', ['client_id'])
    op.create_index('ix_client_progress_recorded_at', 'client_progress', ['recorded_at'])

    op.create_table(
        'training_logs',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('logged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('workout_name', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['client_profiles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_training_logs_client_id', 'training_logs', ['client_id'])
    op.create_index('ix_training_logs_logged_at', 'training_logs', ['logged_at'])

    op.create_table(
        'client_engagement_scores',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), nullable=False),
        sa.Column('coach_id', UUID(as_uuid=True), nullable=False),
        sa.Column('overall_score', sa.Integer(), nullable=False),
        sa.Column('session_attendance_score', sa.Integer(), nullable=False),
        sa.Column('habit_completion_score', sa.Integer(), nullable=False),
        sa.Column('message_responsiveness_score', sa.Integer(), nullable=False),
        sa.Column('progress_logging_score', sa.Integer(), nullable=False),
        sa.Column('plan_adherence_score', sa.Integer(), nullable=False),
        sa.Column('week_over_week_change', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['client_profiles.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['coach_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('client_id', 'coach_id', name='uq_client_coach_engagement')
    )
    op.create_index('ix_client_engagement_scores_coach_id', 'client_engagement_scores', ['coach_id'])


def downgrade() -> None:
    """Downgrade schema - Drop check-in and engagement tables."""
    for table in (
        'client_engagement_scores',
        'training_logs',
        'client_progress',
        'messages',
        'habit_logs',
        'client_habits',
        'coaching_sessions',
        'coach_clients',
        'client_profiles',
        'coach_profiles',
        'gym_staff_notifications',
        'gym_check_ins',
        'gym_staff',
        'gym_memberships',
        'membership_plans',
        'gym_members',
        'gyms',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_name in (
        'coaching_session_status_enum',
        'coach_client_status_enum',
        'gym_staff_notification_type_enum',
        'check_in_method_enum',
        'gym_staff_status_enum',
        'gym_staff_role_enum',
        'gym_membership_status_enum',
        'gym_member_status_enum',
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
