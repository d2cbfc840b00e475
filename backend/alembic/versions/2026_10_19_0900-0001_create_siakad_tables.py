"""Create programs of study, students, tokens, password resets and admins

Revision ID: 0001_create_siakad_tables
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_create_siakad_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'programs_of_study',
        sa.Column('code', sa.String(4), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('degree', sa.String(10), nullable=True),
    )

    op.create_table(
        'students',
        sa.Column('nim', sa.String(9), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(50), nullable=True),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_verified_at', sa.DateTime(), nullable=True),
        sa.Column('program_code', sa.String(4), sa.ForeignKey('programs_of_study.code'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_students_email', 'students', ['email'], unique=True)
    op.create_index('ix_students_program_code', 'students', ['program_code'])

    op.create_table(
        'personal_access_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'student_nim', sa.String(9),
            sa.ForeignKey('students.nim', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_personal_access_tokens_student_nim', 'personal_access_tokens', ['student_nim'])
    op.create_index('ix_personal_access_tokens_token_hash', 'personal_access_tokens', ['token_hash'], unique=True)

    op.create_table(
        'password_resets',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(50), nullable=False),
        sa.Column('otp', sa.String(4), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_password_resets_email', 'password_resets', ['email'])

    op.create_table(
        'admins',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_admins_username', 'admins', ['username'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_admins_username', table_name='admins')
    op.drop_table('admins')
    op.drop_index('ix_password_resets_email', table_name='password_resets')
    op.drop_table('password_resets')
    op.drop_index('ix_personal_access_tokens_token_hash', table_name='personal_access_tokens')
    op.drop_index('ix_personal_access_tokens_student_nim', table_name='personal_access_tokens')
    op.drop_table('personal_access_tokens')
    op.drop_index('ix_students_program_code', table_name='students')
    op.drop_index('ix_students_email', table_name='students')
    op.drop_table('students')
    op.drop_table('programs_of_study')
