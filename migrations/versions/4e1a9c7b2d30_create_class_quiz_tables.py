"""Create users, classes and quiz tables

Revision ID: 4e1a9c7b2d30
Revises:
Create Date: 2026-09-28 10:12:05.118402

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '4e1a9c7b2d30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    tables = inspector.get_table_names()

    if 'users' not in tables:
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='student'),
            sa.Column('first_name', sa.String(length=100), nullable=False),
            sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
            sa.Column('student_number', sa.String(length=50), nullable=True),
            sa.Column('is_active_account', sa.Boolean(), nullable=False, server_default='1'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('student_number')
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)
        op.create_index('ix_users_role', 'users', ['role'], unique=False)

    if 'classes' not in tables:
        op.create_table('classes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('class_code', sa.String(length=20), nullable=False),
            sa.Column('professor_id', sa.Integer(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['professor_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_classes_name', 'classes', ['name'], unique=False)
        op.create_index('ix_classes_class_code', 'classes', ['class_code'], unique=True)
        op.create_index('ix_classes_professor_id', 'classes', ['professor_id'], unique=False)

    if 'class_enrollments' not in tables:
        op.create_table('class_enrollments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('class_id', sa.Integer(), nullable=False),
            sa.Column('student_id', sa.Integer(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
            sa.Column('enrolled_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('class_id', 'student_id', name='uq_class_student')
        )
        op.create_index('ix_class_enrollments_class_id', 'class_enrollments', ['class_id'], unique=False)
        op.create_index('ix_class_enrollments_student_id', 'class_enrollments', ['student_id'], unique=False)

    if 'quizzes' not in tables:
        op.create_table('quizzes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('class_id', sa.Integer(), nullable=False),
            sa.Column('professor_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('time_limit_minutes', sa.Integer(), nullable=False, server_default='30'),
            sa.Column('show_results_after_submission', sa.Boolean(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['professor_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quizzes_class_id', 'quizzes', ['class_id'], unique=False)
        op.create_index('ix_quizzes_professor_id', 'quizzes', ['professor_id'], unique=False)
        op.create_index('ix_quizzes_created_at', 'quizzes', ['created_at'], unique=False)

    if 'questions' not in tables:
        op.create_table('questions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('question_text', sa.Text(), nullable=False),
            sa.Column('question_order', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_questions_quiz_id', 'questions', ['quiz_id'], unique=False)
        op.create_index('ix_questions_quiz_order', 'questions', ['quiz_id', 'question_order'], unique=False)

    if 'answer_options' not in tables:
        op.create_table('answer_options',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=False),
            sa.Column('option_text', sa.Text(), nullable=False),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='0'),
            sa.Column('option_order', sa.Integer(), nullable=False, server_default='0'),
            sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_answer_options_question_id', 'answer_options', ['question_id'], unique=False)

    if 'quiz_submissions' not in tables:
        op.create_table('quiz_submissions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('student_id', sa.Integer(), nullable=False),
            sa.Column('started_at', sa.DateTime(), nullable=False),
            sa.Column('submitted_at', sa.DateTime(), nullable=True),
            sa.Column('is_completed', sa.Boolean(), nullable=False, server_default='0'),
            sa.Column('time_taken_minutes', sa.Integer(), nullable=True),
            sa.Column('total_score', sa.Integer(), nullable=True),
            sa.Column('max_score', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('quiz_id', 'student_id', name='uq_submission_quiz_student')
        )
        op.create_index('ix_quiz_submissions_quiz_id', 'quiz_submissions', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_submissions_student_id', 'quiz_submissions', ['student_id'], unique=False)
        op.create_index('ix_quiz_submissions_is_completed', 'quiz_submissions', ['is_completed'], unique=False)

    if 'student_answers' not in tables:
        op.create_table('student_answers',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('submission_id', sa.Integer(), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=False),
            sa.Column('selected_option_id', sa.Integer(), nullable=True),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='0'),
            sa.Column('answered_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['submission_id'], ['quiz_submissions.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['selected_option_id'], ['answer_options.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('submission_id', 'question_id', name='uq_submission_question')
        )
        op.create_index('ix_student_answers_submission_id', 'student_answers', ['submission_id'], unique=False)
        op.create_index('ix_student_answers_question_id', 'student_answers', ['question_id'], unique=False)
        op.create_index('ix_student_answers_selected_option_id', 'student_answers', ['selected_option_id'], unique=False)


def downgrade():
    op.drop_table('student_answers')
    op.drop_table('quiz_submissions')
    op.drop_table('answer_options')
    op.drop_table('questions')
    op.drop_table('quizzes')
    op.drop_table('class_enrollments')
    op.drop_table('classes')
    op.drop_table('users')
