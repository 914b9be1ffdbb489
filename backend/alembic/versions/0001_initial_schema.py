"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-01-12 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    'user_role': ('admin', 'instructor', 'student'),
    'ai_provider': ('gemini', 'openai', 'openrouter', 'grok', 'kimi', 'anthropic', 'custom'),
    'question_type': ('mcq', 'true_false', 'short_answer', 'essay', 'fill_blank', 'matching'),
    'assessment_status': ('draft', 'published', 'closed'),
    'public_link_permission': ('view', 'attempt'),
    'submission_status': ('in_progress', 'submitted', 'graded'),
    'violation_type': (
        'tab_switch', 'copy_paste', 'multiple_faces', 'no_face', 'phone_detected',
        'unauthorized_person', 'looking_away', 'suspicious_behavior',
    ),
    'chat_command_status': ('pending', 'executing', 'completed', 'failed'),
}


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == 'postgresql'


def _enum(name: str):
    # Postgres types are created once up front; other databases store plain strings
    if _is_postgres():
        return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)
    return sa.Enum(*ENUMS[name], name=name)


def _id():
    return sa.Column('id', sa.String(length=36), nullable=False)


def _created_at(name: str = 'created_at'):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    # Create custom types
    if _is_postgres():
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(op.get_bind(), checkfirst=True)

    # Create users table
    op.create_table('users',
        _id(),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', _enum('user_role'), nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('gemini_api_key', sa.Text(), nullable=True),
        sa.Column('openai_api_key', sa.Text(), nullable=True),
        sa.Column('openrouter_api_key', sa.Text(), nullable=True),
        sa.Column('grok_api_key', sa.Text(), nullable=True),
        sa.Column('kimi_api_key', sa.Text(), nullable=True),
        sa.Column('anthropic_api_key', sa.Text(), nullable=True),
        sa.Column('custom_api_key', sa.Text(), nullable=True),
        sa.Column('custom_api_base_url', sa.Text(), nullable=True),
        sa.Column('custom_api_model', sa.Text(), nullable=True),
        sa.Column('active_ai_provider', _enum('ai_provider'), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create password_reset_tokens table
    op.create_table('password_reset_tokens',
        _id(),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_password_reset_tokens_token', 'password_reset_tokens', ['token'], unique=True)

    # Create courses table
    op.create_table('courses',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('semester', sa.String(length=100), nullable=False),
        sa.Column('instructor_id', sa.String(length=36), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['instructor_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'])

    # Create lectures table
    op.create_table('lectures',
        _id(),
        sa.Column('course_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(length=255), nullable=True),
        sa.Column('file_url', sa.String(length=500), nullable=True),
        sa.Column('file_type', sa.String(length=100), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('key_points', sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_lectures_course_id', 'lectures', ['course_id'])

    # Create enrollments table
    op.create_table('enrollments',
        _id(),
        sa.Column('course_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        _created_at('enrolled_at'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('course_id', 'student_id', name='uq_enrollment_course_student')
    )
    op.create_index('ix_enrollments_course_id', 'enrollments', ['course_id'])
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])

    # Create questions table
    op.create_table('questions',
        _id(),
        sa.Column('course_id', sa.String(length=36), nullable=True),
        sa.Column('lecture_id', sa.String(length=36), nullable=True),
        sa.Column('type', _enum('question_type'), nullable=False),
        sa.Column('difficulty', sa.String(length=20), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('correct_answer', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('ai_generated', sa.Boolean(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['lecture_id'], ['lectures.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_questions_course_id', 'questions', ['course_id'])
    op.create_index('ix_questions_lecture_id', 'questions', ['lecture_id'])

    # Create quizzes table
    op.create_table('quizzes',
        _id(),
        sa.Column('course_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
        sa.Column('passing_score', sa.Integer(), nullable=True),
        sa.Column('randomize_questions', sa.Boolean(), nullable=True),
        sa.Column('randomize_options', sa.Boolean(), nullable=True),
        sa.Column('show_results', sa.Boolean(), nullable=True),
        sa.Column('proctored', sa.Boolean(), nullable=True),
        sa.Column('violation_threshold', sa.Integer(), nullable=True),
        sa.Column('attachment_url', sa.String(length=500), nullable=True),
        sa.Column('attachment_type', sa.String(length=100), nullable=True),
        sa.Column('attachment_name', sa.String(length=255), nullable=True),
        sa.Column('status', _enum('assessment_status'), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('public_access_token', sa.String(length=64), nullable=True),
        sa.Column('public_link_permission', _enum('public_link_permission'), nullable=True),
        sa.Column('public_link_enabled', sa.Boolean(), nullable=True),
        sa.Column('required_identification_fields', sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quizzes_course_id', 'quizzes', ['course_id'])
    op.create_index('ix_quizzes_public_access_token', 'quizzes', ['public_access_token'])

    # Create quiz_questions table
    op.create_table('quiz_questions',
        _id(),
        sa.Column('quiz_id', sa.String(length=36), nullable=False),
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quiz_id', 'order_index', name='uq_quiz_question_order')
    )
    op.create_index('ix_quiz_questions_quiz_id', 'quiz_questions', ['quiz_id'])

    # Create assignments table
    op.create_table('assignments',
        _id(),
        sa.Column('course_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('rubric', sa.JSON(), nullable=True),
        sa.Column('max_score', sa.Integer(), nullable=False),
        sa.Column('allow_late_submission', sa.Boolean(), nullable=True),
        sa.Column('late_penalty_percent', sa.Integer(), nullable=True),
        sa.Column('status', _enum('assessment_status'), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_assignments_course_id', 'assignments', ['course_id'])

    # Create quiz_submissions table
    op.create_table('quiz_submissions',
        _id(),
        sa.Column('quiz_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('total_points', sa.Integer(), nullable=True),
        sa.Column('percentage', sa.Integer(), nullable=True),
        sa.Column('status', _enum('submission_status'), nullable=False),
        _created_at('started_at'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ai_feedback', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quiz_submissions_quiz_id', 'quiz_submissions', ['quiz_id'])
    op.create_index('ix_quiz_submissions_student_id', 'quiz_submissions', ['student_id'])

    # Create assignment_submissions table
    op.create_table('assignment_submissions',
        _id(),
        sa.Column('assignment_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('file_url', sa.String(length=500), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('status', _enum('submission_status'), nullable=False),
        sa.Column('plagiarism_score', sa.Integer(), nullable=True),
        sa.Column('ai_content_score', sa.Integer(), nullable=True),
        sa.Column('rubric_scores', sa.JSON(), nullable=True),
        sa.Column('instructor_feedback', sa.Text(), nullable=True),
        sa.Column('ai_feedback', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['assignment_id'], ['assignments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_assignment_submissions_assignment_id', 'assignment_submissions', ['assignment_id'])
    op.create_index('ix_assignment_submissions_student_id', 'assignment_submissions', ['student_id'])

    # Create proctoring_violations table
    op.create_table('proctoring_violations',
        _id(),
        sa.Column('submission_id', sa.String(length=36), nullable=False),
        sa.Column('type', _enum('violation_type'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('severity', sa.String(length=20), nullable=False),
        sa.Column('screenshot_url', sa.String(length=500), nullable=True),
        _created_at('timestamp'),
        sa.Column('reviewed', sa.Boolean(), nullable=True),
        sa.Column('review_note', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['submission_id'], ['quiz_submissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_proctoring_violations_submission_id', 'proctoring_violations', ['submission_id'])

    # Create public_quiz_submissions table
    op.create_table('public_quiz_submissions',
        _id(),
        sa.Column('quiz_id', sa.String(length=36), nullable=False),
        sa.Column('identification_data', sa.JSON(), nullable=True),
        sa.Column('answers', sa.JSON(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('total_points', sa.Integer(), nullable=True),
        sa.Column('percentage', sa.Integer(), nullable=True),
        sa.Column('status', _enum('submission_status'), nullable=False),
        _created_at('started_at'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_public_quiz_submissions_quiz_id', 'public_quiz_submissions', ['quiz_id'])

    # Create chat_commands table
    op.create_table('chat_commands',
        _id(),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('conversation_id', sa.Integer(), nullable=True),
        sa.Column('command', sa.Text(), nullable=False),
        sa.Column('intent', sa.String(length=64), nullable=True),
        sa.Column('parameters', sa.JSON(), nullable=True),
        sa.Column('status', _enum('chat_command_status'), nullable=False),
        sa.Column('result', sa.JSON(), nullable=True),
        _created_at(),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chat_commands_user_id', 'chat_commands', ['user_id'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('chat_commands')
    op.drop_table('public_quiz_submissions')
    op.drop_table('proctoring_violations')
    op.drop_table('assignment_submissions')
    op.drop_table('quiz_submissions')
    op.drop_table('assignments')
    op.drop_table('quiz_questions')
    op.drop_table('quizzes')
    op.drop_table('questions')
    op.drop_table('enrollments')
    op.drop_table('lectures')
    op.drop_table('courses')
    op.drop_table('password_reset_tokens')
    op.drop_table('users')

    # Drop custom types
    if _is_postgres():
        for name in reversed(list(ENUMS)):
            postgresql.ENUM(name=name).drop(op.get_bind(), checkfirst=True)
