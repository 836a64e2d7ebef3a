"""
Database package for EvalAdmin

Provides:
- SQLAlchemy database configuration
- Database session management
- Base model for ORM
- ORM models (EvaluationDB, QuestionDB, AttemptDB, SubmissionDB, AnswerDB)
- Repository pattern implementations
- Transaction management utilities
"""
from .config import DatabaseConfig, get_db, get_db_session, init_database, get_db_config
from .base import Base
from .transaction import transaction

# ORM Models
from .models import (
    EvaluationDB,
    QuestionDB,
    AttemptDB,
    SubmissionDB,
    AnswerDB,
)

# Repositories
from .repositories import (
    EvaluationRepository,
    QuestionRepository,
    AttemptRepository,
    SubmissionRepository,
    AnswerRepository,
)

__all__ = [
    # Configuration
    "DatabaseConfig",
    "get_db",
    "get_db_session",
    "init_database",
    "get_db_config",
    "Base",
    # Transaction management
    "transaction",
    # ORM Models
    "EvaluationDB",
    "QuestionDB",
    "AttemptDB",
    "SubmissionDB",
    "AnswerDB",
    # Repositories
    "EvaluationRepository",
    "QuestionRepository",
    "AttemptRepository",
    "SubmissionRepository",
    "AnswerRepository",
]
