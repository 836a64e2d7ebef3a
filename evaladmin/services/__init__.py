"""
Servicios de dominio
"""
from .attempt_scheduler import AttemptScheduler
from .evaluation_transfer import EvaluationTransfer, export_filename
from .question_generator import QuestionGenerator
from .report_exporter import ReportExporter
from .schedule_analyzer import ScheduleAnalyzer
from .submission_aggregator import SubmissionAggregator

__all__ = [
    "AttemptScheduler",
    "EvaluationTransfer",
    "export_filename",
    "QuestionGenerator",
    "ReportExporter",
    "ScheduleAnalyzer",
    "SubmissionAggregator",
]
