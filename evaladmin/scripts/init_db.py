"""
Script para inicializar la base de datos

Uso:
    python -m evaladmin.scripts.init_db
    python -m evaladmin.scripts.init_db --database-url sqlite:///./dev.db
    python -m evaladmin.scripts.init_db --import parcial1_evaluacion.json
"""
import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from ..core.logging_config import setup_logging
from ..database import get_db_session, init_database
from ..services.evaluation_transfer import EvaluationTransfer

logger = logging.getLogger(__name__)


def import_files(paths: List[Path]) -> int:
    """Importa documentos de evaluación; devuelve cuántos se crearon."""
    created = 0
    with get_db_session() as db:
        transfer = EvaluationTransfer(db)
        for path in paths:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
            evaluation = transfer.import_evaluation(document)
            print(f"✓ Imported '{evaluation.title}' (id={evaluation.id}) from {path}")
            created += 1
    return created


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Create EvalAdmin tables and optionally import evaluations")
    parser.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    parser.add_argument(
        "--import",
        dest="imports",
        action="append",
        type=Path,
        default=[],
        metavar="FILE",
        help="Evaluation JSON document to import (can be repeated)",
    )
    args = parser.parse_args(argv)

    setup_logging()

    print("Creating database tables...")
    config = init_database(args.database_url, create_tables=True)
    print(f"✓ Tables ready ({config.engine.dialect.name})")

    if args.imports:
        import_files(args.imports)


if __name__ == "__main__":
    main()
