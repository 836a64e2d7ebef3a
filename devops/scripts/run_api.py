"""
Script para ejecutar la API REST de EvalAdmin

Este script inicia el servidor FastAPI con uvicorn.

Uso:
    python devops/scripts/run_api.py              # Modo desarrollo
    python devops/scripts/run_api.py --production # Modo producción
    python devops/scripts/run_api.py --port 9000
"""
import argparse
import os
import sys

# Agregar directorio raíz al path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

APP = "evaladmin.api.main:app"


def run_dev_server(host: str, port: int):
    """Ejecuta servidor en modo desarrollo con auto-reload"""
    import uvicorn

    print("=" * 80)
    print("EvalAdmin - Development Server")
    print("=" * 80)
    print(f"Server: http://{host}:{port}")
    print(f"Swagger UI: http://{host}:{port}/docs")
    print("=" * 80)

    uvicorn.run(
        APP,
        host=host,
        port=port,
        reload=True,
        log_level="info",
        access_log=True,
    )


def run_production_server(host: str, port: int, workers: int):
    """Ejecuta servidor en modo producción"""
    import uvicorn

    print("=" * 80)
    print("EvalAdmin - Production Server")
    print("=" * 80)
    print(f"Server: http://{host}:{port} ({workers} workers)")
    print("=" * 80)

    uvicorn.run(
        APP,
        host=host,
        port=port,
        reload=False,
        workers=workers,
        log_level="warning",
        access_log=True,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run EvalAdmin API Server")
    parser.add_argument(
        "--production",
        action="store_true",
        help="Run in production mode (no auto-reload, multiple workers)",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    parser.add_argument("--workers", type=int, default=4, help="Workers in production mode (default: 4)")

    args = parser.parse_args()

    if args.production:
        run_production_server(args.host, args.port, args.workers)
    else:
        run_dev_server(args.host, args.port)
