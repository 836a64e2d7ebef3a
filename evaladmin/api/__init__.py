"""
API REST (FastAPI) de administración de evaluaciones

La aplicación se construye en `evaladmin.api.main:create_app`.
"""
