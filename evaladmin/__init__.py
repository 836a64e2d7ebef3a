"""
EvalAdmin - Backend de administración de evaluaciones académicas

Provides:
- Evaluaciones y preguntas (CODE / TEXT) con export/import JSON
- Agenda de presentaciones (attempts) con código único y ventana horaria
- Agregación de puntajes por pregunta
- Generación de preguntas y analítica de presentaciones con IA
- Reporte PDF de la analítica
"""

__version__ = "0.1.0"
