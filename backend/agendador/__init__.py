"""Agendador: API de agendamento de consultas para pequenas clínicas."""

__version__ = "1.0.0"
