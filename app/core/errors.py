# app/core/errors.py
"""Errores de la aplicación.

Cada error lleva el código HTTP con el que la capa de API responde
``{"message": ...}``.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Campo obligatorio faltante o inválido"""
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ExternalApiError(AppError):
    """Contifico respondió con error o no fue posible comunicarse"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, payload=None):
        super().__init__(message, status_code)
        # Cuerpo de la respuesta de Contifico, si lo hubo
        self.payload = payload


class InternalError(AppError):
    status_code = 500

    def __init__(self, message: str = "Error interno del servidor"):
        super().__init__(message)
