# app/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Contifico
    CONTIFICO_URI: str = "https://api.contifico.com/sistema/api/v1"
    CONTIFICO_API_KEY: str
    # Token POS, usado en /persona/ y /documento/
    CONTIFICO_AUTH_TOKEN: str
    CONTIFICO_TIMEOUT: int = 60

    # Firestore (credenciales por ADC / GOOGLE_APPLICATION_CREDENTIALS)
    GOOGLE_CLOUD_PROJECT: Optional[str] = None
    FIRESTORE_DATABASE: Optional[str] = None
    # Firestore no acepta más de 500 operaciones por lote
    FIRESTORE_BATCH_LIMIT: int = 500

    TIMEZONE: str = "America/Guayaquil"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
