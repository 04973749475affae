# main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from datetime import datetime
import logging
import os

from app.api import endpoints
from app.api import scheduler_endpoints
from app.core.config import settings
from app.core.errors import AppError

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')

app = FastAPI(
    title="Studio Spa - Sincronización Contifico",
    description="Conciliación diaria de documentos de Contifico con Firestore y alta de catálogo en Contifico.",
    version="1.0.0"
)

app.include_router(endpoints.router)
app.include_router(scheduler_endpoints.router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:])
        errors.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return JSONResponse(status_code=400, content={"message": "Solicitud inválida: " + "; ".join(errors)})


@app.get("/")
def root():
    """Endpoint raíz para Cloud Run health check"""
    return {
        "service": "Studio Spa - Sincronización Contifico",
        "status": "running",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0",
    }


@app.get("/health", tags=["Monitoring"])
def health_check():
    """
    Endpoint de monitoreo para verificar que el servicio está activo.
    """
    return {"status": "ok"}


# Configuración para Cloud Run
if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
