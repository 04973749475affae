# app/api/scheduler_endpoints.py - ENDPOINTS PARA CLOUD SCHEDULER
from fastapi import APIRouter, Depends, Request
from datetime import datetime
import logging
import asyncio
from concurrent.futures import ThreadPoolExecutor

from app.api.endpoints import get_client, get_db
from app.core.config import settings
from app.core.errors import AppError, InternalError
from app.services import backfill_service, sync_service

router = APIRouter(prefix="/scheduler")


def _check_scheduler(request: Request):
    user_agent = request.headers.get("user-agent", "")
    if "Google-Cloud-Scheduler" not in user_agent:
        logging.warning(f"⚠️ Request no viene de Cloud Scheduler: {user_agent}")


async def _run_in_thread(job, *args):
    # El pipeline es bloqueante (requests + Firestore), se ejecuta fuera del event loop
    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor(max_workers=1) as executor:
        return await loop.run_in_executor(executor, job, *args)


async def _scheduled(description: str, job, *args) -> dict:
    start_time = datetime.now()
    logging.info(f"🚀 Iniciando {description} via Cloud Scheduler - {start_time}")
    try:
        message = await _run_in_thread(job, *args)
    except AppError as e:
        logging.error(f"🔴 Error en {description}: {e.message}")
        raise
    except Exception as e:
        logging.exception(f"🔴 Error en {description}: {e}")
        raise InternalError() from e

    end_time = datetime.now()
    duration = end_time - start_time
    logging.info(f"✅ {description} completado: {duration}")
    return {
        "message": message,
        "start_time": start_time.isoformat(),
        "end_time": end_time.isoformat(),
        "duration_seconds": duration.total_seconds(),
        "executed_by": "cloud_scheduler",
    }


@router.post("/contifico/daily", tags=["Scheduler"])
async def run_daily_sync(request: Request, db=Depends(get_db), client=Depends(get_client)):
    """
    Endpoint para Cloud Scheduler - conciliación diaria de documentos de Contifico
    Se ejecuta todos los días a las 19:00 (America/Guayaquil)
    """
    _check_scheduler(request)
    return await _scheduled("conciliación diaria de Contifico", sync_service.synchronize_daily_documents, db, client)


@router.post("/contifico/backfill", tags=["Scheduler"])
async def run_catalog_backfill(request: Request, db=Depends(get_db), client=Depends(get_client)):
    """
    Registra en Contifico usuarios, categorías, servicios y productos que aún no tienen idContifico
    """
    _check_scheduler(request)
    return await _scheduled("barrido del catálogo", backfill_service.sync_catalog_to_contifico, db, client)


@router.get("/health", tags=["Scheduler"])
async def health_check():
    """
    Health check para Cloud Run
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "studio-spa-contifico-sync",
        "contifico_configured": bool(settings.CONTIFICO_URI and settings.CONTIFICO_API_KEY),
        "timezone": settings.TIMEZONE,
    }
