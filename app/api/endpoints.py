# app/api/endpoints.py
from fastapi import APIRouter, Depends
from typing import Any, Callable
import logging

from app.api import schemas
from app.core.errors import AppError, InternalError
from app.db.firestore_client import get_store
from app.services import provisioning_service, sync_service
from app.services.contifico_client import get_contifico_client

router = APIRouter(prefix="/contifico")


# Inyección de dependencias para Firestore y el cliente de Contifico
def get_db():
    store = get_store()
    yield store


def get_client():
    return get_contifico_client()


def _respond(description: str, action: Callable[..., Any], *args) -> dict:
    """Ejecuta la acción y responde {"message": resultado}; errores inesperados -> 500 genérico"""
    try:
        return {"message": action(*args)}
    except AppError as e:
        logging.error(f"Error al {description}: {e.message}")
        raise
    except Exception as e:
        logging.exception(f"Error al {description}: {e}")
        raise InternalError() from e


@router.get("/documentos", tags=["Contifico"])
def obtener_documentos(db=Depends(get_db), client=Depends(get_client)):
    """Sincroniza los documentos de venta del día hacia orders, serviciosFacturados y monthlyStatistics."""
    logging.info("Recibida solicitud para obtener los documentos de Contifico.")
    return _respond("obtener los documentos de Contifico", sync_service.synchronize_daily_documents, db, client)


@router.post("/createCategory", tags=["Contifico"])
def crear_categoria(body: schemas.CategoryRequest, client=Depends(get_client)):
    logging.info("Recibida solicitud para crear la categoría en Contifico.")
    return _respond("crear categoría en Contifico", provisioning_service.create_category, client, body.category, body.tipo)


@router.post("/createProdServ", tags=["Contifico"])
def crear_producto_servicio(body: schemas.ProductServiceRequest, client=Depends(get_client)):
    logging.info("Recibida solicitud para crear el producto/servicio en Contifico.")
    return _respond("crear producto/servicio en Contifico", provisioning_service.create_product_or_service, client, body.model_dump())


@router.post("/createMovInv", tags=["Contifico"])
def crear_movimiento_inventario(body: schemas.InventoryMovementRequest, client=Depends(get_client)):
    logging.info("Recibida solicitud para crear el movimiento de inventario en Contifico.")
    details = [detail.model_dump() for detail in body.productDetails]
    return _respond(
        "crear movimiento en el inventario en Contifico",
        provisioning_service.create_inventory_movement, client, body.tipo, details, body.descripcion,
    )


@router.post("/createUser", tags=["Contifico"])
def crear_usuario(body: schemas.PersonRequest, client=Depends(get_client)):
    logging.info("Recibida solicitud para crear el usuario dentro de Contifico.")
    return _respond("crear usuario en Contifico", provisioning_service.create_client, client, body.model_dump())


@router.post("/createDoc", tags=["Contifico"])
def crear_documento(body: schemas.ElectronicDocumentRequest, client=Depends(get_client)):
    logging.info("Recibida solicitud para crear el documento en Contifico.")
    return _respond("crear el documento en Contifico", provisioning_service.create_electronic_document, client, body.model_dump())


@router.get("/persona/{person_id}", tags=["Contifico"])
def obtener_persona(person_id: str, client=Depends(get_client)):
    logging.info(f"Recibida solicitud para consultar la persona {person_id} en Contifico.")
    return _respond("consultar la persona en Contifico", provisioning_service.get_person, client, person_id)
