# app/services/backfill_service.py
# Barrido del catálogo local: registra en Contifico todo lo que aún no tiene idContifico.
import logging
from typing import Any, Callable, Dict, Optional

from app.core.errors import ExternalApiError
from app.db import models
from app.db.batch_writer import BatchWriter
from app.services.provisioning_service import person_payload

CLIENT_ROLE = "Cliente"
ADVISOR_ROLE = "Asesor"


def _register(create: Callable[[], Dict[str, Any]], label: str) -> Optional[Any]:
    """Id devuelto por Contifico, o el id que trae el error si el registro ya existía allá"""
    try:
        response = create()
        return (response or {}).get("id")
    except ExternalApiError as e:
        existing_id = e.payload.get("id") if isinstance(e.payload, dict) else None
        if existing_id:
            logging.info(f"ℹ️ {label} ya existía en Contifico con id {existing_id}")
            return existing_id
        logging.error(f"🔴 Error al registrar {label} en Contifico: {e.message}")
        return None
    except Exception as e:
        logging.exception(f"🔴 Error inesperado al registrar {label} en Contifico: {e}")
        return None


def user_person_data(user: Dict[str, Any]) -> Dict[str, Any]:
    role = user.get("rolName")
    return {
        "cedula": user.get("cedula"),
        "razonSocial": user.get("display_name"),
        "telefono": user.get("telefono"),
        "email": user.get("email"),
        "direccion": user.get("direccion"),
        "esCliente": True,
        "esEmpleado": role not in (CLIENT_ROLE, ADVISOR_ROLE),
        "esVendedor": role == ADVISOR_ROLE,
    }


def profile_complete(user: Dict[str, Any]) -> bool:
    return bool(user.get("cedula")) or user.get("rolName") == CLIENT_ROLE


class CatalogBackfill:
    def __init__(self, store, client):
        self.store = store
        self.client = client
        self.writer = BatchWriter(store)
        self.updates = 0

    def _stage(self, ref, data: Dict[str, Any]):
        self.writer.set(ref, data, merge=True)
        self.updates += 1

    def _category_id(self, category_ref) -> Optional[Any]:
        if category_ref is None:
            return None
        snapshot = self.store.get(category_ref)
        if not snapshot.exists:
            return None
        return (snapshot.to_dict() or {}).get("idContifico")

    def sync_users(self):
        for snapshot in self.store.stream(models.USERS):
            user = snapshot.to_dict() or {}
            self._stage(snapshot.reference, {"regCompRRSS": profile_complete(user)})
            if user.get("idContifico"):
                continue
            if not user.get("cedula"):
                logging.warning(f"⚠️ Usuario {snapshot.id} sin cédula - no se registra en Contifico")
                continue
            payload = person_payload(user_person_data(user))
            person_id = _register(lambda: self.client.create_person(payload), f"el usuario {user.get('display_name')}")
            if person_id:
                self._stage(snapshot.reference, {"idContifico": person_id})

    def sync_categories(self, collection: str, name_field: str, kind: str):
        for snapshot in self.store.stream(collection):
            category = snapshot.to_dict() or {}
            if category.get("idContifico"):
                continue
            payload = {"nombre": category.get(name_field), "tipo_producto": kind}
            category_id = _register(lambda: self.client.create_category(payload), f"la categoría {payload['nombre']}")
            if category_id:
                self._stage(snapshot.reference, {"idContifico": category_id})

    def sync_catalog(self, collection: str, category_field: str, kind_code: str):
        for snapshot in self.store.stream(collection):
            item = snapshot.to_dict() or {}
            if item.get("idContifico"):
                continue
            payload = {
                "tipo": kind_code,
                "nombre": item.get("nombre"),
                "descripcion": item.get("descripcion") or "",
                "categoria_id": self._category_id(item.get(category_field)),
                "minimo": 0,
                "pvp1": item.get("precio"),
                "estado": "A",
                "codigo": item.get("sku"),
            }
            item_id = _register(lambda: self.client.create_product(payload), f"{collection} {payload['nombre']}")
            if item_id:
                self._stage(snapshot.reference, {"idContifico": item_id})

    def run(self) -> int:
        logging.info("🔄 Iniciando barrido del catálogo hacia Contifico...")
        self.sync_users()
        self.sync_categories(models.SERVICE_CATEGORIES, "Categoria", "SERV")
        self.sync_categories(models.PRODUCT_CATEGORIES, "categoryName", "PROD")
        self.sync_catalog(models.SERVICES, "RefCategoria", "SER")
        self.sync_catalog(models.PRODUCTS, "refCategory", "PRO")
        self.writer.commit()
        logging.info(f"✅ Barrido completado. Se actualizaron {self.updates} documentos.")
        return self.updates


def sync_catalog_to_contifico(store, client) -> str:
    updates = CatalogBackfill(store, client).run()
    return f"Proceso completado. Se actualizaron {updates} documentos."
