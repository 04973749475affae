# test/test_endpoints.py
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.endpoints import get_client, get_db
from app.core.errors import ExternalApiError, NotFoundError
from app.db import models
from app.main import app


@pytest.fixture
def contifico_client():
    client = MagicMock()
    client.pos_token = "POS"
    client.get_documents.return_value = []
    return client


@pytest.fixture
def api(store, contifico_client):
    app.dependency_overrides[get_db] = lambda: store
    app.dependency_overrides[get_client] = lambda: contifico_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}
    assert api.get("/scheduler/health").json()["status"] == "healthy"


def test_documentos_runs_reconciliation(api, store, contifico_client):
    store.add(models.PRODUCTS, {"idContifico": "P1"})
    contifico_client.get_documents.return_value = [{
        "id": "D1",
        "fecha_emision": "01/06/2025",
        "documento": "001-002-000123",
        "estado": "G",
        "detalles": [{"producto_id": "P1", "cantidad": 1, "precio": 10}],
        "cobros": [],
        "cliente": {"cedula": "0101"},
    }]

    response = api.get("/contifico/documentos")

    assert response.status_code == 200
    assert response.json() == {"message": "1 documentos guardados o actualizados correctamente"}
    assert store.docs(models.ORDERS)[0]["orderStatus"] == "En_proceso"


def test_documentos_forwards_upstream_error(api, contifico_client):
    contifico_client.get_documents.side_effect = ExternalApiError("Token inválido", 401)

    response = api.get("/contifico/documentos")

    assert response.status_code == 401
    assert response.json() == {"message": "Token inválido"}


def test_create_category(api, contifico_client):
    contifico_client.create_category.return_value = {"id": "CAT1"}

    response = api.post("/contifico/createCategory", json={"category": "Uñas", "tipo": "SERV"})

    assert response.status_code == 200
    assert response.json() == {"message": "CAT1"}


def test_create_product_validation_error(api, contifico_client):
    response = api.post("/contifico/createProdServ", json={"tipo": "PROD", "nombre": "Gel", "precio": 0})

    assert response.status_code == 400
    assert response.json() == {"message": "El precio debe ser mayor a 0 para registrar el producto/servicio"}
    contifico_client.create_product.assert_not_called()


def test_unknown_fields_are_rejected(api, contifico_client):
    response = api.post("/contifico/createUser", json={"cedula": "0101", "razonSocial": "Ana", "admin": True})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Solicitud inválida")
    contifico_client.create_person.assert_not_called()


def test_create_inventory_movement(api, contifico_client):
    contifico_client.get_warehouses.return_value = [{"id": "BOD1"}]

    response = api.post("/contifico/createMovInv", json={
        "tipo": "EGR",
        "productDetails": [{"id": "P1", "cantidad": 3}],
        "descripcion": "Consumo interno",
    })

    assert response.status_code == 200
    assert response.json() == {"message": None}
    movement = contifico_client.create_inventory_movement.call_args[0][0]
    assert movement["descripcion"] == "Consumo interno"


def test_create_doc(api, contifico_client):
    contifico_client.create_document.return_value = {"id": "DOC1"}

    response = api.post("/contifico/createDoc", json={
        "documento": "001-001-000000125",
        "cliente": {"cedula": "0101", "razon_social": "Ana"},
        "detalles": [{"producto_id": "S1", "cantidad": 1, "precio": 20, "porcentaje_iva": 15}],
        "cobros": [{"forma_cobro": "TRA", "monto": 23}],
    })

    assert response.status_code == 200
    assert response.json() == {"message": "DOC1"}


def test_persona_not_found(api, contifico_client):
    contifico_client.get_person.side_effect = NotFoundError("No existe la persona X en Contifico")

    response = api.get("/contifico/persona/X")

    assert response.status_code == 404
    assert response.json() == {"message": "No existe la persona X en Contifico"}


def test_unexpected_error_is_generic(api, contifico_client):
    contifico_client.create_category.side_effect = KeyError("boom")

    response = api.post("/contifico/createCategory", json={"category": "Uñas", "tipo": "PROD"})

    assert response.status_code == 500
    assert response.json() == {"message": "Error interno del servidor"}


def test_scheduler_daily(api, store):
    response = api.post("/scheduler/contifico/daily", headers={"user-agent": "Google-Cloud-Scheduler"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "0 documentos guardados o actualizados correctamente"
    assert body["executed_by"] == "cloud_scheduler"


def test_scheduler_backfill(api, store, contifico_client):
    contifico_client.create_category.return_value = {"id": "CAT1"}
    category_ref = store.add(models.PRODUCT_CATEGORIES, {"categoryName": "Cuidado"})

    response = api.post("/scheduler/contifico/backfill")

    assert response.status_code == 200
    assert response.json()["message"] == "Proceso completado. Se actualizaron 1 documentos."
    assert store.get(category_ref).to_dict()["idContifico"] == "CAT1"
