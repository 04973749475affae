# app/services/provisioning_service.py
# Alta de categorías, productos/servicios, movimientos de inventario, personas y
# documentos electrónicos en Contifico. Las validaciones corren antes de llamar a la API.
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.errors import ExternalApiError, ValidationError

CATEGORY_KINDS = ("PROD", "SERV")
# Contifico identifica productos y servicios como PRO / SER
PRODUCT_KIND_CODES = {"PROD": "PRO", "SERV": "SER"}
MOVEMENT_KINDS = ("ING", "EGR")


def _today() -> str:
    return datetime.now(ZoneInfo(settings.TIMEZONE)).strftime("%d/%m/%Y")


def _created_id(response: Optional[Dict[str, Any]], what: str) -> str:
    created_id = (response or {}).get("id")
    if not created_id:
        raise ExternalApiError(f"Contifico no devolvió el id de {what}")
    return created_id


def create_category(client, name: str, kind: str) -> str:
    if not name:
        raise ValidationError("El nombre de la categoría es obligatorio")
    if kind not in CATEGORY_KINDS:
        raise ValidationError('El tipo de categoría debe ser "PROD" o "SERV"')

    response = client.create_category({"nombre": name, "tipo_producto": kind})
    category_id = _created_id(response, "la categoría")
    logging.info(f"✅ Categoría '{name}' ({kind}) creada en Contifico: {category_id}")
    return category_id


def validate_product_or_service(data: Dict[str, Any]):
    precio = data.get("precio")
    tipo = data.get("tipo")
    if not precio or precio <= 0:
        raise ValidationError("El precio debe ser mayor a 0 para registrar el producto/servicio")
    if not tipo:
        raise ValidationError("El tipo de producto/servicio es obligatorio para registrar el producto/servicio")
    if not data.get("categoria"):
        raise ValidationError("La categoría del producto/servicio es obligatoria para registrar el producto/servicio")
    if tipo not in CATEGORY_KINDS:
        raise ValidationError('El tipo de producto/servicio debe ser "PROD" o "SERV"')
    if tipo == "PROD" and not data.get("sku"):
        raise ValidationError("El SKU del producto es obligatorio para registrar el producto")
    stock = data.get("stock") or 0
    compra = data.get("compra")
    if stock > 0 and (not compra or compra <= 0):
        raise ValidationError("El precio de compra debe ser mayor a 0 para registrar el movimiento de inventario")
    if not data.get("nombre"):
        raise ValidationError("El nombre del producto/servicio es obligatorio para registrar el producto/servicio")


def create_product_or_service(client, data: Dict[str, Any]) -> str:
    """Crea el producto/servicio y, si trae stock, registra el ingreso de inventario.

    Devuelve el id de Contifico para guardarlo como idContifico en el catálogo local.
    """
    validate_product_or_service(data)

    response = client.create_product({
        "tipo": PRODUCT_KIND_CODES[data["tipo"]],
        "nombre": data["nombre"],
        "descripcion": data.get("descripcion") or "",
        "categoria_id": data["categoria"],
        "minimo": 1,
        "pvp1": data["precio"],
        "estado": "A" if data.get("estado") else "I",
        "codigo": data.get("sku"),
    })
    product_id = _created_id(response, "el producto/servicio")
    logging.info(f"✅ {data['tipo']} '{data['nombre']}' creado en Contifico: {product_id}")

    stock = data.get("stock") or 0
    if stock <= 0:
        return product_id

    create_inventory_movement(
        client,
        "ING",
        [{"id": product_id, "cantidad": stock, "precio": data["compra"]}],
        "Ingreso de Inventario",
    )
    return product_id


def create_inventory_movement(client, kind: str, details: List[Dict[str, Any]], description: str = None):
    if kind not in MOVEMENT_KINDS:
        raise ValidationError('El tipo de movimiento debe ser "ING" o "EGR"')
    if not details:
        raise ValidationError("El movimiento de inventario debe tener al menos un producto")
    if kind == "ING":
        for detail in details:
            if detail.get("precio") is None:
                raise ValidationError(
                    f"El producto/servicio con ID {detail.get('id')} debe tener un precio para un movimiento de ingreso (ING)."
                )
            if detail["precio"] <= 0:
                raise ValidationError(
                    f"El precio del producto/servicio con ID {detail.get('id')} no puede ser negativo o 0."
                )

    warehouses = client.get_warehouses()
    warehouse_id = warehouses[0].get("id") if warehouses else None
    if not warehouse_id:
        raise ValidationError("No se encontró una bodega para registrar el movimiento de inventario")

    detalles = []
    for detail in details:
        detalle = {"producto_id": detail.get("id"), "cantidad": detail.get("cantidad")}
        if detail.get("precio") is not None:
            detalle["precio"] = detail["precio"]
        detalles.append(detalle)

    client.create_inventory_movement({
        "tipo": kind,
        "bodega_id": warehouse_id,
        "detalles": detalles,
        "fecha": _today(),
        "descripcion": description or "Movimiento de inventario",
    })
    logging.info(f"📦 Movimiento {kind} registrado en bodega {warehouse_id} ({len(detalles)} productos)")


def person_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "tipo": "N",
        "cedula": data.get("cedula"),
        "razon_social": data.get("razonSocial"),
        "telefonos": data.get("telefono") or None,
        "email": data.get("email") or None,
        "direccion": data.get("direccion") or None,
        "es_cliente": bool(data.get("esCliente")),
        "es_empleado": bool(data.get("esEmpleado")),
        "es_vendedor": bool(data.get("esVendedor")),
        "es_proveedor": False,
    }


def create_client(client, data: Dict[str, Any]) -> str:
    if not data.get("cedula"):
        raise ValidationError("La cédula es obligatoria para registrar la persona en Contifico")
    if not data.get("razonSocial"):
        raise ValidationError("El nombre o razón social es obligatorio para registrar la persona en Contifico")

    response = client.create_person(person_payload(data))
    person_id = _created_id(response, "la persona")
    logging.info(f"👤 Persona {data['cedula']} registrada en Contifico: {person_id}")
    return person_id


def get_person(client, person_id: str) -> Dict[str, Any]:
    return client.get_person(person_id)


def _money(value: float) -> float:
    return round(value, 2)


def build_document_payload(data: Dict[str, Any], pos_token: str) -> Dict[str, Any]:
    """Documento electrónico con bases imponibles y totales calculados por línea"""
    cliente = data.get("cliente") or {}
    if not data.get("documento"):
        raise ValidationError("El número de documento es obligatorio")
    if not cliente.get("cedula"):
        raise ValidationError("La cédula del cliente es obligatoria para emitir el documento")
    if not data.get("detalles"):
        raise ValidationError("El documento debe tener al menos un detalle")

    detalles = []
    subtotal_0 = 0.0
    subtotal_iva = 0.0
    iva = 0.0
    for line in data["detalles"]:
        cantidad = line.get("cantidad") or 0
        precio = line.get("precio") or 0
        if cantidad <= 0 or precio <= 0:
            raise ValidationError(f"Detalle {line.get('producto_id')}: cantidad y precio deben ser mayores a 0")
        porcentaje_iva = line.get("porcentaje_iva") or 0
        descuento = line.get("porcentaje_descuento") or 0
        base = _money(cantidad * precio * (1 - descuento / 100))
        gravable = base if porcentaje_iva > 0 else 0.0
        cero = 0.0 if porcentaje_iva > 0 else base
        subtotal_0 += cero
        subtotal_iva += gravable
        iva += gravable * porcentaje_iva / 100
        detalles.append({
            "producto_id": line.get("producto_id"),
            "cantidad": cantidad,
            "precio": precio,
            "porcentaje_iva": porcentaje_iva,
            "porcentaje_descuento": descuento,
            "base_cero": cero,
            "base_gravable": gravable,
            "base_no_gravable": 0.0,
        })

    total = _money(subtotal_0 + subtotal_iva + iva)
    cobros = [
        {key: value for key, value in cobro.items() if value is not None}
        for cobro in data.get("cobros") or []
    ]

    return {
        "pos": pos_token,
        "fecha_emision": data.get("fecha_emision") or _today(),
        "tipo_documento": data.get("tipo_documento") or "FAC",
        "documento": data["documento"],
        "estado": data.get("estado") or "P",
        "electronico": data.get("electronico", True),
        "descripcion": data.get("descripcion") or "",
        "cliente": {
            "tipo": cliente.get("tipo") or "N",
            "cedula": cliente["cedula"],
            "razon_social": cliente.get("razon_social"),
            "telefonos": cliente.get("telefonos"),
            "email": cliente.get("email"),
            "direccion": cliente.get("direccion"),
            "es_extranjero": bool(cliente.get("es_extranjero")),
        },
        "vendedor": data.get("vendedor"),
        "subtotal_0": _money(subtotal_0),
        "subtotal_12": _money(subtotal_iva),
        "iva": _money(iva),
        "ice": 0.0,
        "servicio": 0.0,
        "total": total,
        "detalles": detalles,
        "cobros": cobros,
    }


def create_electronic_document(client, data: Dict[str, Any]) -> str:
    payload = build_document_payload(data, client.pos_token)
    response = client.create_document(payload)
    document_id = _created_id(response, "el documento")
    logging.info(f"🧾 Documento {payload['documento']} emitido en Contifico: {document_id} (total {payload['total']})")
    return document_id
