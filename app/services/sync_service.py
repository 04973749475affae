# app/services/sync_service.py - CONCILIACIÓN DIARIA CONTIFICO -> FIRESTORE
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.errors import AppError, InternalError
from app.db import models
from app.db.batch_writer import BatchWriter
from app.services.statistics import MonthlyStatistics, add_amounts, empty_amounts, line_amounts


def map_order_status(code: Optional[str]) -> str:
    return models.ORDER_STATUS_BY_CODE.get(code, models.DEFAULT_ORDER_STATUS)


def map_payment_method(code: Optional[str]) -> str:
    return models.PAYMENT_METHOD_BY_CODE.get(code, models.DEFAULT_PAYMENT_METHOD)


def parse_contifico_date(value: Optional[str]) -> Optional[datetime]:
    """DD/MM/YYYY -> datetime a medianoche UTC"""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%d/%m/%Y").replace(tzinfo=timezone.utc)
    except ValueError:
        logging.warning(f"⚠️ Fecha de Contifico con formato inesperado: '{value}'")
        return None


def _to_number(value: Any, default: float = 0) -> float:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return int(number) if number.is_integer() else number


def store_code(document_number: Optional[str]) -> Optional[str]:
    """'001-002-000123' -> '001'"""
    if not document_number:
        return None
    return document_number.split("-")[0] or None


def build_projection(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Campos financieros de orders / serviciosFacturados a partir del documento de Contifico"""
    subtotal = _to_number(doc.get("subtotal_12"))
    rate = _to_number(doc.get("iva"), default=1)
    cobros = doc.get("cobros") or []
    payment = cobros[0] if cobros else None

    return {
        "idContifico": doc.get("id"),
        "orderDate": parse_contifico_date(doc.get("fecha_emision")),
        "urlRide": doc.get("url_ride") or None,
        "orderStatus": map_order_status(doc.get("estado")),
        "subtotal": subtotal,
        "tax": subtotal * rate / 100,
        "totalValue": _to_number(doc.get("total")),
        "paymentTransactionId": str(payment.get("numero_comprobante")) if payment else None,
        "paymentDate": parse_contifico_date(payment.get("fecha")) if payment else None,
        "paymentMethods": map_payment_method(payment.get("forma_cobro")) if payment else None,
    }


class DailyReconciliation:
    """Una corrida de sincronización de los documentos del día.

    Todas las escrituras de un documento de Contifico se agregan al
    BatchWriter como un solo grupo, así nunca quedan repartidas en dos lotes.
    """

    def __init__(self, store, client, now: datetime = None):
        self.store = store
        self.client = client
        self.now = now or datetime.now(ZoneInfo(settings.TIMEZONE))
        self.writer = BatchWriter(store)
        self.statistics = MonthlyStatistics(store, self.now.year, self.now.month, self.now)
        # Registros creados en esta corrida, aún no visibles en Firestore
        self._orders: Dict[Any, Any] = {}
        self._billed: Dict[Any, Any] = {}
        self._counted: Dict[Any, set] = {}

    def run(self) -> str:
        emission_date = self.now.strftime("%d/%m/%Y")
        logging.info(f"📄 Obteniendo documentos de Contifico del {emission_date}...")
        documents = self.client.get_documents(emission_date)
        logging.info(f"📋 Obtenidos {len(documents)} documentos de Contifico.")

        for doc in documents:
            self.writer.stage_group(self.reconcile(doc))
        committed = self.writer.commit()

        logging.info(f"✅ Conciliación finalizada: {len(documents)} documentos, {committed} escrituras en {self.writer.committed_batches} lotes")
        return f"{len(documents)} documentos guardados o actualizados correctamente"

    def reconcile(self, doc: Dict[str, Any]) -> List:
        """Operaciones de escritura para un documento de Contifico"""
        ops: List = []
        external_id = doc.get("id")
        if not external_id:
            logging.warning(f"⚠️ Documento de Contifico sin id omitido: {doc.get('documento')}")
            return ops
        counted_lines = self._counted_lines(external_id)

        store_ref = self._lookup(models.STORES, numeroEstablecimiento=store_code(doc.get("documento")))
        advisor_ref = self._lookup(models.USERS, cedula=(doc.get("vendedor") or {}).get("cedula"))
        client_ref = self._lookup(models.USERS, cedula=(doc.get("cliente") or {}).get("cedula"))

        products_list = []
        service_list = []
        new_lines = []
        doc_amounts = empty_amounts()

        for index, detalle in enumerate(doc.get("detalles") or []):
            product_id = detalle.get("producto_id")
            quantity = _to_number(detalle.get("cantidad"))
            total_price = _to_number(detalle.get("precio")) * quantity

            product_ref = self._lookup(models.PRODUCTS, idContifico=product_id)
            if product_ref is not None:
                kind, dimension, ref = "product", "productRef", product_ref
                products_list.append({"productId": product_ref, "quantity": quantity, "totalPrice": total_price})
            else:
                service_ref = self._lookup(models.SERVICES, idContifico=product_id)
                if service_ref is None:
                    logging.warning(f"⚠️ Documento {external_id}: producto_id {product_id} no existe en productos ni servicios - omitido")
                    continue
                kind, dimension, ref = "service", "serviceRef", service_ref
                service_list.append({"serviceId": service_ref, "quantity": quantity, "totalPrice": total_price})

            line_key = f"{index}:{product_id}"
            if line_key in counted_lines:
                continue
            amounts = line_amounts(kind, quantity, total_price)
            add_amounts(doc_amounts, amounts)
            self.statistics.add(ops, self.statistics.resolve(ops, dimension, ref), amounts)
            new_lines.append(line_key)

        if new_lines:
            buckets = [self.statistics.resolve(ops)]
            for dimension, ref in (("storeRef", store_ref), ("asesorRef", advisor_ref), ("clientRef", client_ref)):
                if ref is not None:
                    buckets.append(self.statistics.resolve(ops, dimension, ref))
            for bucket_ref in buckets:
                self.statistics.add(ops, bucket_ref, doc_amounts)
            counted_lines.update(new_lines)
            ops.append(("set", self.store.ref(models.SYNC_LEDGER, external_id), {
                "countedLines": sorted(counted_lines),
                "countedAt": self.now,
                "year": self.now.year,
                "month": self.now.month,
            }, {"merge": False}))
        elif counted_lines:
            logging.info(f"ℹ️ Documento {external_id} ya sumado a las estadísticas - solo se actualiza la orden")

        projection = build_projection(doc)
        if client_ref is not None:
            projection["clientUserId"] = client_ref

        self._upsert_order(ops, external_id, projection, products_list)
        self._upsert_billed_service(ops, external_id, projection, service_list)
        return ops

    def _lookup(self, collection: str, **fields):
        """Referencia del primer documento que coincide, None si no hay o si el valor buscado falta"""
        if any(value is None or value == "" for value in fields.values()):
            return None
        snapshot = self.store.find_one(collection, **fields)
        return snapshot.reference if snapshot is not None else None

    def _counted_lines(self, external_id) -> set:
        """Líneas del documento ya sumadas a las estadísticas ("<posición>:<producto_id>")"""
        if external_id not in self._counted:
            snapshot = self.store.get(self.store.ref(models.SYNC_LEDGER, external_id))
            ledger = (snapshot.to_dict() or {}) if snapshot.exists else {}
            self._counted[external_id] = set(ledger.get("countedLines") or [])
        return self._counted[external_id]

    def _existing(self, collection: str, created: Dict, external_id):
        if external_id in created:
            return created[external_id]
        return self._lookup(collection, idContifico=external_id)

    def _upsert_order(self, ops: List, external_id, projection: Dict, products_list: List):
        order_ref = self._existing(models.ORDERS, self._orders, external_id)
        if order_ref is not None:
            ops.append(("update", order_ref, dict(projection), {}))
        elif products_list:
            order_ref = self.store.new_ref(models.ORDERS)
            data = {
                "clientUserId": None,
                **projection,
                **models.ORDER_WORKFLOW_DEFAULTS,
                "internalNote": [],
                "productsList": products_list,
                "orderNumber": self.store.next_sequence(models.ORDER_COUNTER_ID, seed=self._last_order_number),
            }
            ops.append(("create", order_ref, data, {}))
            self._orders[external_id] = order_ref
            logging.info(f"🧾 Nueva orden #{data['orderNumber']} para documento {external_id}")

    def _upsert_billed_service(self, ops: List, external_id, projection: Dict, service_list: List):
        billed_ref = self._existing(models.BILLED_SERVICES, self._billed, external_id)
        if billed_ref is not None:
            ops.append(("update", billed_ref, dict(projection), {}))
        elif service_list:
            billed_ref = self.store.new_ref(models.BILLED_SERVICES)
            data = {"clientUserId": None, **projection, "serviceList": service_list}
            ops.append(("create", billed_ref, data, {}))
            self._billed[external_id] = billed_ref

    def _last_order_number(self) -> int:
        """Número de la orden más reciente, para arrancar el contador la primera vez"""
        last_order = self.store.latest(models.ORDERS, "orderDate")
        if last_order is None:
            return 0
        return int((last_order.to_dict() or {}).get("orderNumber") or 0)


def synchronize_daily_documents(store, client, now: datetime = None) -> str:
    """Sincroniza los documentos de venta del día desde Contifico hacia Firestore"""
    logging.info("🚀 Iniciando conciliación diaria de documentos de Contifico...")
    try:
        return DailyReconciliation(store, client, now=now).run()
    except AppError:
        logging.exception("🔴 ERROR en la conciliación diaria de Contifico")
        raise
    except Exception as e:
        logging.exception(f"🔴 ERROR CRÍTICO en la conciliación diaria: {e}")
        raise InternalError() from e
