# app/db/models.py
# Nombres de colecciones y plantillas de documentos de Firestore.
# Los nombres de campos son los que leen las apps cliente, no cambiarlos.

# Colecciones
USERS = "users"
STORES = "locales"
PRODUCTS = "productos"
SERVICES = "servicios"
SERVICE_CATEGORIES = "categories"
PRODUCT_CATEGORIES = "categoriesProducts"
ORDERS = "orders"
BILLED_SERVICES = "serviciosFacturados"
MONTHLY_STATISTICS = "monthlyStatistics"
COUNTERS = "counters"
SYNC_LEDGER = "contificoSyncLedger"

ORDER_COUNTER_ID = "orders"

# Estado del documento en Contifico -> orderStatus
ORDER_STATUS_BY_CODE = {
    "P": "Pago_Pendiente",
    "C": "Pago_Por_Validar",
    "G": "En_proceso",
    "A": "Cancelado",
    "E": "Enviado",
}
DEFAULT_ORDER_STATUS = "Completado"

# forma_cobro -> paymentMethods
PAYMENT_METHOD_BY_CODE = {
    "TC": "creditCard",
    "TRA": "bankTransfer",
}
DEFAULT_PAYMENT_METHOD = "payInStore"

# Referencias de dimensión de monthlyStatistics, solo una puede ser no nula
STATISTIC_DIMENSIONS = ("storeRef", "asesorRef", "productRef", "serviceRef", "clientRef")

STATISTIC_COUNTERS = (
    "productTotalValue",
    "serviceTotalValue",
    "productCount",
    "serviceCount",
    "totalValue",
    "totalTransactions",
)


def empty_statistic(year: int, month: int, dimension: str = None, ref=None, last_update=None) -> dict:
    """Bucket de monthlyStatistics con todos los contadores en cero"""
    data = {"year": year, "month": month}
    for field in STATISTIC_DIMENSIONS:
        data[field] = ref if field == dimension else None
    for counter in STATISTIC_COUNTERS:
        data[counter] = 0
    data["lastUpdate"] = last_update
    return data


# Campos de flujo interno de la orden, solo se escriben al crearla
ORDER_WORKFLOW_DEFAULTS = {
    "transferProofImage": None,
    "transferValidationBy": None,
    "transferValidationComments": None,
    "shippingMethod": "pickup",
    "shippingAddress": None,
    "shippingCost": 0,
    "promoCode": None,
    "internalNote": [],
    "processedDate": None,
    "readyForPickupDate": None,
    "shippedDate": None,
    "deliveryDate": None,
    "completedDate": None,
    "pickUpDate": None,
}
