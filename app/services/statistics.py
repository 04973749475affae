# app/services/statistics.py
import logging
from typing import Dict, List

from google.cloud import firestore

from app.db import models


def empty_amounts() -> Dict[str, float]:
    return {counter: 0 for counter in models.STATISTIC_COUNTERS}


def line_amounts(kind: str, quantity: float, total: float) -> Dict[str, float]:
    """Aporte de una línea de detalle; kind es 'product' o 'service'"""
    amounts = empty_amounts()
    amounts[f"{kind}TotalValue"] = total
    amounts[f"{kind}Count"] = quantity
    amounts["totalValue"] = total
    amounts["totalTransactions"] = 1
    return amounts


def add_amounts(target: Dict[str, float], amounts: Dict[str, float]) -> Dict[str, float]:
    for counter, value in amounts.items():
        target[counter] = target.get(counter, 0) + value
    return target


class MonthlyStatistics:
    """Buckets de monthlyStatistics de un mes, uno por dimensión.

    Cada bucket se busca por (year, month) y sus cinco referencias; si no
    existe se agrega su creación a las operaciones del documento en curso.
    Los buckets resueltos se guardan en memoria para no crear duplicados
    dentro de la misma corrida. Los contadores se suman con
    ``firestore.Increment`` para no depender del valor leído.
    """

    def __init__(self, store, year: int, month: int, timestamp):
        self.store = store
        self.year = year
        self.month = month
        self.timestamp = timestamp
        self._buckets = {}

    def resolve(self, ops: List, dimension: str = None, ref=None):
        """Referencia al bucket de la dimensión (None = bucket general)"""
        if dimension is not None and dimension not in models.STATISTIC_DIMENSIONS:
            raise ValueError(f"Dimensión desconocida: {dimension}")
        key = (dimension, ref.path if ref is not None else None)
        if key in self._buckets:
            return self._buckets[key]

        fields = {"year": self.year, "month": self.month}
        for field in models.STATISTIC_DIMENSIONS:
            fields[field] = ref if field == dimension else None
        existing = self.store.find_one(models.MONTHLY_STATISTICS, **fields)

        if existing is not None:
            bucket_ref = existing.reference
        else:
            bucket_ref = self.store.new_ref(models.MONTHLY_STATISTICS)
            data = models.empty_statistic(self.year, self.month, dimension, ref, last_update=self.timestamp)
            ops.append(("create", bucket_ref, data, {}))
            logging.info(f"📊 Nuevo bucket {dimension or 'general'} para {self.month:02d}/{self.year}")

        self._buckets[key] = bucket_ref
        return bucket_ref

    def add(self, ops: List, bucket_ref, amounts: Dict[str, float]):
        update = {
            counter: firestore.Increment(value)
            for counter, value in amounts.items()
            if value
        }
        update["lastUpdate"] = self.timestamp
        ops.append(("update", bucket_ref, update, {}))
