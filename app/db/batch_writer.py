# app/db/batch_writer.py
import logging
from typing import Iterable, List, Tuple

from app.core.config import settings

# (operación, referencia, datos, opciones)
WriteOp = Tuple[str, object, dict, dict]


class BatchWriter:
    """Acumula escrituras de Firestore y las confirma en lotes.

    Firestore rechaza lotes de más de 500 operaciones, así que al llegar al
    límite se confirma el lote actual y se abre uno nuevo. Cada lote es
    atómico por separado: si falla un commit, los lotes anteriores quedan
    aplicados.
    """

    def __init__(self, store, limit: int = None):
        self.store = store
        self.limit = limit or settings.FIRESTORE_BATCH_LIMIT
        self._batch = store.batch()
        self.pending = 0
        self.committed = 0
        self.committed_batches = 0

    def create(self, ref, data: dict):
        self._stage(("create", ref, data, {}))

    def update(self, ref, data: dict):
        self._stage(("update", ref, data, {}))

    def set(self, ref, data: dict, merge: bool = False):
        self._stage(("set", ref, data, {"merge": merge}))

    def stage_group(self, ops: Iterable[WriteOp]):
        """Agrega operaciones que deben quedar en el mismo lote.

        Si no caben en el lote actual se confirma primero. Un grupo más
        grande que el límite se reparte en varios lotes.
        """
        ops: List[WriteOp] = list(ops)
        if self.pending and self.pending + len(ops) > self.limit:
            self.flush()
        for op in ops:
            self._stage(op)

    def _stage(self, op: WriteOp):
        kind, ref, data, options = op
        if kind == "create":
            self._batch.create(ref, data)
        elif kind == "update":
            self._batch.update(ref, data)
        elif kind == "set":
            self._batch.set(ref, data, **options)
        else:
            raise ValueError(f"Operación de lote no soportada: {kind}")
        self.pending += 1
        if self.pending >= self.limit:
            self.flush()

    def flush(self):
        if not self.pending:
            return
        logging.info(f"Ejecutando lote de {self.pending} operaciones...")
        self._batch.commit()
        self.committed += self.pending
        self.committed_batches += 1
        self.pending = 0
        self._batch = self.store.batch()

    def commit(self) -> int:
        """Confirma lo pendiente y devuelve el total de operaciones confirmadas"""
        self.flush()
        return self.committed
