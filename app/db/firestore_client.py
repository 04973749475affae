"""Small Firestore helper used by the sync services.

Wraps ``google.cloud.firestore.Client`` with the handful of queries the
pipeline needs (equality lookups, latest-by-field, whole collection scans)
plus write batches and a transactional sequence counter.
"""
from typing import Any, Callable, Iterator, Optional
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import And, FieldFilter
from app.core.config import settings
from app.db import models


class FirestoreStore:
    def __init__(self, project: str = None, database: str = None, client: firestore.Client = None):
        self.project = project or settings.GOOGLE_CLOUD_PROJECT
        self.database = database or settings.FIRESTORE_DATABASE
        # Client uses Application Default Credentials or GOOGLE_APPLICATION_CREDENTIALS
        if client is not None:
            self.client = client
        elif self.database:
            self.client = firestore.Client(project=self.project, database=self.database)
        else:
            self.client = firestore.Client(project=self.project)

    def collection(self, name: str):
        return self.client.collection(name)

    def new_ref(self, collection: str):
        """Referencia con id autogenerado, aún sin escribir"""
        return self.client.collection(collection).document()

    def ref(self, collection: str, doc_id: str):
        return self.client.collection(collection).document(str(doc_id))

    def get(self, ref):
        return ref.get()

    def find_one(self, collection: str, **fields: Any) -> Optional[firestore.DocumentSnapshot]:
        """Primer documento cuyos campos son iguales a ``fields``.

        Acepta ``None`` como valor (coincide con campos nulos) y referencias
        de documento.
        """
        filters = [FieldFilter(name, "==", value) for name, value in fields.items()]
        query = self.client.collection(collection)
        if len(filters) == 1:
            query = query.where(filter=filters[0])
        else:
            query = query.where(filter=And(filters=filters))
        docs = query.limit(1).get()
        return docs[0] if docs else None

    def latest(self, collection: str, order_field: str) -> Optional[firestore.DocumentSnapshot]:
        query = (
            self.client.collection(collection)
            .order_by(order_field, direction=firestore.Query.DESCENDING)
            .limit(1)
        )
        docs = query.get()
        return docs[0] if docs else None

    def stream(self, collection: str) -> Iterator[firestore.DocumentSnapshot]:
        return self.client.collection(collection).stream()

    def batch(self):
        return self.client.batch()

    def next_sequence(self, name: str, seed: Callable[[], int] = None) -> int:
        """Incrementa y devuelve el contador ``counters/<name>`` dentro de una transacción.

        Si el contador aún no existe arranca desde ``seed()`` (0 por defecto).
        """
        counter_ref = self.ref(models.COUNTERS, name)
        transaction = self.client.transaction()

        @firestore.transactional
        def _advance(transaction, ref):
            snapshot = ref.get(transaction=transaction)
            if snapshot.exists:
                current = snapshot.get("value") or 0
            else:
                current = seed() if seed else 0
            transaction.set(ref, {"value": current + 1, "lastUpdate": firestore.SERVER_TIMESTAMP}, merge=True)
            return current + 1

        return _advance(transaction, counter_ref)


def get_store() -> FirestoreStore:
    return FirestoreStore()
