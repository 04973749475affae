# test/conftest.py
import os
import itertools
from datetime import datetime
from zoneinfo import ZoneInfo

# La configuración se lee al importar app.core.config
os.environ.setdefault("CONTIFICO_API_KEY", "test-api-key")
os.environ.setdefault("CONTIFICO_AUTH_TOKEN", "test-pos-token")
os.environ.setdefault("CONTIFICO_URI", "https://contifico.test/api/v1")

import pytest
from google.cloud import firestore

from app.db import models


class FakeRef:
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.id = doc_id
        self.path = f"{collection}/{doc_id}"

    def __eq__(self, other):
        return isinstance(other, FakeRef) and other.path == self.path

    def __hash__(self):
        return hash(self.path)

    def __repr__(self):
        return f"FakeRef({self.path})"


class FakeSnapshot:
    def __init__(self, ref: FakeRef, data):
        self.reference = ref
        self.id = ref.id
        self.exists = data is not None
        self._data = dict(data) if data is not None else None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None

    def get(self, field):
        return self._data[field]


def _apply(current: dict, data: dict) -> dict:
    result = dict(current)
    for field, value in data.items():
        if isinstance(value, firestore.Increment):
            result[field] = result.get(field, 0) + value.value
        else:
            result[field] = value
    return result


class FakeBatch:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def create(self, ref, data):
        self.ops.append(("create", ref, data, {}))

    def update(self, ref, data):
        self.ops.append(("update", ref, data, {}))

    def set(self, ref, data, merge=False):
        self.ops.append(("set", ref, data, {"merge": merge}))

    def commit(self):
        self.store.commit_sizes.append(len(self.ops))
        if len(self.store.commit_sizes) in self.store.failing_commits:
            raise RuntimeError("commit rechazado")
        # Validar todo antes de aplicar: el lote es atómico
        staged = {path: dict(docs) for path, docs in self.store.data.items()}
        for kind, ref, data, options in self.ops:
            docs = staged.setdefault(ref.collection, {})
            if kind == "create":
                if ref.id in docs:
                    raise RuntimeError(f"ya existe {ref.path}")
                docs[ref.id] = _apply({}, data)
            elif kind == "update":
                if ref.id not in docs:
                    raise RuntimeError(f"no existe {ref.path}")
                docs[ref.id] = _apply(docs[ref.id], data)
            elif options.get("merge"):
                docs[ref.id] = _apply(docs.get(ref.id, {}), data)
            else:
                docs[ref.id] = _apply({}, data)
        self.store.data = staged


class FakeStore:
    """Versión en memoria de FirestoreStore"""

    def __init__(self):
        self.data = {}
        self.commit_sizes = []
        self.failing_commits = set()
        self._ids = itertools.count(1)

    # helpers de los tests
    def add(self, collection: str, data: dict, doc_id: str = None) -> FakeRef:
        ref = FakeRef(collection, doc_id or f"seed-{next(self._ids)}")
        self.data.setdefault(collection, {})[ref.id] = dict(data)
        return ref

    def docs(self, collection: str):
        return list(self.data.get(collection, {}).values())

    # interfaz de FirestoreStore
    def new_ref(self, collection: str):
        return FakeRef(collection, f"auto-{next(self._ids)}")

    def ref(self, collection: str, doc_id):
        return FakeRef(collection, str(doc_id))

    def get(self, ref):
        return FakeSnapshot(ref, self.data.get(ref.collection, {}).get(ref.id))

    def find_one(self, collection: str, **fields):
        for doc_id, doc in self.data.get(collection, {}).items():
            if all(name in doc and doc[name] == value for name, value in fields.items()):
                return FakeSnapshot(FakeRef(collection, doc_id), doc)
        return None

    def latest(self, collection: str, order_field: str):
        candidates = [
            (doc[order_field], doc_id, doc)
            for doc_id, doc in self.data.get(collection, {}).items()
            if doc.get(order_field) is not None
        ]
        if not candidates:
            return None
        _, doc_id, doc = max(candidates, key=lambda item: item[0])
        return FakeSnapshot(FakeRef(collection, doc_id), doc)

    def stream(self, collection: str):
        for doc_id, doc in list(self.data.get(collection, {}).items()):
            yield FakeSnapshot(FakeRef(collection, doc_id), doc)

    def batch(self):
        return FakeBatch(self)

    def next_sequence(self, name: str, seed=None) -> int:
        counters = self.data.setdefault(models.COUNTERS, {})
        if name in counters:
            current = counters[name]["value"]
        else:
            current = seed() if seed else 0
        counters[name] = {"value": current + 1}
        return current + 1


class FakeContifico:
    pos_token = "test-pos-token"

    def __init__(self, documents=None):
        self.documents = documents or []
        self.requested_dates = []

    def get_documents(self, emission_date):
        self.requested_dates.append(emission_date)
        return self.documents


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def now():
    return datetime(2025, 6, 1, 12, 0, tzinfo=ZoneInfo("America/Guayaquil"))


@pytest.fixture
def contifico():
    """Fábrica de clientes de Contifico falsos: contifico([doc, ...])"""
    return FakeContifico
