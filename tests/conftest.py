# -*- coding: utf-8 -*-
"""
APOIO FACTUAL - Configuração de Testes (pytest)
============================================================
Fixtures comuns para todos os testes.

O Supabase nunca é contactado: FakeSupabase imita o query builder
do supabase-py (table/select/eq/order/insert/update/delete/
maybe_single/execute) sobre listas em memória.
============================================================
"""

import os
import re
import sys
import uuid
from pathlib import Path
from types import SimpleNamespace

import pytest

# Adicionar diretório raiz ao path
ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

# Configurar ambiente de teste (antes de importar config/main)
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"

_EMBED = re.compile(r"(\w+):(\w+)\((\w+)\)")


# ============================================================
# FAKE SUPABASE
# ============================================================

class FakeQuery:
    """Query builder encadeável sobre uma tabela em memória."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.single = False

    def select(self, columns: str = "*"):
        self.columns = columns
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def maybe_single(self):
        self.single = True
        return self

    def _matches(self, row) -> bool:
        return all(row.get(col) == value for col, value in self.filters)

    def _embed(self, row):
        result = dict(row)
        for alias, table, column in _EMBED.findall(self.columns):
            fk = row.get(f"{alias}_id")
            target = next((r for r in self.client.tables.get(table, []) if r.get("id") == fk), None)
            result[alias] = {column: target.get(column)} if target else None
        return result

    def execute(self):
        self.client.executed.append((self.table, self.op))
        if self.client.fail:
            raise ConnectionError("connection refused")

        rows = self.client.tables.setdefault(self.table, [])

        if self.op == "insert":
            records = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for record in records:
                row = {"id": str(uuid.uuid4()), "created_at": "2024-01-01T00:00:00+00:00", **record}
                rows.append(row)
                created.append(dict(row))
            return SimpleNamespace(data=created)

        matched = [r for r in rows if self._matches(r)]

        if self.op == "update":
            for r in matched:
                r.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.op == "delete":
            self.client.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=[dict(r) for r in matched])

        data = [self._embed(r) for r in matched]
        if self.order_by:
            column, desc = self.order_by
            data.sort(key=lambda r: r.get(column) or "", reverse=desc)

        if self.single:
            # supabase-py devolve None quando maybe_single não encontra linhas
            return SimpleNamespace(data=data[0]) if data else None
        return SimpleNamespace(data=data)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.executed = []
        self.fail = False

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows):
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def fake_sb() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def repo(fake_sb):
    from apoio_factual.repository import SupabaseRepository
    return SupabaseRepository(fake_sb)


@pytest.fixture
def seeded_sb(fake_sb) -> FakeSupabase:
    """Dois dossiês do utilizador + um de outro utilizador."""
    fake_sb.seed(
        "dossiers",
        {"id": "dos-1", "user_id": USER_ID, "title": "Reclamação MEO", "client_name": "Ana Silva",
         "reference_code": "REF-001", "category": "telecomunicacoes", "status": "em_analise",
         "updated_at": "2024-05-02T10:00:00+00:00"},
        {"id": "dos-2", "user_id": USER_ID, "title": "Multa de trânsito", "client_name": "Rui Costa",
         "reference_code": "REF-002", "category": None, "status": "arquivado",
         "updated_at": "2024-04-01T10:00:00+00:00"},
        {"id": "dos-x", "user_id": OTHER_USER_ID, "title": "Dossiê alheio", "status": "pendente",
         "updated_at": "2024-06-01T10:00:00+00:00"},
    )
    fake_sb.seed(
        "documents",
        {"id": "doc-1", "user_id": USER_ID, "dossier_id": "dos-1", "title": "Fatura",
         "document_type": "pdf", "document_date": "2024-01-15", "entity": "MEO"},
        {"id": "doc-2", "user_id": USER_ID, "dossier_id": "dos-1", "title": "Email",
         "document_type": "texto", "document_date": None},
    )
    fake_sb.seed(
        "chronology_entries",
        {"id": "ent-1", "user_id": USER_ID, "dossier_id": "dos-1", "event_date": "2024-01-15",
         "title": "Emissão da fatura", "source_reference": "Fatura n.º 1", "document_id": "doc-1"},
        {"id": "ent-2", "user_id": USER_ID, "dossier_id": "dos-1", "event_date": "2023-11-02",
         "title": "Chamada para o apoio", "source_reference": None, "document_id": None},
        {"id": "ent-3", "user_id": USER_ID, "dossier_id": "dos-1", "event_date": "2024-02-10",
         "title": "Resposta da operadora", "source_reference": "Carta", "document_id": "doc-1"},
    )
    fake_sb.seed(
        "treasury_entries",
        {"id": "tr-1", "user_id": USER_ID, "entry_type": "receita", "amount": 1000.0,
         "description": "Salário", "entry_date": "2024-03-01"},
        {"id": "tr-2", "user_id": USER_ID, "entry_type": "despesa", "amount": 250.5,
         "description": "Renda", "entry_date": "2024-03-05", "category": "casa"},
        {"id": "tr-3", "user_id": USER_ID, "entry_type": "despesa", "amount": 40.0,
         "description": "Luz", "entry_date": "2024-02-10"},
    )
    return fake_sb


@pytest.fixture
def session():
    from auth_service import SessionContext
    return SessionContext(
        user_id=USER_ID,
        email="ana@example.pt",
        expires_at=4102444800.0,
        token_hash="hash-teste",
    )


@pytest.fixture
def client(seeded_sb, session):
    """TestClient com sessão e repositório substituídos."""
    from fastapi.testclient import TestClient

    from apoio_factual.repository import SupabaseRepository
    from auth_service import get_current_user
    from main import app, get_repository

    app.dependency_overrides[get_current_user] = lambda: session
    app.dependency_overrides[get_repository] = lambda: SupabaseRepository(seeded_sb)
    yield TestClient(app)
    app.dependency_overrides.clear()
