# -*- coding: utf-8 -*-
"""Testes da exportação PDF e do script de criação do schema."""

from unittest.mock import MagicMock, patch

import requests

import create_tables
from apoio_factual.models import ChronologyEntry, Dossier
from apoio_factual.pdf_export import _escape, build_chronology_pdf, build_report_pdf
from apoio_factual.reports import build_report


class TestPdfExport:

    def test_chronology_pdf(self):
        entries = [
            ChronologyEntry(id="1", event_date="2023-05-01", title="<b>Início</b> & fim",
                            description="Descrição", source_reference="Carta"),
            ChronologyEntry(id="2", event_date="2024-01-10", title="Resposta"),
        ]
        pdf = build_chronology_pdf(entries, dossier_title="Reclamação")
        assert pdf.startswith(b"%PDF")

    def test_empty_chronology_pdf(self):
        assert build_chronology_pdf([]).startswith(b"%PDF")

    def test_report_pdf(self):
        report = build_report(
            [Dossier(id="d1", title="Dossiê sem nada", status="pendente")], [], [],
        )
        assert build_report_pdf(report).startswith(b"%PDF")

    def test_escape(self):
        assert _escape("<a> & b") == "&lt;a&gt; &amp; b"
        assert _escape(None) == ""


class TestCreateTables:

    def test_schema_covers_all_tables(self):
        sql = create_tables.build_schema_sql()
        for table in ("dossiers", "documents", "chronology_entries", "treasury_entries",
                      "contact_messages", "profiles", "user_roles"):
            assert f"CREATE TABLE IF NOT EXISTS public.{table}" in sql
        for enum in ("app_role", "document_type", "dossier_status", "treasury_type"):
            assert f"CREATE TYPE public.{enum}" in sql
        assert "FUNCTION public.has_role" in sql
        assert "update_dossiers_updated_at" in sql
        assert "ALTER TABLE public.chronology_entries ENABLE ROW LEVEL SECURITY" in sql

    def test_enums_before_tables(self):
        sql = create_tables.build_schema_sql()
        assert sql.index("CREATE TYPE public.dossier_status") < sql.index("CREATE TABLE IF NOT EXISTS public.dossiers")

    def test_apply_schema_success(self):
        response = MagicMock(status_code=200, text="")
        with patch.object(create_tables.requests, "post", return_value=response) as post:
            assert create_tables.apply_schema("https://x.supabase.co/", "key", "SELECT 1") is True
        assert post.call_args.args[0] == "https://x.supabase.co/rest/v1/rpc/exec_sql"
        assert post.call_args.kwargs["json"] == {"sql": "SELECT 1"}

    def test_apply_schema_failure(self):
        with patch.object(create_tables.requests, "post", side_effect=requests.ConnectionError("down")):
            assert create_tables.apply_schema("https://x.supabase.co", "key", "SELECT 1") is False
        response = MagicMock(status_code=404, text="not found")
        with patch.object(create_tables.requests, "post", return_value=response):
            assert create_tables.apply_schema("https://x.supabase.co", "key", "SELECT 1") is False

    def test_main_prints_sql_when_apply_fails(self, capsys):
        with patch.object(create_tables, "apply_schema", return_value=False), \
                patch.object(create_tables, "load_dotenv"):
            assert create_tables.main() == 1
        assert "CREATE TABLE IF NOT EXISTS public.dossiers" in capsys.readouterr().out
