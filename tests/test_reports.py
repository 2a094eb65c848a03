# -*- coding: utf-8 -*-
"""Testes dos relatórios, dashboard e arquivo."""

from apoio_factual.analysis import MSG_NO_CHRONOLOGY, MSG_NO_DOCUMENTS
from apoio_factual.models import ChronologyEntry, Document, Dossier
from apoio_factual.reports import (
    archived_dossiers,
    build_dossier_summaries,
    build_report,
    category_distribution,
    compute_report_stats,
    dashboard_stats,
    filter_summaries,
    top_dossiers,
)


def _dossiers():
    return [
        Dossier(id="a", title="Reclamação operadora móvel", status="em_analise", category="telecomunicacoes"),
        Dossier(id="b", title="IRS", status="completo", category="fiscal"),
        Dossier(id="c", title="Multa", status="pendente", category=None),
        Dossier(id="d", title="Antigo", status="arquivado"),
    ]


def _documents():
    return [
        Document(id="d1", title="x", dossier_id="a"),
        Document(id="d2", title="y", dossier_id="a"),
        Document(id="d3", title="z", dossier_id="b"),
        Document(id="d4", title="w", dossier_id="d"),
    ]


def _entries():
    return [
        ChronologyEntry(id="e1", event_date="2024-01-01", title="t", dossier_id="a"),
        ChronologyEntry(id="e2", event_date="2024-01-02", title="t", dossier_id="b"),
    ]


class TestSummaries:

    def test_counts_and_gaps(self):
        summaries = build_dossier_summaries(_dossiers(), _documents(), _entries())
        by_id = {s.id: s for s in summaries}
        assert by_id["a"].document_count == 2
        assert by_id["a"].chronology_count == 1
        assert not by_id["a"].has_gaps
        assert by_id["c"].gaps == [MSG_NO_DOCUMENTS, MSG_NO_CHRONOLOGY]
        assert by_id["d"].gaps == [MSG_NO_CHRONOLOGY]

    def test_filters(self):
        summaries = build_dossier_summaries(_dossiers(), _documents(), _entries())
        assert len(filter_summaries(summaries, "all")) == 4
        assert len(filter_summaries(summaries, None)) == 4
        assert [s.id for s in filter_summaries(summaries, "with_gaps")] == ["c", "d"]
        assert [s.id for s in filter_summaries(summaries, "completo")] == ["b"]

    def test_stats(self):
        stats = compute_report_stats(build_dossier_summaries(_dossiers(), _documents(), _entries()))
        assert stats == {"total": 4, "with_gaps": 2, "complete": 1, "pending": 2}


class TestCharts:

    def test_category_none_counts_as_outros(self):
        summaries = build_dossier_summaries(_dossiers(), [], [])
        categories = {c["category"]: c["count"] for c in category_distribution(summaries)}
        assert categories["Outros"] == 2
        assert categories["Fiscal"] == 1

    def test_top_dossiers_truncates_names(self):
        summaries = build_dossier_summaries(_dossiers(), _documents(), _entries())
        top = top_dossiers(summaries)
        assert top[0]["name"] == "Reclamação oper..."
        assert top[0]["documentos"] == 2
        assert top[0]["entradas"] == 1
        assert len(top) <= 5

    def test_top_dossiers_limit(self):
        dossiers = [Dossier(id=str(i), title=f"D{i}", status="pendente") for i in range(8)]
        assert len(top_dossiers(build_dossier_summaries(dossiers, [], []))) == 5

    def test_report_stats_over_all_dossiers(self):
        """Estatísticas sobre todos; lista já filtrada."""
        report = build_report(_dossiers(), _documents(), _entries(), report_filter="with_gaps")
        assert report["stats"]["total"] == 4
        assert len(report["dossiers"]) == 2
        assert report["dossiers"][0]["has_gaps"] is True
        assert report["dossiers"][0]["status_label"] == "Pendente"

    def test_empty_report(self):
        report = build_report([], [], [])
        assert report["charts"] == {"status": [], "categories": [], "top_dossiers": []}
        assert report["stats"]["total"] == 0


class TestDashboardAndArchive:

    def test_dashboard_stats(self):
        stats = dashboard_stats(_dossiers(), total_documents=4)
        assert stats == {
            "total_dossiers": 4,
            "active_dossiers": 3,
            "total_documents": 4,
            "pending_review": 2,
        }

    def test_archived_dossiers(self):
        archived = archived_dossiers(_dossiers(), _documents())
        assert [a["id"] for a in archived] == ["d"]
        assert archived[0]["document_count"] == 1
