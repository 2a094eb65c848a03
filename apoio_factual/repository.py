# -*- coding: utf-8 -*-
"""
REPOSITORY - Acesso às tabelas Supabase
===================================================
Todas as leituras e escritas do Apoio Factual passam por aqui.

Regras:
  - Usa o cliente service_role; TODAS as queries de dados pessoais
    filtram por user_id (o RLS do Supabase é a segunda barreira)
  - Qualquer falha do Supabase é registada e relançada como
    RepositoryError com mensagem para o utilizador (pt-PT)
  - Registo inexistente (ou de outro utilizador) -> NotFoundError
  - Sem retries: o cliente volta a pedir se quiser
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from apoio_factual.config import (
    TABLE_CHRONOLOGY,
    TABLE_CONTACT_MESSAGES,
    TABLE_DOCUMENTS,
    TABLE_DOSSIERS,
    TABLE_PROFILES,
    TABLE_TREASURY,
    TABLE_USER_ROLES,
)
from apoio_factual.models import (
    AppRole,
    ChronologyEntry,
    ContactMessage,
    Document,
    Dossier,
    Profile,
    TreasuryEntry,
)

logger = logging.getLogger(__name__)

CHRONOLOGY_SELECT = "*, dossier:dossiers(title), document:documents(title)"


class RepositoryError(Exception):
    """Erro genérico de acesso a dados."""
    pass


class NotFoundError(RepositoryError):
    """Registo não encontrado (ou não pertence ao utilizador)."""
    pass


def _rows(response) -> List[Dict[str, Any]]:
    # maybe_single().execute() pode devolver None quando não há linhas
    if response is None or response.data is None:
        return []
    if isinstance(response.data, dict):
        return [response.data]
    return list(response.data)


class SupabaseRepository:
    """
    Operações CRUD sobre dossiês, documentos, cronologia, tesouraria,
    mensagens de contacto, perfis e papéis.
    """

    def __init__(self, supabase_client: Client):
        """
        Args:
            supabase_client: Cliente Supabase (service_role)
        """
        self.sb = supabase_client

    def _execute(self, query, user_message: str, context: str) -> List[Dict[str, Any]]:
        try:
            return _rows(query.execute())
        except Exception as e:
            logger.error(f"[{context}] Erro Supabase: {type(e).__name__}: {e}")
            raise RepositoryError(user_message) from e

    # ------------------------------------------------------------------
    # DOSSIÊS
    # ------------------------------------------------------------------

    def list_dossiers(self, user_id: str) -> List[Dossier]:
        rows = self._execute(
            self.sb.table(TABLE_DOSSIERS).select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True),
            "Não foi possível carregar os dossiês.",
            "DOSSIERS",
        )
        return [Dossier.from_row(r) for r in rows]

    def get_dossier(self, user_id: str, dossier_id: str) -> Dossier:
        rows = self._execute(
            self.sb.table(TABLE_DOSSIERS).select("*")
            .eq("id", dossier_id)
            .eq("user_id", user_id)
            .maybe_single(),
            "Não foi possível carregar o dossiê.",
            "DOSSIERS",
        )
        if not rows:
            raise NotFoundError("Dossiê não encontrado.")
        return Dossier.from_row(rows[0])

    def create_dossier(self, user_id: str, data: Dict[str, Any]) -> Dossier:
        rows = self._execute(
            self.sb.table(TABLE_DOSSIERS).insert({**data, "user_id": user_id}),
            "Não foi possível criar o dossiê.",
            "DOSSIERS",
        )
        if not rows:
            raise RepositoryError("Não foi possível criar o dossiê.")
        dossier = Dossier.from_row(rows[0])
        logger.info(f"[DOSSIERS] Criado {dossier.id} para user={user_id[:8]}")
        return dossier

    def update_dossier(self, user_id: str, dossier_id: str, data: Dict[str, Any]) -> Dossier:
        rows = self._execute(
            self.sb.table(TABLE_DOSSIERS).update(data)
            .eq("id", dossier_id)
            .eq("user_id", user_id),
            "Não foi possível actualizar o dossiê.",
            "DOSSIERS",
        )
        if not rows:
            raise NotFoundError("Dossiê não encontrado.")
        return Dossier.from_row(rows[0])

    def delete_dossier(self, user_id: str, dossier_id: str) -> None:
        rows = self._execute(
            self.sb.table(TABLE_DOSSIERS).delete()
            .eq("id", dossier_id)
            .eq("user_id", user_id),
            "Não foi possível eliminar o dossiê.",
            "DOSSIERS",
        )
        if not rows:
            raise NotFoundError("Dossiê não encontrado.")
        logger.info(f"[DOSSIERS] Eliminado {dossier_id} (user={user_id[:8]})")

    # ------------------------------------------------------------------
    # DOCUMENTOS
    # ------------------------------------------------------------------

    def list_documents(self, user_id: str, dossier_id: Optional[str] = None) -> List[Document]:
        query = self.sb.table(TABLE_DOCUMENTS).select("*").eq("user_id", user_id)
        if dossier_id:
            query = query.eq("dossier_id", dossier_id)
        rows = self._execute(
            query.order("document_date", desc=True),
            "Não foi possível carregar os documentos.",
            "DOCUMENTS",
        )
        return [Document.from_row(r) for r in rows]

    def create_document(self, user_id: str, dossier_id: str, data: Dict[str, Any]) -> Document:
        # Garante que o dossiê existe e pertence ao utilizador
        self.get_dossier(user_id, dossier_id)
        rows = self._execute(
            self.sb.table(TABLE_DOCUMENTS).insert({
                **data,
                "dossier_id": dossier_id,
                "user_id": user_id,
            }),
            "Não foi possível adicionar o documento.",
            "DOCUMENTS",
        )
        if not rows:
            raise RepositoryError("Não foi possível adicionar o documento.")
        return Document.from_row(rows[0])

    def delete_document(self, user_id: str, document_id: str) -> None:
        rows = self._execute(
            self.sb.table(TABLE_DOCUMENTS).delete()
            .eq("id", document_id)
            .eq("user_id", user_id),
            "Não foi possível eliminar o documento.",
            "DOCUMENTS",
        )
        if not rows:
            raise NotFoundError("Documento não encontrado.")

    # ------------------------------------------------------------------
    # CRONOLOGIA
    # ------------------------------------------------------------------

    def list_chronology(self, user_id: str, dossier_id: Optional[str] = None) -> List[ChronologyEntry]:
        query = self.sb.table(TABLE_CHRONOLOGY).select(CHRONOLOGY_SELECT).eq("user_id", user_id)
        if dossier_id:
            query = query.eq("dossier_id", dossier_id)
        rows = self._execute(
            query.order("event_date", desc=False),
            "Não foi possível carregar a cronologia.",
            "CRONOLOGIA",
        )
        return [ChronologyEntry.from_row(r) for r in rows]

    def _ensure_document_in_dossier(self, user_id: str, document_id: str, dossier_id: str) -> None:
        # O documento ligado tem de ser do utilizador e do mesmo dossiê
        rows = self._execute(
            self.sb.table(TABLE_DOCUMENTS).select("id")
            .eq("id", document_id)
            .eq("user_id", user_id)
            .eq("dossier_id", dossier_id)
            .maybe_single(),
            "Não foi possível validar o documento.",
            "CRONOLOGIA",
        )
        if not rows:
            logger.warning(f"[CRONOLOGIA] Documento {document_id} rejeitado para o dossiê {dossier_id}")
            raise NotFoundError("Documento não encontrado.")

    def create_chronology_entry(self, user_id: str, data: Dict[str, Any]) -> ChronologyEntry:
        self.get_dossier(user_id, data["dossier_id"])
        if data.get("document_id"):
            self._ensure_document_in_dossier(user_id, data["document_id"], data["dossier_id"])
        rows = self._execute(
            self.sb.table(TABLE_CHRONOLOGY).insert({**data, "user_id": user_id}),
            "Não foi possível criar a entrada.",
            "CRONOLOGIA",
        )
        if not rows:
            raise RepositoryError("Não foi possível criar a entrada.")
        return ChronologyEntry.from_row(rows[0])

    def update_chronology_entry(self, user_id: str, entry_id: str, data: Dict[str, Any]) -> ChronologyEntry:
        if data.get("document_id"):
            current = self._execute(
                self.sb.table(TABLE_CHRONOLOGY).select("id, dossier_id")
                .eq("id", entry_id)
                .eq("user_id", user_id)
                .maybe_single(),
                "Não foi possível carregar a entrada.",
                "CRONOLOGIA",
            )
            if not current:
                raise NotFoundError("Entrada não encontrada.")
            self._ensure_document_in_dossier(user_id, data["document_id"], current[0]["dossier_id"])
        rows = self._execute(
            self.sb.table(TABLE_CHRONOLOGY).update(data)
            .eq("id", entry_id)
            .eq("user_id", user_id),
            "Não foi possível atualizar a entrada.",
            "CRONOLOGIA",
        )
        if not rows:
            raise NotFoundError("Entrada não encontrada.")
        return ChronologyEntry.from_row(rows[0])

    def delete_chronology_entry(self, user_id: str, entry_id: str) -> None:
        rows = self._execute(
            self.sb.table(TABLE_CHRONOLOGY).delete()
            .eq("id", entry_id)
            .eq("user_id", user_id),
            "Não foi possível eliminar a entrada.",
            "CRONOLOGIA",
        )
        if not rows:
            raise NotFoundError("Entrada não encontrada.")

    # ------------------------------------------------------------------
    # TESOURARIA
    # ------------------------------------------------------------------

    def list_treasury(self, user_id: str) -> List[TreasuryEntry]:
        rows = self._execute(
            self.sb.table(TABLE_TREASURY).select("*")
            .eq("user_id", user_id)
            .order("entry_date", desc=True),
            "Não foi possível carregar os registos.",
            "TESOURARIA",
        )
        return [TreasuryEntry.from_row(r) for r in rows]

    def create_treasury_entry(self, user_id: str, data: Dict[str, Any]) -> TreasuryEntry:
        rows = self._execute(
            self.sb.table(TABLE_TREASURY).insert({**data, "user_id": user_id}),
            "Não foi possível criar o registo.",
            "TESOURARIA",
        )
        if not rows:
            raise RepositoryError("Não foi possível criar o registo.")
        return TreasuryEntry.from_row(rows[0])

    def delete_treasury_entry(self, user_id: str, entry_id: str) -> None:
        rows = self._execute(
            self.sb.table(TABLE_TREASURY).delete()
            .eq("id", entry_id)
            .eq("user_id", user_id),
            "Não foi possível eliminar o registo.",
            "TESOURARIA",
        )
        if not rows:
            raise NotFoundError("Registo não encontrado.")

    # ------------------------------------------------------------------
    # CONTACTO
    # ------------------------------------------------------------------

    def create_contact_message(self, data: Dict[str, Any]) -> None:
        self._execute(
            self.sb.table(TABLE_CONTACT_MESSAGES).insert(data),
            "Não foi possível enviar a mensagem. Tente novamente.",
            "CONTACTO",
        )
        logger.info(f"[CONTACTO] Nova mensagem de {data.get('email', '')[:3]}***")

    def list_contact_messages(self) -> List[ContactMessage]:
        rows = self._execute(
            self.sb.table(TABLE_CONTACT_MESSAGES).select("*").order("created_at", desc=True),
            "Não foi possível carregar as mensagens.",
            "CONTACTO",
        )
        return [ContactMessage.from_row(r) for r in rows]

    def mark_contact_message_read(self, message_id: str) -> ContactMessage:
        rows = self._execute(
            self.sb.table(TABLE_CONTACT_MESSAGES).update({"read": True}).eq("id", message_id),
            "Não foi possível actualizar a mensagem.",
            "CONTACTO",
        )
        if not rows:
            raise NotFoundError("Mensagem não encontrada.")
        return ContactMessage.from_row(rows[0])

    # ------------------------------------------------------------------
    # PERFIS / PAPÉIS
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        rows = self._execute(
            self.sb.table(TABLE_PROFILES).select("*").eq("user_id", user_id).maybe_single(),
            "Não foi possível carregar o perfil.",
            "PROFILES",
        )
        return Profile.from_row(rows[0]) if rows else None

    def update_profile(self, user_id: str, full_name: str) -> Profile:
        rows = self._execute(
            self.sb.table(TABLE_PROFILES).update({"full_name": full_name}).eq("user_id", user_id),
            "Não foi possível actualizar o perfil.",
            "PROFILES",
        )
        if not rows:
            raise NotFoundError("Perfil não encontrado.")
        return Profile.from_row(rows[0])

    def is_admin(self, user_id: str) -> bool:
        rows = self._execute(
            self.sb.table(TABLE_USER_ROLES).select("role")
            .eq("user_id", user_id)
            .eq("role", AppRole.ADMIN.value),
            "Não foi possível verificar permissões.",
            "ROLES",
        )
        return bool(rows)
