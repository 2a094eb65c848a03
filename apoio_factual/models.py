# -*- coding: utf-8 -*-
"""
Modelos de dados do Apoio Factual.

Cada classe corresponde a uma linha de uma tabela Supabase.
As datas ficam como strings ISO tal como vêm da base de dados;
a análise faz o parsing quando precisa de um valor de calendário.

REGRAS:
1. from_row() aceita linhas incompletas (campos opcionais a None)
2. to_dict() devolve apenas tipos serializáveis em JSON
3. Os analisadores nunca alteram estes objectos
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


# ============================================================================
# ENUMS
# ============================================================================

class DossierStatus(str, Enum):
    """Estado de um dossiê."""
    EM_ANALISE = "em_analise"
    PENDENTE = "pendente"
    COMPLETO = "completo"
    ARQUIVADO = "arquivado"


class DocumentType(str, Enum):
    """Tipo de documento."""
    PDF = "pdf"
    IMAGEM = "imagem"
    TEXTO = "texto"
    OUTRO = "outro"


class TreasuryType(str, Enum):
    """Tipo de movimento de tesouraria."""
    RECEITA = "receita"
    DESPESA = "despesa"


class AppRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _joined_title(row: Dict[str, Any], key: str) -> Optional[str]:
    """Extrai o título de uma relação embebida (ex: dossier:dossiers(title))."""
    nested = row.get(key)
    if isinstance(nested, dict):
        return nested.get("title")
    return None


# ============================================================================
# DOSSIÊ
# ============================================================================

@dataclass
class Dossier:
    """Dossiê (processo) que agrupa documentos e entradas de cronologia."""
    id: str
    title: str
    user_id: str = ""
    description: Optional[str] = None
    client_name: Optional[str] = None
    reference_code: Optional[str] = None
    category: Optional[str] = None
    status: str = DossierStatus.EM_ANALISE.value
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Dossier':
        return cls(
            id=row.get("id", ""),
            title=row.get("title", ""),
            user_id=row.get("user_id", ""),
            description=row.get("description"),
            client_name=row.get("client_name"),
            reference_code=row.get("reference_code"),
            category=row.get("category"),
            status=_enum_value(row.get("status") or DossierStatus.EM_ANALISE.value),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# DOCUMENTO
# ============================================================================

@dataclass
class Document:
    """
    Documento de prova associado a um dossiê.

    `entity` é a entidade emissora (a fonte do documento).
    `document_date` pode faltar - é uma das lacunas detectadas.
    """
    id: str
    title: str
    dossier_id: str = ""
    user_id: str = ""
    description: Optional[str] = None
    document_type: str = DocumentType.OUTRO.value
    entity: Optional[str] = None
    document_date: Optional[str] = None
    file_name: Optional[str] = None
    file_path: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Document':
        return cls(
            id=row.get("id", ""),
            title=row.get("title", ""),
            dossier_id=row.get("dossier_id", ""),
            user_id=row.get("user_id", ""),
            description=row.get("description"),
            document_type=_enum_value(row.get("document_type") or DocumentType.OUTRO.value),
            entity=row.get("entity"),
            document_date=row.get("document_date"),
            file_name=row.get("file_name"),
            file_path=row.get("file_path"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# ENTRADA DE CRONOLOGIA
# ============================================================================

@dataclass
class ChronologyEntry:
    """Evento factual datado dentro de um dossiê."""
    id: str
    event_date: str
    title: str
    dossier_id: str = ""
    user_id: str = ""
    description: Optional[str] = None
    source_reference: Optional[str] = None
    document_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    dossier_title: Optional[str] = None
    document_title: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ChronologyEntry':
        return cls(
            id=row.get("id", ""),
            event_date=row.get("event_date", ""),
            title=row.get("title", ""),
            dossier_id=row.get("dossier_id", ""),
            user_id=row.get("user_id", ""),
            description=row.get("description"),
            source_reference=row.get("source_reference"),
            document_id=row.get("document_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            dossier_title=_joined_title(row, "dossier"),
            document_title=_joined_title(row, "document"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# TESOURARIA
# ============================================================================

@dataclass
class TreasuryEntry:
    """Movimento da tesouraria pessoal (receita ou despesa)."""
    id: str
    entry_type: str
    amount: float
    description: str
    entry_date: str
    user_id: str = ""
    category: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'TreasuryEntry':
        return cls(
            id=row.get("id", ""),
            entry_type=_enum_value(row.get("entry_type") or TreasuryType.DESPESA.value),
            amount=float(row.get("amount") or 0.0),
            description=row.get("description", ""),
            entry_date=row.get("entry_date", ""),
            user_id=row.get("user_id", ""),
            category=row.get("category"),
            created_at=row.get("created_at"),
        )

    @property
    def is_income(self) -> bool:
        return self.entry_type == TreasuryType.RECEITA.value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# CONTACTO / PERFIL
# ============================================================================

@dataclass
class ContactMessage:
    """Mensagem enviada pelo formulário de contacto da página pública."""
    id: str
    name: str
    email: str
    message: str
    subject: Optional[str] = None
    read: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ContactMessage':
        return cls(
            id=row.get("id", ""),
            name=row.get("name", ""),
            email=row.get("email", ""),
            message=row.get("message", ""),
            subject=row.get("subject"),
            read=bool(row.get("read", False)),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Profile:
    user_id: str
    id: str = ""
    email: Optional[str] = None
    full_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Profile':
        return cls(
            user_id=row.get("user_id", ""),
            id=row.get("id", ""),
            email=row.get("email"),
            full_name=row.get("full_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
