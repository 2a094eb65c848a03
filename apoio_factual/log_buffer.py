# -*- coding: utf-8 -*-
"""
LOG BUFFER - últimos registos para o /admin/logs
===================================================
Cada mensagem do Apoio Factual começa por uma área entre parênteses
rectos ([DOSSIERS], [CRONOLOGIA], [EXPORT], [AUTH], ...). O buffer
separa essa área do texto para o painel de administração poder
filtrar por área e mostrar quantos registos há de cada uma.

Mensagens sem área (bibliotecas de terceiros) ficam na área "GERAL".
"""

import logging
import re
import threading
from collections import Counter, deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

DEFAULT_AREA = "GERAL"

_AREA_TAG = re.compile(r"^\[([^\[\]]{1,40})\]\s*")


@dataclass
class LogEntry:
    seq: int
    ts: str
    level: str
    area: str
    logger: str
    msg: str

    def to_dict(self) -> Dict:
        return asdict(self)


def split_area(message: str):
    """'[EXPORT] CSV gerado' -> ('EXPORT', 'CSV gerado')"""
    match = _AREA_TAG.match(message)
    if not match:
        return DEFAULT_AREA, message
    return match.group(1).strip().upper(), message[match.end():]


class AreaLogBuffer(logging.Handler):
    """Buffer circular de LogEntry, indexado pela área da mensagem."""

    def __init__(self, capacity: int = 2000):
        super().__init__()
        self._entries: deque = deque(maxlen=capacity)
        self._seq = 0
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord):
        try:
            area, text = split_area(record.getMessage())
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._seq += 1
            self._entries.append(LogEntry(
                seq=self._seq,
                ts=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname,
                area=area,
                logger=record.name,
                msg=text,
            ))

    def _snapshot(self) -> List[LogEntry]:
        with self._lock:
            return list(self._entries)

    def query(
        self,
        limit: int = 200,
        area: Optional[str] = None,
        min_level: Optional[str] = None,
        search: Optional[str] = None,
        since_seq: int = 0,
    ) -> List[LogEntry]:
        """
        Registos mais recentes que passam os filtros (ordem cronológica).

        min_level é um limiar: "WARNING" devolve WARNING, ERROR e CRITICAL.
        """
        threshold = logging.getLevelName(min_level.upper()) if min_level else logging.NOTSET
        if not isinstance(threshold, int):
            raise ValueError(f"Nível de log desconhecido: {min_level}")
        wanted_area = area.upper() if area else None
        needle = search.lower() if search else None

        selected = [
            e for e in self._snapshot()
            if e.seq > since_seq
            and (wanted_area is None or e.area == wanted_area)
            and logging.getLevelName(e.level) >= threshold
            and (needle is None or needle in e.msg.lower())
        ]
        if limit <= 0:
            return []
        return selected[-limit:]

    def area_counts(self) -> Dict[str, int]:
        return dict(Counter(e.area for e in self._snapshot()))


def install_log_buffer(capacity: int, level: str = "INFO") -> AreaLogBuffer:
    """Liga o buffer ao root logger, para apanhar os registos de todos os módulos."""
    handler = AreaLogBuffer(capacity=capacity)
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    return handler
