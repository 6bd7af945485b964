# -*- coding: utf-8 -*-
"""
Откуда берутся issues для разметки.

SettingsIssueSource — одна issue из секции "issue" конфига (ID/Title/Description),
TableIssueSource — таблица issues (TSV/CSV) любой длины.
"""
import os
from typing import Dict, List, Optional, Protocol

import structlog

from .schema import InputRecord
from .utils import cfg_get, read_table_smart

logger = structlog.get_logger(__name__)


class ConfigSource(Protocol):
    def load_issues(self) -> List[InputRecord]: ...


def _field(row: Dict, name: str) -> str:
    # ключи в настройках/заголовках бывают "ID", "Id", "id"
    for k, v in (row or {}).items():
        if str(k).strip().lower() == name:
            return "" if v is None else str(v)
    return ""


class SettingsIssueSource:
    def __init__(self, settings: Optional[Dict]):
        self.settings = settings or {}

    def load_issues(self) -> List[InputRecord]:
        rec = InputRecord(
            id=_field(self.settings, "id"),
            title=_field(self.settings, "title"),
            description=_field(self.settings, "description"),
        )
        logger.info("issues_loaded", source="settings", count=1)
        return [rec]


class TableIssueSource:
    def __init__(self, path: str):
        self.path = path

    def load_issues(self) -> List[InputRecord]:
        if not os.path.exists(self.path):
            raise FileNotFoundError(f"issues table not found: {self.path}")
        df = read_table_smart(self.path)
        cols = {c.strip().lower(): c for c in df.columns}
        if "title" not in cols:
            raise RuntimeError(f"issues table {self.path} must contain a 'Title' column")
        out = []
        for i, row in enumerate(df.to_dict(orient="records")):
            rid = _field(row, "id") or str(i)
            out.append(InputRecord(id=rid, title=_field(row, "title"),
                                   description=_field(row, "description")))
        logger.info("issues_loaded", source="table", path=self.path, count=len(out))
        return out


def issue_source_from_config(cfg: Dict, path: Optional[str] = None) -> ConfigSource:
    path = path or cfg_get(cfg, "data.issues_path")
    if path:
        return TableIssueSource(path)
    return SettingsIssueSource(cfg_get(cfg, "issue", {}))
