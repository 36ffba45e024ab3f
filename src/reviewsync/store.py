"""
store.py
--------
Read-only access to module configuration records.
"""
import json
from dataclasses import dataclass, field
from typing import Dict, Optional

from .db import ModuleRecord, SessionLocal


@dataclass(frozen=True)
class ModuleConfig:
    kind: str
    params: Dict[str, str] = field(default_factory=dict)


def decode_params(blob) -> Dict[str, str]:
    if not blob:
        return {}
    data = json.loads(blob) if isinstance(blob, str) else dict(blob)
    if not isinstance(data, dict):
        raise ValueError("Module params must be a JSON object")
    return {str(k): "" if v is None else str(v) for k, v in data.items()}


class SQLModuleStore:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def load(self, module_id: str) -> Optional[ModuleConfig]:
        try:
            pk = int(module_id)
        except (TypeError, ValueError):
            return None
        session = self.session_factory()
        try:
            record = session.get(ModuleRecord, pk)
            if record is None:
                return None
            return ModuleConfig(kind=record.module, params=decode_params(record.params))
        finally:
            session.close()
