"""
Proje dosyası - editör durumunu JSON olarak saklar.

Keep-segment'ler kaydedilmez; yüklemeden sonra modelden yeniden hesaplanır.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

from .cutlist import MIN_TRIM_GAP, CutListModel
from .models import Cut, ExportSettings, TrimWindow

logger = logging.getLogger(__name__)

PROJECT_VERSION = 1


@dataclass
class Project:
    """Medya yolu + cut list modeli + export ayarları."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Project"
    created_at: str = ""
    modified_at: str = ""
    media_path: Optional[Path] = None
    model: Optional[CutListModel] = None
    export_settings: ExportSettings = field(default_factory=ExportSettings)

    def save(self, path: Path) -> None:
        """Projeyi JSON olarak kaydet."""
        now = datetime.now().isoformat(timespec="seconds")
        if not self.created_at:
            self.created_at = now
        self.modified_at = now

        data = {
            "version": PROJECT_VERSION,
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "modified_at": self.modified_at,
            "media_path": str(self.media_path) if self.media_path else None,
            "duration": self.model.duration if self.model else None,
            "trim": self.model.trim.to_dict() if self.model else None,
            "cuts": [c.to_dict() for c in self.model.cuts] if self.model else [],
            "export_settings": self.export_settings.to_dict(),
        }
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False))
        logger.info(f"Project saved: {path}")

    @classmethod
    def load(cls, path: Path, min_trim_gap: float = MIN_TRIM_GAP) -> Project:
        """Projeyi JSON'dan yükle."""
        data = json.loads(path.read_text())

        model = None
        if data.get("duration"):
            model = CutListModel.create(
                float(data["duration"]),
                cuts=[Cut.from_dict(c) for c in data.get("cuts") or []],
                min_trim_gap=min_trim_gap,
            )
            if data.get("trim"):
                trim = TrimWindow.from_dict(data["trim"])
                model = model.set_trim(trim.start, trim.end)

        media_path = data.get("media_path")
        return cls(
            id=data.get("id", str(uuid.uuid4())),
            name=data.get("name", "Untitled"),
            created_at=data.get("created_at", ""),
            modified_at=data.get("modified_at", ""),
            media_path=Path(media_path) if media_path else None,
            model=model,
            export_settings=ExportSettings.from_dict(data.get("export_settings") or {}),
        )
