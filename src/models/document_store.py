"""
Single-file JSON document store
Every operation reads and rewrites the full ordered list of groups
"""
import json
import os
import threading
import uuid
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import TypeAdapter

from models.errors import StorageUnavailable
from models.vocab_models import WordGroup

_GROUP_LIST = TypeAdapter(List[WordGroup])


class DocumentStore:
    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Process-wide mutex; hold it across a read-modify-write sequence"""
        return self._lock

    def exists(self) -> bool:
        return self.data_path.exists()

    def get_all(self) -> List[WordGroup]:
        with self._lock:
            try:
                raw = self.data_path.read_text(encoding="utf-8")
            except OSError as e:
                raise StorageUnavailable(f"Cannot read {self.data_path}: {e}") from e
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise StorageUnavailable(f"{self.data_path} is not valid JSON: {e}") from e
        # Malformed records surface as pydantic errors
        return _GROUP_LIST.validate_python(data)

    def get_one(self, group_id: str) -> Optional[WordGroup]:
        for group in self.get_all():
            if group.id == group_id:
                return group
        return None

    def upsert(self, group: WordGroup) -> WordGroup:
        with self._lock:
            groups = self.get_all()
            for index, existing in enumerate(groups):
                if existing.id == group.id:
                    groups[index] = group
                    break
            else:
                groups.append(group)
            self.write_all(groups)
        return group

    def delete(self, group_id: str) -> bool:
        with self._lock:
            groups = self.get_all()
            remaining = [g for g in groups if g.id != group_id]
            if len(remaining) == len(groups):
                return False
            self.write_all(remaining)
        return True

    def write_all(self, groups: List[WordGroup]) -> None:
        """Atomic write: temp file, fsync, rename over the document"""
        payload = json.dumps([g.to_document() for g in groups], indent=2, ensure_ascii=False)
        with self._lock:
            self.data_path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.data_path.with_name(f"{self.data_path.name}.{uuid.uuid4().hex[:8]}.tmp")
            try:
                with open(temp_file, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_file, self.data_path)
            except OSError as e:
                if temp_file.exists():
                    temp_file.unlink()
                raise StorageUnavailable(f"Cannot write {self.data_path}: {e}") from e
        logger.debug(f"Wrote {len(groups)} groups to {self.data_path}")
