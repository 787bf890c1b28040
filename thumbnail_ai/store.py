"""Image history kept in a JSON file next to the generated images."""

import json
import threading
import uuid
from datetime import datetime
from pathlib import Path

MAX_RECORDS = 500


class ImageStore:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def load_db(self) -> list[dict]:
        if self.db_path.exists():
            return json.loads(self.db_path.read_text())
        return []

    def save_db(self, records: list[dict]):
        self.db_path.write_text(json.dumps(records, indent=2))

    def add(
        self,
        prompt: str,
        image_url: str,
        model: str,
        kind: str = "generated",
        replicate_url: str | None = None,
        parent_id: str | None = None,
        user_id: str = "anonymous",
    ) -> dict:
        record = {
            "id": str(uuid.uuid4()),
            "prompt": prompt,
            "model": model,
            "image_url": image_url,
            "replicate_url": replicate_url or image_url,
            "kind": kind,
            "parent_id": parent_id,
            "user_id": user_id,
            "created_at": datetime.utcnow().isoformat(),
        }
        with self._lock:
            db = self.load_db()
            db.insert(0, record)
            self.save_db(db[:MAX_RECORDS])
        return record

    def get(self, image_id: str) -> dict | None:
        return next((r for r in self.load_db() if r["id"] == image_id), None)

    def list(self, page: int = 1, limit: int = 20, model: str | None = None) -> dict:
        db = self.load_db()
        if model:
            db = [r for r in db if r.get("model") == model]
        total = len(db)
        start = (page - 1) * limit
        return {
            "images": db[start:start + limit],
            "total": total,
            "page": page,
            "limit": limit,
        }
