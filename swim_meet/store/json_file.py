"""
JSON-file store: the in-memory store, written to disk after every change.
Lets separate CLI invocations see each other's conversations.
"""

import json
import logging
from pathlib import Path
from typing import Union

from ..models import Conversation, Response, User
from .memory import MemoryStore

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class JsonFileStore(MemoryStore):
    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        self.users = {u["id"]: User.from_dict(u) for u in data.get("users", [])}
        self.conversations = {
            c["id"]: Conversation.from_dict(c) for c in data.get("conversations", [])
        }
        self.responses = {r["id"]: Response.from_dict(r) for r in data.get("responses", [])}
        logger.debug(
            "Loaded %d conversations and %d responses from %s",
            len(self.conversations),
            len(self.responses),
            self.path,
        )

    def _changed(self) -> None:
        data = {
            "version": STORE_VERSION,
            "users": [u.to_dict() for u in self.users.values()],
            "conversations": [c.to_dict() for c in self.conversations.values()],
            "responses": [r.to_dict() for r in self.responses.values()],
        }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)
