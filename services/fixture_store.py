"""JSON file holding the credentials of the user created by the registration setup test.

Written once by tests/e2e/test_api_register.py and read by every dependent
journey. There is no locking: the setup test is the only writer and runs before
its readers.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

from qa_core.errors import FixtureMissing
from services.user_data import NewUser, UserCredentials

LOGGER = logging.getLogger("qa.fixtures")

SETUP_TEST = "tests/e2e/test_api_register.py"


class UserFixtureStore:
    def __init__(self, path: Path | str, prerequisite: str = SETUP_TEST) -> None:
        self.path = Path(path)
        self.prerequisite = prerequisite

    def save(self, user: NewUser | UserCredentials) -> dict[str, Any]:
        data = {
            "email": user.email,
            "password": user.password,
            "timestamp": int(time.time() * 1000),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a reader never sees half a file.
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
        LOGGER.info("user_fixture_saved", extra={"path": str(self.path), "email": user.email})
        return data

    def load(self) -> dict[str, Any] | None:
        """Raw fixture record, or None when the file does not exist or is unreadable."""
        if not self.path.is_file():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.exception("user_fixture_unreadable", extra={"path": str(self.path)})
            return None
        return data if isinstance(data, dict) else None

    def require(self) -> UserCredentials:
        data = self.load()
        if not data or not data.get("email") or not data.get("password"):
            raise FixtureMissing(str(self.path), self.prerequisite)
        return UserCredentials(email=str(data["email"]), password=str(data["password"]))
