"""
Saved account store.

Persists accounts and the currently selected account in a JSON file.
"""

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models import Account, ServiceType


class AccountRepository:
    """JSON-file backed store for saved accounts."""

    def __init__(self, path: Path, logger: Optional[logging.Logger] = None):
        """
        Initialize repository.

        Args:
            path: Accounts file location (created on first save)
            logger: Logger instance
        """
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"accounts": [], "selected": None}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            raise ValueError(f"Accounts file {self.path} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Accounts file {self.path} must contain a JSON object")
        data.setdefault("accounts", [])
        data.setdefault("selected", None)
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        # Passwords are stored in clear text
        os.chmod(self.path, 0o600)

    def get_accounts(self) -> List[Account]:
        return [Account(**item) for item in self._load()["accounts"]]

    def save_accounts(self, accounts: List[Account]) -> None:
        data = self._load()
        data["accounts"] = [asdict(account) for account in accounts]
        self._save(data)

    def add_account(self, account: Account) -> Account:
        """Add an account; names must be unique."""
        if ServiceType.from_backend_value(account.service_type) is None:
            raise ValueError(f"Unknown service type '{account.service_type}'")

        accounts = self.get_accounts()
        if any(existing.name == account.name for existing in accounts):
            raise ValueError(f"Account '{account.name}' already exists")

        accounts.append(account)
        self.save_accounts(accounts)
        self.logger.info(f"Saved account '{account.name}'")
        return account

    def update_account(self, account: Account) -> bool:
        accounts = self.get_accounts()
        for index, existing in enumerate(accounts):
            if existing.id == account.id:
                accounts[index] = account
                self.save_accounts(accounts)
                return True
        return False

    def delete_account(self, account_id: str) -> bool:
        """
        Delete an account, clearing the selection if it pointed at it.

        Returns:
            True if an account was removed
        """
        data = self._load()
        before = len(data["accounts"])
        data["accounts"] = [item for item in data["accounts"] if item.get("id") != account_id]
        if data.get("selected") == account_id:
            data["selected"] = None
        self._save(data)
        return len(data["accounts"]) < before

    def get_account(self, key: str) -> Optional[Account]:
        """Find an account by id or by name."""
        for account in self.get_accounts():
            if key in (account.id, account.name):
                return account
        return None

    def select_account(self, account_id: Optional[str]) -> None:
        data = self._load()
        data["selected"] = account_id
        self._save(data)

    def get_selected_account(self) -> Optional[Account]:
        selected = self._load().get("selected")
        if not selected:
            return None
        return self.get_account(selected)

    def clear_all(self) -> None:
        self._save({"accounts": [], "selected": None})
