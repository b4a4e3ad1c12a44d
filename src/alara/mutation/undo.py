"""
UndoStack: persisted history of applied transforms.

Each successful transform is stored as one JSON file holding the content
every affected file had before the edit, so any entry can be restored later
from the command line.
"""

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from alara.exceptions import AlaraError
from alara.logging_config import logger


class UndoStack:
    """
    Persistent undo history for transforms.

    Entries are independent: undoing one restores the recorded file content
    regardless of what happened after it.
    """

    def __init__(self, history_dir: str = ".alara/history", writer=None):
        """
        Args:
            history_dir: Directory to store undo history
            writer: Optional SourceWriter used to restore files atomically
        """
        self.history_dir = Path(history_dir)
        self.writer = writer

    def record_transaction(
        self,
        transform_type: str,
        request_id: str,
        reverse_patches: List[Dict[str, Any]],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Record an applied transform.

        Args:
            transform_type: Transform type (text-update, css-update, ...)
            request_id: Id of the request that produced the edit
            reverse_patches: [{"file_path": ..., "original_content": ...}]
            metadata: Optional extra data (undo payload, target)

        Returns:
            Transaction ID
        """
        transaction = {
            "timestamp": datetime.now().isoformat(),
            "transform_type": transform_type,
            "request_id": request_id,
            "files": [patch["file_path"] for patch in reverse_patches],
            "reverse_patches": reverse_patches,
            "metadata": metadata or {},
        }

        transaction_id = self._generate_transaction_id(transaction)

        self.history_dir.mkdir(parents=True, exist_ok=True)
        history_file = self.history_dir / f"{transaction_id}.json"
        with open(history_file, "w", encoding="utf-8") as f:
            json.dump(transaction, f, indent=2)

        logger.info(f"Recorded transaction {transaction_id} ({transform_type})")
        return transaction_id

    def _history_files(self) -> List[Path]:
        if not self.history_dir.exists():
            return []
        return sorted(
            self.history_dir.glob("*.json"),
            key=lambda p: (p.stat().st_mtime, p.name),
            reverse=True,
        )

    def get_history(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Get transaction history, most recent first.

        Args:
            limit: Maximum number of transactions to return
        """
        transactions = []
        for history_file in self._history_files()[:limit]:
            try:
                with open(history_file, "r", encoding="utf-8") as f:
                    transaction = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to read transaction {history_file}: {e}")
                continue
            transaction["transaction_id"] = history_file.stem
            transactions.append(transaction)
        return transactions

    def get_transaction(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        history_file = self.history_dir / f"{transaction_id}.json"
        if not history_file.exists():
            return None

        try:
            with open(history_file, "r", encoding="utf-8") as f:
                transaction = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read transaction {transaction_id}: {e}")
            return None

        transaction["transaction_id"] = transaction_id
        return transaction

    def apply_reverse_patches(self, transaction_id: str) -> Tuple[bool, List[str], List[str]]:
        """
        Restore the content recorded for a transaction.

        Returns:
            (success, applied_files, errors)
        """
        transaction = self.get_transaction(transaction_id)
        if not transaction:
            return False, [], [f"Transaction {transaction_id} not found"]

        applied_files = []
        errors = []

        logger.info(f"Applying reverse patches for transaction {transaction_id}")

        for patch in transaction["reverse_patches"]:
            file_path = patch.get("file_path")
            original_content = patch.get("original_content")

            if not file_path or original_content is None:
                errors.append(f"Invalid patch format: {patch}")
                continue

            try:
                if self.writer is not None:
                    self.writer.write(Path(file_path), original_content)
                else:
                    Path(file_path).write_bytes(original_content.encode("utf-8"))
            except (OSError, AlaraError) as e:
                message = f"Failed to revert {file_path}: {e}"
                errors.append(message)
                logger.error(message)
                continue

            applied_files.append(file_path)
            logger.info(f"Reverted {file_path}")

        return not errors, applied_files, errors

    def clear_history(self, keep_last: int = 0) -> int:
        """
        Delete history entries, keeping the most recent `keep_last`.

        Returns:
            Number of transactions deleted
        """
        deleted = 0
        for history_file in self._history_files()[keep_last:]:
            try:
                history_file.unlink()
                deleted += 1
            except OSError as e:
                logger.warning(f"Failed to delete {history_file}: {e}")

        logger.info(f"Cleared {deleted} transaction(s) from history")
        return deleted

    def _generate_transaction_id(self, transaction: Dict[str, Any]) -> str:
        content = json.dumps(transaction, sort_keys=True)
        return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]
