"""
MutationEngine: verified, persisted, undoable source edits.

Pipeline for every edit:
1. Resolve the target path inside the project
2. Load the parsed file through the SourceCache (reparsed when stale)
3. Verify the expected prior content and apply a minimal edit
4. Refuse edits that introduce syntax errors
5. Write atomically (SourceWriter) and refresh the cache
6. Record the prior content in the undo history
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from tree_sitter import Node

from alara.exceptions import TransformFailure
from alara.logging_config import logger
from alara.schemas import ErrorCode, SourceLocator
from alara.styles.stylesheet import Stylesheet, parse_css
from alara.styles.values import StyleValue

from . import css_editor
from .cache import CachedSource, SourceCache
from .config import STYLE_EXTENSIONS, get_mutation_config
from .editor import SourceWriter
from .jsx_editor import get_text_content, update_text_content
from .locator import find_element_at, language_for, parse_markup
from .undo import UndoStack


@dataclass
class EditOutcome:
    """What an applied edit changed."""
    affected_files: List[str]
    content: str
    previous_value: Optional[StyleValue] = None
    transaction_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class MutationEngine:
    """
    Owns everything needed to edit a project's sources.

    One engine per project directory. The cache is injectable so tests and
    the file watcher can share or inspect it.
    """

    def __init__(
        self,
        project_dir: Path,
        config: Optional[Dict[str, Any]] = None,
        cache: Optional[SourceCache] = None,
    ):
        """
        Args:
            project_dir: Root every target path is resolved against
            config: Optional config overrides (merges with the project's mutation config)
            cache: Optional shared SourceCache
        """
        self.project_dir = Path(project_dir).resolve()
        self.config = {**get_mutation_config(self.project_dir), **(config or {})}
        self.cache = cache if cache is not None else SourceCache()
        self.writer = SourceWriter(self.config)
        self.undo = UndoStack(self.config["history_dir"], writer=self.writer)

        logger.debug(f"MutationEngine initialized for {self.project_dir}")

    # ------------------------------------------------------------------
    # Paths and loading
    # ------------------------------------------------------------------

    def resolve_path(self, file: str) -> Path:
        """
        Resolve a target path against the project directory.

        Raises:
            TransformFailure: VALIDATION_ERROR for paths outside the project
        """
        candidate = Path(file)
        if not candidate.is_absolute():
            candidate = self.project_dir / candidate
        resolved = candidate.resolve()

        try:
            resolved.relative_to(self.project_dir)
        except ValueError:
            raise TransformFailure(
                ErrorCode.VALIDATION_ERROR,
                f"Path '{file}' is outside the project directory",
                {"file": file},
            )
        return resolved

    def _load(self, file: str, kind: str, parse: Callable[[str], Any]) -> CachedSource:
        path = self.resolve_path(file)
        if not path.is_file():
            raise TransformFailure(ErrorCode.FILE_NOT_FOUND, f"File not found: {file}", {"file": file})
        try:
            return self.cache.load(path, kind, parse, self.config["encoding"])
        except UnicodeDecodeError as e:
            raise TransformFailure(ErrorCode.PARSE_ERROR, f"Cannot decode {file}: {e}", {"file": file})
        except OSError as e:
            raise TransformFailure(ErrorCode.FILE_NOT_FOUND, f"Cannot read {file}: {e}", {"file": file})

    def _load_markup(self, file: str) -> CachedSource:
        language = language_for(Path(file))
        if language is None:
            raise TransformFailure(
                ErrorCode.VALIDATION_ERROR,
                f"Unsupported markup file type: {file}",
                {"file": file},
            )
        return self._load(file, language, lambda text: parse_markup(text, language))

    def _load_stylesheet(self, file: str) -> CachedSource:
        if not file:
            raise TransformFailure(ErrorCode.VALIDATION_ERROR, "Target has no style file")
        if Path(file).suffix.lower() not in STYLE_EXTENSIONS:
            raise TransformFailure(
                ErrorCode.VALIDATION_ERROR,
                f"Unsupported style file type: {file}",
                {"file": file},
            )
        return self._load(file, "css", parse_css)

    def _commit(
        self,
        file: str,
        entry: CachedSource,
        kind: str,
        new_text: str,
        parsed: Any,
        transform_type: str,
        request_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EditOutcome:
        written, _ = self.writer.write(entry.path, new_text, expected_digest=entry.digest)
        self.cache.update(entry.path, kind, written, parsed)

        transaction_id = None
        if self.config["history_enabled"]:
            try:
                transaction_id = self.undo.record_transaction(
                    transform_type,
                    request_id,
                    [{"file_path": str(entry.path), "original_content": entry.text}],
                    metadata,
                )
            except OSError as e:
                # The edit itself succeeded; losing history is not fatal
                logger.warning(f"Failed to record undo history: {e}")

        return EditOutcome(affected_files=[file], content=written, transaction_id=transaction_id)

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def find_element(self, file: str, line: int, column: int) -> Optional[Node]:
        entry = self._load_markup(file)
        return find_element_at(entry.parsed, entry.text.encode("utf-8"), line, column)

    def read_text(self, file: str, line: int, column: int) -> str:
        """Current normalized text of the element at a position."""
        element = self.find_element(file, line, column)
        if element is None:
            raise TransformFailure(
                ErrorCode.ELEMENT_NOT_FOUND,
                f"No element found at {file}:{line}:{column}",
            )
        return get_text_content(element)

    def update_text(
        self,
        target: SourceLocator,
        original_text: str,
        new_text: str,
        request_id: str = "",
    ) -> EditOutcome:
        """
        Replace the text of the element the locator points at.

        Raises:
            TransformFailure: see update_text_content(), plus file-level codes
        """
        language = language_for(Path(target.file))
        entry = self._load_markup(target.file)

        updated = update_text_content(
            entry.text,
            entry.parsed,
            target.line_number,
            target.column,
            original_text,
            new_text,
        )

        tree = parse_markup(updated, language)
        if tree.root_node.has_error and not entry.parsed.root_node.has_error:
            raise TransformFailure(
                ErrorCode.PARSE_ERROR,
                "Edit would introduce a syntax error",
                {"file": target.file},
            )

        logger.info(f"Updating text at {target.file}:{target.line_number}:{target.column}")
        return self._commit(
            target.file,
            entry,
            language,
            updated,
            tree,
            "text-update",
            request_id,
            {"originalText": original_text, "newText": new_text},
        )

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def _target_selector(self, target: SourceLocator) -> str:
        if not target.selectors:
            raise TransformFailure(ErrorCode.VALIDATION_ERROR, "Target has no selectors")
        # The last class applied is the most specific one for this element
        return target.selectors[-1]

    def _edit_stylesheet(
        self,
        target: SourceLocator,
        transform_type: str,
        request_id: str,
        edit: Callable[[Stylesheet, str], Optional[StyleValue]],
    ) -> EditOutcome:
        selector = self._target_selector(target)
        entry = self._load_stylesheet(target.style_file)
        sheet: Stylesheet = entry.parsed
        had_error = sheet.has_error

        try:
            previous = edit(sheet, selector)
            if sheet.has_error and not had_error:
                raise TransformFailure(
                    ErrorCode.PARSE_ERROR,
                    "Edit would introduce a syntax error",
                    {"file": target.style_file},
                )
            outcome = self._commit(
                target.style_file,
                entry,
                "css",
                sheet.text,
                sheet,
                transform_type,
                request_id,
                {"selector": selector},
            )
        except TransformFailure:
            # The cached sheet may hold a partial edit
            self.cache.invalidate(entry.path)
            raise

        outcome.previous_value = previous
        return outcome

    def update_style(
        self,
        target: SourceLocator,
        property: str,
        prior_value: StyleValue,
        new_value: StyleValue,
        request_id: str = "",
    ) -> EditOutcome:
        logger.info(f"Updating '{property}' in {target.style_file}")
        return self._edit_stylesheet(
            target,
            "css-update",
            request_id,
            lambda sheet, selector: css_editor.update_declaration(
                sheet, selector, property, prior_value, new_value
            ),
        )

    def add_style(
        self,
        target: SourceLocator,
        property: str,
        new_value: StyleValue,
        request_id: str = "",
        prior_value: Optional[StyleValue] = None,
    ) -> EditOutcome:
        logger.info(f"Adding '{property}' to {target.style_file}")
        return self._edit_stylesheet(
            target,
            "css-add",
            request_id,
            lambda sheet, selector: css_editor.add_declaration(
                sheet, selector, property, new_value, prior_value
            ),
        )

    def remove_style(
        self,
        target: SourceLocator,
        property: str,
        prior_value: StyleValue,
        request_id: str = "",
    ) -> EditOutcome:
        logger.info(f"Removing '{property}' from {target.style_file}")
        return self._edit_stylesheet(
            target,
            "css-remove",
            request_id,
            lambda sheet, selector: css_editor.delete_declaration(
                sheet, selector, property, prior_value
            ),
        )

    # ------------------------------------------------------------------
    # Cache and history
    # ------------------------------------------------------------------

    def invalidate(self, path: Optional[Path] = None) -> int:
        """Drop cached parses for one file (project-relative or absolute) or all files."""
        if path is None:
            return self.cache.invalidate()
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.project_dir / candidate
        return self.cache.invalidate(candidate)

    def history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.undo.get_history(limit or self.config["history_limit"])

    def clear_history(self, keep_last: int = 0) -> int:
        return self.undo.clear_history(keep_last)

    def undo_transaction(self, transaction_id: str):
        """
        Restore the file content recorded before a transaction.

        Returns:
            (success, applied_files, errors)
        """
        success, applied, errors = self.undo.apply_reverse_patches(transaction_id)
        for file_path in applied:
            self.cache.invalidate(Path(file_path))
        return success, applied, errors
