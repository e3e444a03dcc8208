"""Operator-side recipe import wizard.

Drives the import endpoints step by step:

    upload -> resolve -> confirm -> success
                 ^          |
                 +- error <-+   (retry goes back to resolve)

A .zip upload holding several recipes runs the resolve/confirm loop once
per recipe and ends on batch_summary instead of success; a failed recipe
can be retried or skipped.

The wizard holds a pre-populated resolution map the operator edits before
submitting. It never talks to the database; every server call goes through
CartaClient, and entity keys come from the same helper the server uses.
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from app.schemas.cocktail_import import ENTITY_TYPES
from app.services.carta_client import ApiError, CartaClient
from app.services.recipe_importer import (
    RecipeImportError,
    default_create_data,
    entity_key,
    parse_export,
    read_export_zip,
)

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    UPLOAD = "upload"
    RESOLVE = "resolve"
    CONFIRM = "confirm"
    SUCCESS = "success"
    ERROR = "error"
    BATCH_SUMMARY = "batch_summary"


class ImportBlockedError(RuntimeError):
    """Raised when the wizard cannot move forward from its current step."""


@dataclass
class SummaryItem:
    entity_type: str
    key: str
    name: str


@dataclass
class ImportSummary:
    """What confirming will do, grouped by outcome."""

    to_create: list[SummaryItem] = field(default_factory=list)
    mapped: list[SummaryItem] = field(default_factory=list)
    skipped: list[SummaryItem] = field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of one recipe in a batch import."""

    name: str
    success: bool
    cocktail_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def edit_path(self) -> Optional[str]:
        return f"/admin/cocktails/{self.cocktail_id}" if self.cocktail_id else None


def build_auto_resolutions(preview: dict) -> dict[str, dict[str, dict]]:
    """Initial resolution map for a preview.

    Matched entities map to their existing row; missing ones get a create
    action with the default payload.
    """
    resolutions: dict[str, dict[str, dict]] = {}
    for entity_type in ENTITY_TYPES:
        resolutions[entity_type] = {}
        for entry in preview.get(entity_type, []):
            ref = entry["ref"]
            key = entity_key(entity_type, ref)
            match = entry.get("existing_match")
            if entry["status"] == "matched" and match:
                resolutions[entity_type][key] = {"action": "use_existing", "existing_id": str(match["id"])}
            else:
                resolutions[entity_type][key] = {
                    "action": "create",
                    "data": default_create_data(entity_type, ref),
                }
    return resolutions


class ImportWizard:
    """State machine for importing exported cocktails.

    Usage:
        wizard = ImportWizard(CartaClient("http://localhost:8000"))
        wizard.load_file("cocktail-mojito.json", content)
        wizard.next()            # preview, enters resolve
        wizard.skip("bottles", "havana club 3")
        wizard.next()            # enters confirm
        wizard.confirm()         # success or error (batch: next recipe or batch_summary)
    """

    def __init__(self, client: CartaClient):
        self.client = client
        self.step = WizardStep.UPLOAD
        self.filename: Optional[str] = None
        self.recipes: list[dict] = []
        self.current_index = 0
        self.recipe: Optional[dict] = None
        self.preview: Optional[dict] = None
        self.resolutions: dict[str, dict[str, dict]] = {}
        self.results: list[ImportResult] = []
        self.error: Optional[str] = None
        self.is_loading = False
        self.imported_cocktail: Optional[dict] = None
        self.closed = False

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def load_file(self, filename: str, content: Union[str, bytes]) -> bool:
        """Parse a dropped .json or .zip file. Returns False (with `error` set) if unusable."""
        self._require(WizardStep.UPLOAD)
        self.filename = filename
        self.recipes = []
        self.current_index = 0
        self.results = []
        self.recipe = None
        self.error = None

        if filename.lower().endswith(".zip"):
            if not isinstance(content, bytes):
                self.error = "Could not read zip file"
                return False
            try:
                recipes = read_export_zip(content)
            except RecipeImportError as e:
                self.error = str(e)
                return False
        else:
            try:
                data = json.loads(content)
            except (ValueError, TypeError):
                self.error = "Invalid JSON file"
                return False
            try:
                parse_export(data)
            except RecipeImportError as e:
                self.error = str(e)
                return False
            recipes = [data]

        self.recipes = recipes
        self.recipe = recipes[0]
        if self.is_batch:
            logger.info(f"Loaded {len(recipes)} recipes from {filename}")
        return True

    @property
    def is_batch(self) -> bool:
        return len(self.recipes) > 1

    @property
    def recipe_name(self) -> Optional[str]:
        return self.recipe["cocktail"]["name"] if self.recipe else None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next(self) -> WizardStep:
        """Advance one step.

        Raises:
            ImportBlockedError: Wizard closed, nothing loaded yet, unresolved
                entities, or no forward move from the current step
        """
        self._check_open()
        if self.step == WizardStep.UPLOAD:
            if self.recipe is None:
                raise ImportBlockedError("Load a recipe file first")
            self._preview_current()
        elif self.step == WizardStep.RESOLVE:
            if not self.all_resolved:
                raise ImportBlockedError(
                    f"{self.missing_count - self.resolved_count} missing entities still need a resolution"
                )
            self.step = WizardStep.CONFIRM
        else:
            raise ImportBlockedError(f"Cannot advance from {self.step.value}")
        return self.step

    def back(self) -> WizardStep:
        self._check_open()
        if self.step == WizardStep.RESOLVE:
            if self.current_index > 0:
                raise ImportBlockedError("Earlier recipes of this batch are already imported")
            self.step = WizardStep.UPLOAD
        elif self.step == WizardStep.CONFIRM:
            self.step = WizardStep.RESOLVE
        else:
            raise ImportBlockedError(f"Cannot go back from {self.step.value}")
        self.error = None
        return self.step

    def retry(self) -> WizardStep:
        """Return from a failed confirm to the resolve step."""
        self._require(WizardStep.ERROR)
        self.error = None
        self.step = WizardStep.RESOLVE
        return self.step

    def skip_recipe(self) -> WizardStep:
        """Batch only: record the failed recipe and move on to the next one."""
        self._require(WizardStep.ERROR)
        if not self.is_batch:
            raise ImportBlockedError("Only batch imports can skip a recipe")
        self.results.append(ImportResult(name=self.recipe_name, success=False, error=self.error))
        self._advance()
        return self.step

    def close(self) -> None:
        self.closed = True

    def _preview_current(self) -> bool:
        preview = self._call(lambda: self.client.import_preview(self.recipe))
        if preview is None:
            return False
        self.preview = preview
        self.resolutions = build_auto_resolutions(preview)
        self.step = WizardStep.RESOLVE
        return True

    def _advance(self) -> None:
        """Preview the next recipe of the batch; recipes that fail to preview are recorded and passed over."""
        while True:
            self.current_index += 1
            if self.current_index >= len(self.recipes):
                self.step = WizardStep.BATCH_SUMMARY
                logger.info(f"Batch import finished: {self.succeeded_count}/{len(self.results)} imported")
                return
            self.recipe = self.recipes[self.current_index]
            self.preview = None
            self.resolutions = {}
            if self._preview_current():
                return
            self.results.append(ImportResult(name=self.recipe_name, success=False, error=self.error))

    # ------------------------------------------------------------------
    # Resolve
    # ------------------------------------------------------------------

    def _entries(self, entity_type: str) -> list[dict]:
        if self.preview is None:
            return []
        return self.preview.get(entity_type, [])

    def _find_entry(self, entity_type: str, key: str) -> dict:
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"Unknown entity type: {entity_type}")
        for entry in self._entries(entity_type):
            if entity_key(entity_type, entry["ref"]) == key:
                return entry
        raise ValueError(f"No {entity_type} entry with key '{key}'")

    def set_resolution(self, entity_type: str, key: str, resolution: dict) -> None:
        self._require(WizardStep.RESOLVE)
        self._find_entry(entity_type, key)
        if resolution.get("action") == "skip" and entity_type != "bottles":
            raise ValueError("Only bottles can be skipped")
        self.resolutions.setdefault(entity_type, {})[key] = resolution

    def use_existing(self, entity_type: str, key: str, existing_id: Any) -> None:
        self.set_resolution(entity_type, key, {"action": "use_existing", "existing_id": str(existing_id)})

    def create(self, entity_type: str, key: str, data: Optional[dict] = None) -> None:
        """Create a new row; without data, reset to the default payload."""
        if data is None:
            data = default_create_data(entity_type, self._find_entry(entity_type, key)["ref"])
        self.set_resolution(entity_type, key, {"action": "create", "data": data})

    def skip(self, entity_type: str, key: str) -> None:
        if entity_type != "bottles":
            raise ValueError("Only bottles can be skipped")
        self.set_resolution(entity_type, key, {"action": "skip"})

    def clear_resolution(self, entity_type: str, key: str) -> None:
        self._require(WizardStep.RESOLVE)
        self.resolutions.get(entity_type, {}).pop(key, None)

    def _missing_keys(self) -> list[tuple[str, str]]:
        return [
            (entity_type, entity_key(entity_type, entry["ref"]))
            for entity_type in ENTITY_TYPES
            for entry in self._entries(entity_type)
            if entry["status"] == "missing"
        ]

    @property
    def missing_count(self) -> int:
        return len(self._missing_keys())

    @property
    def resolved_count(self) -> int:
        return sum(1 for entity_type, key in self._missing_keys() if key in self.resolutions.get(entity_type, {}))

    @property
    def all_resolved(self) -> bool:
        return self.missing_count == self.resolved_count

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------

    def summary(self) -> ImportSummary:
        """Group every referenced entity by what confirming will do to it."""
        summary = ImportSummary()
        for entity_type in ENTITY_TYPES:
            for entry in self._entries(entity_type):
                key = entity_key(entity_type, entry["ref"])
                item = SummaryItem(entity_type=entity_type, key=key, name=entry["ref"]["name"])
                resolution = self.resolutions.get(entity_type, {}).get(key)
                action = resolution["action"] if resolution else None
                if action == "create":
                    summary.to_create.append(item)
                elif action == "skip":
                    summary.skipped.append(item)
                elif action == "use_existing" or entry["status"] == "matched":
                    summary.mapped.append(item)
        return summary

    def confirm(self) -> WizardStep:
        """Submit the current recipe and its resolutions in one request."""
        self._require(WizardStep.CONFIRM)
        cocktail = self._call(lambda: self.client.import_confirm(self.recipe, self.resolutions))
        if cocktail is None:
            self.step = WizardStep.ERROR
            return self.step

        self.imported_cocktail = cocktail
        logger.info(f"Imported '{cocktail['name']}' from {self.filename}")
        if self.is_batch:
            self.results.append(ImportResult(name=cocktail["name"], success=True, cocktail_id=str(cocktail["id"])))
            self._advance()
        else:
            self.step = WizardStep.SUCCESS
        return self.step

    @property
    def succeeded_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def edit_path(self) -> Optional[str]:
        if not self.imported_cocktail:
            return None
        return f"/admin/cocktails/{self.imported_cocktail['id']}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self.closed:
            raise ImportBlockedError("Wizard is closed")

    def _require(self, step: WizardStep) -> None:
        self._check_open()
        if self.step != step:
            raise ImportBlockedError(f"Expected step {step.value}, wizard is at {self.step.value}")

    def _call(self, func):
        """Run one network call, recording failures in `error`."""
        self._check_open()
        self.is_loading = True
        self.error = None
        try:
            return func()
        except ApiError as e:
            logger.warning(f"Import request failed: {e.message}")
            self.error = e.message
            return None
        finally:
            self.is_loading = False
