"""Field detection, scoring and autofill engine for web forms."""

__version__ = "0.1.0"

from .config import EngineTiming, Settings, get_settings
from .context import EngineContext
from .detection import CandidateField, DetectionCache, FieldDetector
from .errors import (
	AutofillError,
	ContextInvalidError,
	FillError,
	SelectorError,
	StorageError,
)
from .filler import FieldFiller
from .options import OptionSelector, match_option, select_best_option
from .orchestrator import FillOrchestrator, OrchestratorState
from .radio import RadioRuleEngine, RadioRuleStore
from .selectors import DEFAULT_SELECTORS, SelectorSet
from .storage import JsonFileStorage, MemoryStorage
from .watcher import MutationWatcher, Subscription

__all__ = [
	"AutofillError",
	"CandidateField",
	"ContextInvalidError",
	"DEFAULT_SELECTORS",
	"DetectionCache",
	"EngineContext",
	"EngineTiming",
	"FieldDetector",
	"FieldFiller",
	"FillError",
	"FillOrchestrator",
	"JsonFileStorage",
	"MemoryStorage",
	"MutationWatcher",
	"OptionSelector",
	"OrchestratorState",
	"RadioRuleEngine",
	"RadioRuleStore",
	"SelectorError",
	"SelectorSet",
	"Settings",
	"StorageError",
	"Subscription",
	"get_settings",
	"match_option",
	"select_best_option",
]
