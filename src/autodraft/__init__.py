"""autodraft - Async client-side reconciliation of vehicle listing drafts."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("autodraft")
except PackageNotFoundError:
    __version__ = "0+local"
from autodraft.autofill import AutoFillOrchestrator, AutoFillState, LookupFailure, LookupOutcome
from autodraft.client import DraftBackend, DraftClient
from autodraft.config import DraftConfig
from autodraft.exceptions import (
    DraftApiError,
    DraftConfigError,
    DraftError,
    DraftPayloadError,
    DraftSaveError,
    DraftTransportError,
)
from autodraft.identifiers import DetectedFormat, detect_format, format_plate, is_valid_identifier
from autodraft.models import (
    CertifiedFieldResult,
    DraftSnapshot,
    FieldState,
    FieldStatus,
    IdentifierType,
    ResyncResult,
    ResyncState,
    SourceState,
    SourceStatus,
)
from autodraft.persistence import DraftPersistenceEngine, SaveOutcome
from autodraft.restore import DraftRestore
from autodraft.resync import BannerKind, ResyncBanner, ResyncCoordinator
from autodraft.score import ScoreFeedbackLoop
from autodraft.state.store import FieldStateStore
from autodraft.workspace import DraftWorkspace

__all__ = [
    "__version__",
    "AutoFillOrchestrator",
    "AutoFillState",
    "BannerKind",
    "CertifiedFieldResult",
    "DetectedFormat",
    "DraftApiError",
    "DraftBackend",
    "DraftClient",
    "DraftConfig",
    "DraftConfigError",
    "DraftError",
    "DraftPayloadError",
    "DraftPersistenceEngine",
    "DraftRestore",
    "DraftSaveError",
    "DraftSnapshot",
    "DraftTransportError",
    "DraftWorkspace",
    "FieldState",
    "FieldStateStore",
    "FieldStatus",
    "IdentifierType",
    "LookupFailure",
    "LookupOutcome",
    "ResyncBanner",
    "ResyncCoordinator",
    "ResyncResult",
    "ResyncState",
    "SaveOutcome",
    "ScoreFeedbackLoop",
    "SourceState",
    "SourceStatus",
    "detect_format",
    "format_plate",
    "is_valid_identifier",
]
