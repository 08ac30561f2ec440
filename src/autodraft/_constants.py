"""Internal constants shared across the library."""

BASE_URL = "http://localhost:7071"
USER_AGENT = "autodraft/0.1"

# ------------------------------------------------------------------
# Backend endpoints
# ------------------------------------------------------------------

LOOKUP_ENDPOINT = "/api/seller/autoFillByPlate"
UPDATE_FIELD_ENDPOINT = "/api/seller/updateListingField"
SAVE_DRAFT_ENDPOINT = "/api/seller/saveDraft"
LOAD_DRAFT_ENDPOINT = "/api/seller/loadDraft"
RESYNC_AVAILABILITY_ENDPOINT = "/api/seller/checkResyncAvailability"
RECALCULATE_SCORE_ENDPOINT = "/api/seller/recalculateScore"

# ------------------------------------------------------------------
# Timing defaults (seconds)
# ------------------------------------------------------------------

DEBOUNCE_SECONDS = 0.3
AUTO_SAVE_INTERVAL_SECONDS = 60.0
REQUEST_TIMEOUT_SECONDS = 15.0

ALL_SOURCES_FAILED_MESSAGE = "All services unavailable"
DEFAULT_VISIBILITY_LABEL = "Partially documented"

# ------------------------------------------------------------------
# Known draft fields, in form order
# ------------------------------------------------------------------

LISTING_FIELDS: tuple[str, ...] = (
    # Vehicle identity
    "plate",
    "vin",
    "make",
    "model",
    "variant",
    "year",
    "firstRegistrationDate",
    "bodyType",
    # Technical
    "fuelType",
    "gearbox",
    "powerKw",
    "fiscalPower",
    "engineDisplacement",
    "doors",
    "seats",
    "color",
    # Environment
    "co2GKm",
    "euroStandard",
    "energyClass",
    "critAir",
    # History
    "mileage",
    "previousOwners",
    "openRecalls",
    "technicalInspectionDate",
    # Sale
    "condition",
    "price",
    "description",
)

# Adapter keys reported by the lookup aggregator -> short display label.
ADAPTER_LABELS: dict[str, str] = {
    "IVehicleLookupAdapter": "SIV",
    "IEmissionAdapter": "ADEME",
    "IRecallAdapter": "Recalls",
    "ICritAirCalculator": "Crit'Air",
    "IVINTechnicalAdapter": "VIN Tech",
}


def adapter_label(adapter_key: str) -> str:
    """Return the display label for *adapter_key*, or the key itself when unmapped."""
    return ADAPTER_LABELS.get(adapter_key, adapter_key)
