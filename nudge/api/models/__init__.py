"""API request and response models."""

from nudge.api.models.analytics import AnalyticsResponse
from nudge.api.models.catalog import CatalogResponse
from nudge.api.models.deliveries import (
    ProviderCallbackRequest,
    StatusUpdateRequest,
    TransitionResponse,
)
from nudge.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from nudge.api.models.events import (
    BatchEventRequest,
    BatchEventResponse,
    EventResponse,
    PlanOutcomeResponse,
    SkippedRuleResponse,
)
from nudge.api.models.health import ComponentHealth, HealthResponse
from nudge.api.models.pagination import PaginatedResponse
from nudge.api.models.recipients import PreferencesUpdate

__all__ = [
    "AnalyticsResponse",
    "BatchEventRequest",
    "BatchEventResponse",
    "CatalogResponse",
    "ComponentHealth",
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "EventResponse",
    "HealthResponse",
    "PaginatedResponse",
    "PlanOutcomeResponse",
    "PreferencesUpdate",
    "ProviderCallbackRequest",
    "SkippedRuleResponse",
    "StatusUpdateRequest",
    "TransitionResponse",
]
