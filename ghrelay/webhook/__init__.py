"""Authentication, mention resolution and delivery of GitHub webhooks."""

from __future__ import annotations

from .dispatch import DeliveryResult, NotificationDispatcher, build_message
from .errors import (
    DeliveryError,
    DestinationNotFoundError,
    MissingHeaderError,
    PayloadValidationError,
    SignatureError,
    WebhookError,
)
from .mentions import (
    MentionFound,
    MentionLookupFailed,
    MentionResolver,
    MentionResult,
    NoMention,
)
from .observability import (
    ErrorCategory,
    WebhookEventLogger,
    WebhookEventType,
    categorize_error,
)
from .pipeline import IgnoredOutcome, PipelineOutcome, SentOutcome, WebhookPipeline
from .signature import (
    SignatureVerifier,
    VerificationResult,
    VerificationStatus,
    compute_signature,
    constant_time_equals,
)

__all__ = [
    "DeliveryError",
    "DeliveryResult",
    "DestinationNotFoundError",
    "ErrorCategory",
    "IgnoredOutcome",
    "MentionFound",
    "MentionLookupFailed",
    "MentionResolver",
    "MentionResult",
    "MissingHeaderError",
    "NoMention",
    "NotificationDispatcher",
    "PayloadValidationError",
    "PipelineOutcome",
    "SentOutcome",
    "SignatureError",
    "SignatureVerifier",
    "VerificationResult",
    "VerificationStatus",
    "WebhookError",
    "WebhookEventLogger",
    "WebhookEventType",
    "WebhookPipeline",
    "build_message",
    "categorize_error",
    "compute_signature",
    "constant_time_equals",
]
