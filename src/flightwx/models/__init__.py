"""Pydantic v2 models for flightwx.

Re-exports from submodules so ``from flightwx.models import X`` keeps working.
"""

from flightwx.models.booking import (  # noqa: F401
    Aircraft,
    AvailabilityWindow,
    Booking,
    BookingStatus,
    CertificationTier,
    Instructor,
    Location,
    ResourceKind,
    TimeSlot,
    Trainee,
)
from flightwx.models.reschedule import (  # noqa: F401
    NotificationKind,
    NotificationRecord,
    ProposedCandidate,
    RankingResponse,
    RescheduleCandidate,
    SendResult,
    WorkflowRun,
)
from flightwx.models.weather import (  # noqa: F401
    MeasuredValues,
    PrecipitationType,
    SafetyEvaluation,
    SafetyMinimums,
    WeatherCheckRecord,
    WeatherObservation,
)
