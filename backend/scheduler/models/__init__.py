from .generated import (
    Base,
    Therapists,
    Clients,
    TherapistWorkingHours,
    ClientAvailability,
    Appointments,
)

__all__ = [
    "Base",
    "Therapists",
    "Clients",
    "TherapistWorkingHours",
    "ClientAvailability",
    "Appointments",
]
