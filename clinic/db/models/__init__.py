# Models package (re-export feature modules for stable imports)
from .users.user import User
from .health.medical_service import MedicalService, DoctorServiceLink
from .health.doctor import Doctor
from .health.working_hours import WorkingHours
from .health.time_slot import TimeSlot
from .health.appointment import Appointment
from .health.notification import Notification
from .health.review import Review, Feedback
from .billing.payment import Payment
from .billing.invoice import Invoice
from .records.medical_record import MedicalRecord, MedicalNote, Prescription

__all__ = [
    "User",
    "MedicalService",
    "DoctorServiceLink",
    "Doctor",
    "WorkingHours",
    "TimeSlot",
    "Appointment",
    "Notification",
    "Review",
    "Feedback",
    "Payment",
    "Invoice",
    "MedicalRecord",
    "MedicalNote",
    "Prescription",
]
