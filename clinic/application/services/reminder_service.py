import logging
from dataclasses import dataclass
from typing import Callable
from datetime import datetime, timedelta

from ...core.config import settings
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.doctors_repo import DoctorsRepository
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class ReminderService:
    appointments: AppointmentsRepository
    doctors: DoctorsRepository
    notifier: NotificationService
    now: Callable[[], datetime] = datetime.now

    def send_due_reminders(self, hours_before: int = settings.REMINDER_HOURS_BEFORE) -> int:
        """Remind patients of active appointments starting within the next `hours_before` hours.

        Each appointment is reminded once; returns how many reminders were sent.
        """
        now = self.now()
        due = self.appointments.find_needing_reminders(now, now + timedelta(hours=hours_before))
        sent = 0
        for appt in due:
            doctor = self.doctors.get(appt.doctor_id)
            if not doctor:
                logger.error(f"Doctor {appt.doctor_id} missing for appointment {appt.id}, reminder skipped")
                continue
            self.notifier.send_appointment_reminder(appt, doctor)
            self.appointments.update(appt.id, reminder_sent_at=now)
            sent += 1
        logger.info(f"{sent} appointment reminder(s) sent")
        return sent
