import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import datetime
from fastapi import HTTPException

from ..ports.notifications_repo import NotificationsRepository, NotificationDto
from ..ports.appointments_repo import AppointmentDto
from ..ports.doctors_repo import DoctorDto
from ..ports.payments_repo import PaymentDto
from ..ports.reviews_repo import ReviewDto, FeedbackDto

logger = logging.getLogger(__name__)


def format_day(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def format_time(value: datetime) -> str:
    return value.strftime("%H:%M")


@dataclass
class NotificationService:
    """In-app notifications for patients and doctors.

    Messages are stored and logged; nothing is pushed to external channels.
    """

    repo: NotificationsRepository

    def notify(self, user_id: str, type: str, title: str, message: str, data: Optional[Dict[str, Any]] = None) -> NotificationDto:
        notification = self.repo.create(user_id, type, title, message, data)
        logger.info(f"Notification '{type}' stored for user {user_id}")
        return notification

    def _appointment_data(self, appointment: AppointmentDto, **extra) -> Dict[str, Any]:
        data = {
            "appointment_id": appointment.id,
            "doctor_id": appointment.doctor_id,
            "start_time": appointment.start_time.isoformat(),
        }
        data.update(extra)
        return data

    def send_booking_notifications(self, appointment: AppointmentDto, doctor: DoctorDto) -> None:
        when = f"{format_day(appointment.start_time)} at {format_time(appointment.start_time)}"
        self.notify(
            appointment.patient_id,
            "appointment_created",
            "Appointment requested",
            f"Your appointment with Dr. {doctor.full_name} on {when} has been received and awaits confirmation.",
            self._appointment_data(appointment),
        )
        if doctor.user_id:
            self.notify(
                doctor.user_id,
                "new_appointment",
                "New appointment",
                f"A new appointment has been booked on {when}.",
                self._appointment_data(appointment),
            )

    def send_appointment_confirmation(self, appointment: AppointmentDto, doctor: DoctorDto) -> NotificationDto:
        return self.notify(
            appointment.patient_id,
            "appointment_confirmation",
            "Appointment confirmed",
            f"Your appointment with Dr. {doctor.full_name} on {format_day(appointment.start_time)} "
            f"at {format_time(appointment.start_time)} is confirmed.",
            self._appointment_data(appointment),
        )

    def send_appointment_reminder(self, appointment: AppointmentDto, doctor: DoctorDto) -> NotificationDto:
        return self.notify(
            appointment.patient_id,
            "appointment_reminder",
            "Appointment reminder",
            f"Reminder: you have an appointment with Dr. {doctor.full_name} on "
            f"{format_day(appointment.start_time)} at {format_time(appointment.start_time)}.",
            self._appointment_data(appointment),
        )

    def send_cancellation_notification(self, appointment: AppointmentDto, doctor: DoctorDto, reason: Optional[str] = None) -> None:
        message = (
            f"Your appointment with Dr. {doctor.full_name} on {format_day(appointment.start_time)} "
            f"at {format_time(appointment.start_time)} has been cancelled."
        )
        if reason:
            message += f" Reason: {reason}"
        data = self._appointment_data(appointment, reason=reason)
        self.notify(appointment.patient_id, "appointment_cancellation", "Appointment cancelled", message, data)
        if doctor.user_id:
            self.notify(
                doctor.user_id,
                "appointment_cancellation",
                "Appointment cancelled",
                f"The appointment on {format_day(appointment.start_time)} at {format_time(appointment.start_time)} has been cancelled.",
                data,
            )

    def send_reschedule_notification(self, appointment: AppointmentDto, doctor: DoctorDto, previous_start: datetime) -> NotificationDto:
        return self.notify(
            appointment.patient_id,
            "appointment_rescheduled",
            "Appointment rescheduled",
            f"Your appointment with Dr. {doctor.full_name} has been moved from "
            f"{format_day(previous_start)} at {format_time(previous_start)} to "
            f"{format_day(appointment.start_time)} at {format_time(appointment.start_time)}.",
            self._appointment_data(appointment, previous_start_time=previous_start.isoformat()),
        )

    def send_payment_confirmation(self, user_id: str, payment: PaymentDto) -> NotificationDto:
        if payment.status == "completed":
            message = f"Your payment of {payment.amount:.2f} {payment.currency} has been received."
        else:
            reference = payment.details.get("reference", payment.transaction_id)
            message = (
                f"Your payment of {payment.amount:.2f} {payment.currency} is awaiting your bank transfer. "
                f"Please use the reference {reference}."
            )
        return self.notify(
            user_id,
            "payment_confirmation",
            "Payment",
            message,
            {"payment_id": payment.id, "status": payment.status},
        )

    def send_refund_confirmation(self, user_id: str, payment: PaymentDto) -> NotificationDto:
        return self.notify(
            user_id,
            "refund_confirmation",
            "Payment refunded",
            f"Your payment of {payment.amount:.2f} {payment.currency} has been refunded.",
            {"payment_id": payment.id, "reason": payment.refund_reason},
        )

    def send_review_notifications(self, review: ReviewDto, appointment: AppointmentDto, doctor: DoctorDto,
                                  admin_ids: List[str]) -> None:
        data = {"review_id": review.id, "appointment_id": appointment.id, "rating": review.rating}
        if doctor.user_id:
            self.notify(
                doctor.user_id,
                "new_review",
                "New review",
                f"A patient left a review on your consultation of {format_day(appointment.start_time)}.",
                data,
            )
        for admin_id in admin_ids:
            self.notify(
                admin_id,
                "review_pending_moderation",
                "Review to moderate",
                f"New review to moderate for Dr. {doctor.full_name}.",
                data,
            )

    def send_review_moderation(self, review: ReviewDto, doctor: DoctorDto) -> NotificationDto:
        if review.status == "approved":
            title = "Review published"
            message = f"Your review of Dr. {doctor.full_name} has been approved and is now visible."
        else:
            title = "Review rejected"
            message = (
                f"Your review of Dr. {doctor.full_name} was not published. "
                f"Reason: {review.moderation_note or 'Not specified'}"
            )
        return self.notify(
            review.patient_id,
            "review_moderated",
            title,
            message,
            {"review_id": review.id, "status": review.status},
        )

    def send_feedback_notification(self, feedback: FeedbackDto, admin_ids: List[str]) -> None:
        for admin_id in admin_ids:
            self.notify(
                admin_id,
                "new_feedback",
                "New feedback",
                f"New {feedback.type} feedback: {feedback.subject}",
                {"feedback_id": feedback.id, "type": feedback.type},
            )

    # User facing operations

    def list_for_user(self, user_id: str, type: Optional[str] = None, read: Optional[bool] = None,
                      limit: int = 50, offset: int = 0) -> List[NotificationDto]:
        if limit < 1 or limit > 100:
            raise HTTPException(status_code=400, detail="Limit must be between 1 and 100")
        if offset < 0:
            raise HTTPException(status_code=400, detail="Offset cannot be negative")
        return self.repo.list_for_user(user_id, type=type, read=read, limit=limit, offset=offset)

    def get_for_user(self, user_id: str, notification_id: int) -> NotificationDto:
        notification = self.repo.get_for_user(notification_id, user_id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    def read(self, user_id: str, notification_id: int) -> NotificationDto:
        notification = self.get_for_user(user_id, notification_id)
        if not notification.read:
            self.repo.mark_read(notification_id)
            notification.read = True
        return notification

    def mark_all_read(self, user_id: str) -> int:
        return self.repo.mark_all_read(user_id)

    def delete(self, user_id: str, notification_id: int) -> None:
        self.get_for_user(user_id, notification_id)
        self.repo.delete(notification_id)

    def unread_count(self, user_id: str) -> int:
        return self.repo.unread_count(user_id)
