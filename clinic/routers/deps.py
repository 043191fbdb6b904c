# clinic/routers/deps.py
from fastapi import Depends
from sqlmodel import Session

from ..database import get_session
from ..infrastructure.rate_limit import get_rate_limiter
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import SqlDoctorsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.time_slots_repository_sql import SqlUnavailabilityRepository
from ..infrastructure.persistence.sqlalchemy.repositories.services_repository_sql import SqlMedicalServicesRepository
from ..infrastructure.persistence.sqlalchemy.repositories.notifications_repository_sql import SqlNotificationsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.payments_repository_sql import SqlPaymentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.medical_records_repository_sql import SqlMedicalRecordsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..infrastructure.persistence.sqlalchemy.repositories.reviews_repository_sql import SqlReviewsRepository
from ..application.services.notification_service import NotificationService
from ..application.services.calendar_service import CalendarService
from ..application.services.appointments_service import AppointmentsService
from ..application.services.doctor_service import DoctorService
from ..application.services.medical_service_manager import MedicalServiceManager
from ..application.services.payment_service import PaymentService
from ..application.services.medical_record_service import MedicalRecordService
from ..application.services.statistics_service import StatisticsService
from ..application.services.reminder_service import ReminderService
from ..application.services.review_service import ReviewService


def get_notification_service(session: Session = Depends(get_session)) -> NotificationService:
    return NotificationService(SqlNotificationsRepository(session))


def get_calendar_service(
    session: Session = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> CalendarService:
    return CalendarService(
        doctors=SqlDoctorsRepository(session),
        appointments=SqlAppointmentsRepository(session),
        unavailabilities=SqlUnavailabilityRepository(session),
        notifier=notifier,
    )


def get_appointments_service(
    session: Session = Depends(get_session),
    calendar: CalendarService = Depends(get_calendar_service),
    notifier: NotificationService = Depends(get_notification_service),
) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        doctors=SqlDoctorsRepository(session),
        services=SqlMedicalServicesRepository(session),
        calendar=calendar,
        notifier=notifier,
        rate_limiter=get_rate_limiter(),
    )


def get_doctor_service(
    session: Session = Depends(get_session),
    calendar: CalendarService = Depends(get_calendar_service),
) -> DoctorService:
    return DoctorService(SqlDoctorsRepository(session), calendar)


def get_service_manager(session: Session = Depends(get_session)) -> MedicalServiceManager:
    return MedicalServiceManager(
        SqlMedicalServicesRepository(session),
        SqlDoctorsRepository(session),
        SqlAppointmentsRepository(session),
    )


def get_payment_service(
    session: Session = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> PaymentService:
    return PaymentService(
        repo=SqlPaymentsRepository(session),
        appointments=SqlAppointmentsRepository(session),
        services=SqlMedicalServicesRepository(session),
        notifier=notifier,
    )


def get_medical_record_service(session: Session = Depends(get_session)) -> MedicalRecordService:
    return MedicalRecordService(SqlMedicalRecordsRepository(session), SqlUserRepository(session))


def get_statistics_service(session: Session = Depends(get_session)) -> StatisticsService:
    return StatisticsService(
        appointments=SqlAppointmentsRepository(session),
        doctors=SqlDoctorsRepository(session),
        services=SqlMedicalServicesRepository(session),
        payments=SqlPaymentsRepository(session),
        users=SqlUserRepository(session),
    )


def get_review_service(
    session: Session = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> ReviewService:
    return ReviewService(
        repo=SqlReviewsRepository(session),
        appointments=SqlAppointmentsRepository(session),
        doctors=SqlDoctorsRepository(session),
        users=SqlUserRepository(session),
        notifier=notifier,
    )


def build_reminder_service(session: Session) -> ReminderService:
    return ReminderService(
        appointments=SqlAppointmentsRepository(session),
        doctors=SqlDoctorsRepository(session),
        notifier=NotificationService(SqlNotificationsRepository(session)),
    )


def get_reminder_service(session: Session = Depends(get_session)) -> ReminderService:
    return build_reminder_service(session)
