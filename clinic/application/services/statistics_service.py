from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, date, time, timedelta
from fastapi import HTTPException

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.doctors_repo import DoctorsRepository
from ..ports.services_repo import MedicalServicesRepository
from ..ports.payments_repo import PaymentsRepository
from ..ports.user_repo import UserRepository
from .calendar_service import day_name


def rate(part: int, total: int) -> float:
    if not total:
        return 0.0
    return round(part / total * 100, 2)


@dataclass
class StatisticsService:
    appointments: AppointmentsRepository
    doctors: DoctorsRepository
    services: MedicalServicesRepository
    payments: PaymentsRepository
    users: UserRepository
    now: Callable[[], datetime] = datetime.now

    def _range(self, start_date: Optional[date], end_date: Optional[date]):
        today = self.now().date()
        end_date = end_date or today
        start_date = start_date or end_date - timedelta(days=30)
        if start_date > end_date:
            raise HTTPException(status_code=400, detail="Start date must be before end date")
        return datetime.combine(start_date, time.min), datetime.combine(end_date + timedelta(days=1), time.min)

    def general(self) -> Dict[str, Any]:
        by_status = self.appointments.count_by_status()
        total = sum(by_status.values())
        now = self.now()
        month_start = datetime.combine(now.date().replace(day=1), time.min)
        revenue = sum(p.amount for p in self.payments.list_completed_between(month_start, now))
        return {
            "total_appointments": total,
            "total_doctors": self.doctors.count(),
            "total_patients": self.users.count_by_role("patient"),
            "active_services": len(self.services.list(active=True)),
            "monthly_revenue": round(revenue, 2),
            "completion_rate": rate(by_status.get("completed", 0), total),
        }

    def appointment_figures(self, appts: List[AppointmentDto]) -> Dict[str, Any]:
        today = self.now().date()
        todays = self.appointments.list_in_range(
            datetime.combine(today, time.min), datetime.combine(today + timedelta(days=1), time.min)
        )
        by_status = Counter(a.status for a in appts)
        busiest_days = Counter(day_name(a.start_time.date()) for a in appts)
        busiest_hours = Counter(a.start_time.hour for a in appts)
        return {
            "today": {
                "total": len(todays),
                "completed": sum(1 for a in todays if a.status == "completed"),
                "cancelled": sum(1 for a in todays if a.status == "cancelled"),
            },
            "by_status": dict(by_status),
            "busiest_days": [{"day": d, "count": c} for d, c in busiest_days.most_common()],
            "busiest_hours": [{"hour": h, "count": c} for h, c in busiest_hours.most_common()],
            "cancellation_rate": rate(by_status.get("cancelled", 0), len(appts)),
        }

    def service_figures(self, appts: List[AppointmentDto], start: datetime, end: datetime) -> Dict[str, Any]:
        names = {s.id: s.name for s in self.services.list()}
        requested = Counter(a.service_id for a in appts)

        revenue: Dict[int, float] = {}
        for payment in self.payments.list_completed_between(start, end):
            appt = self.appointments.get_by_id(payment.appointment_id)
            if appt:
                revenue[appt.service_id] = revenue.get(appt.service_id, 0.0) + payment.amount

        return {
            "most_requested": [
                {"service_id": sid, "name": names.get(sid), "count": count}
                for sid, count in requested.most_common(5)
            ],
            "revenue_by_service": [
                {"service_id": sid, "name": names.get(sid), "revenue": round(total, 2)}
                for sid, total in sorted(revenue.items(), key=lambda item: item[1], reverse=True)
            ],
        }

    def doctor_figures(self, appts: List[AppointmentDto]) -> List[Dict[str, Any]]:
        completed = Counter(a.doctor_id for a in appts if a.status == "completed")
        return [
            {"doctor_id": d.id, "name": d.full_name, "completed_appointments": completed.get(d.id, 0)}
            for d in sorted(self.doctors.list(), key=lambda d: completed.get(d.id, 0), reverse=True)
        ]

    def dashboard(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        start, end = self._range(start_date, end_date)
        appts = self.appointments.list_in_range(start, end)
        return {
            "period": {"start": start.date().isoformat(), "end": (end - timedelta(days=1)).date().isoformat()},
            "general": self.general(),
            "appointments": self.appointment_figures(appts),
            "services": self.service_figures(appts, start, end),
            "doctors": self.doctor_figures(appts),
        }
