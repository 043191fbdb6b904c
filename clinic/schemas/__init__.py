# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .appointments.appointment import *
from .doctors.doctor import *
from .services.service import *
from .notifications.notification import *
from .payments.payment import *
from .records.medical_record import *
from .reviews.review import *
