# API v1 Package
from dentalcare.api.v1 import (
    auth, patients, billing, expenses, inventory, insurance, prescriptions,
    staff, lab_work, treatments, appointments, audit
)

__all__ = [
    'auth',
    'patients',
    'billing',
    'expenses',
    'inventory',
    'insurance',
    'prescriptions',
    'staff',
    'lab_work',
    'treatments',
    'appointments',
    'audit',
]
