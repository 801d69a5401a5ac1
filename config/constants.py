"""Business constants for the salon scheduling engine."""

# Bookable day (24-hour format); the closing instant is a non-bookable sentinel
GRID_START = "07:00"
GRID_END = "20:00"

# Appointment slot interval (in minutes)
SLOT_INTERVAL_MINUTES = 30

# Appointment statuses
APPOINTMENT_STATUS_PENDING = "pending"
APPOINTMENT_STATUS_SCHEDULED = "scheduled"
APPOINTMENT_STATUS_CONFIRMED = "confirmed"
APPOINTMENT_STATUS_DELAYED = "delayed"
APPOINTMENT_STATUS_COMPLETED = "completed"
APPOINTMENT_STATUS_CANCELLED = "cancelled"

APPOINTMENT_STATUSES = [
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUS_SCHEDULED,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_DELAYED,
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CANCELLED,
]

TERMINAL_STATUSES = [APPOINTMENT_STATUS_COMPLETED, APPOINTMENT_STATUS_CANCELLED]

# Payment statuses
PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_PENDING = "pending"

PAYMENT_STATUSES = [PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING]

# Event kinds handed to the notification collaborator
EVENT_CREATED = "created"
EVENT_UPDATED = "updated"
EVENT_CANCELLED = "cancelled"

# Monthly package
PACKAGE_SESSIONS = 4
PACKAGE_INTERVAL_DAYS = 7

# Week 1 and 3: manicure; week 2 and 4: manicure + pedicure
PACKAGE_ROTATION = [
    ["Manicure"],
    ["Manicure", "Pedicure"],
]

# Default service catalog (value in BRL, duration in minutes)
SERVICES = [
    {"name": "Banho de Gel", "value": 80.0, "duration": 90, "category": "Unhas"},
    {"name": "Esmaltação em gel", "value": 50.0, "duration": 60, "category": "Unhas"},
    {"name": "Fibra de Vidro", "value": 150.0, "duration": 120, "category": "Unhas"},
    {"name": "Manicure", "value": 25.0, "duration": 30, "category": "Mãos"},
    {"name": "Manutenção", "value": 100.0, "duration": 90, "category": "Unhas"},
    {"name": "Pedicure", "value": 35.0, "duration": 30, "category": "Pés"},
    {"name": "Pé+Mão", "value": 55.0, "duration": 60, "category": "Mãos e Pés"},
    {"name": "Sobrancelha", "value": 30.0, "duration": 30, "category": "Rosto"},
    {"name": "Spa dos Pés", "value": 45.0, "duration": 60, "category": "Pés"},
]
