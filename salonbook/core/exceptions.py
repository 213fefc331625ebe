# salonbook/core/exceptions.py
"""Domain errors raised by the service layer and mapped to HTTP statuses by the API"""


class AppointmentNotFoundError(ValueError):
    """No appointment (or appointment group) with that id in the caller's business"""


class SMSNotEnabledError(ValueError):
    """The business has SMS sending switched off"""


class ReminderAlreadySentError(ValueError):
    """The reminder flag was already set; nothing was sent"""
