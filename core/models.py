"""
Database models for the clinic backend.

Two tables carry the whole application: patients and the consultations
held with them.  Primary keys are short collision-resistant strings so
that records created on the desktop build can be merged or exported
without renumbering.  Field names follow Django conventions; the
camelCase JSON shape expected by the front-end is produced by the
service layer.
"""
from __future__ import annotations

import secrets
import time

from django.db import models


def generate_cuid() -> str:
    """Return a short unique id: ``c`` + base36 timestamp + random suffix."""
    stamp = _base36(int(time.time() * 1000))
    return f"c{stamp}{_base36(secrets.randbits(64))[:13]}"


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
    return out or "0"


class Patient(models.Model):
    """A person followed by the clinic.

    ``credits`` counts prepaid consultations; opening a consultation for a
    patient with credits consumes one and marks the consultation paid.
    """
    GENDERS = ('MALE', 'FEMALE', 'NON_BINARY')
    RELIGIONS = (
        'ATHEIST', 'BUDDHISM', 'CANDOMBLE', 'CATHOLIC', 'SPIRITIST', 'SPIRITUALIST', 'EVANGELICAL',
        'HINDUISM', 'ISLAM', 'JUDAISM', 'MORMON', 'NO_RELIGION', 'JEHOVAH_WITNESS', 'UMBANDA',
    )
    FREQUENCIES = ('WEEKLY', 'BIWEEKLY', 'MONTHLY', 'SPORADIC')
    WEEKDAYS = ('MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY')

    id = models.CharField(max_length=32, primary_key=True, default=generate_cuid, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    profile_photo = models.TextField(blank=True, null=True)
    birth_date = models.DateField(db_index=True)
    gender = models.CharField(max_length=20)
    cpf = models.CharField(max_length=14, blank=True, null=True)
    rg = models.CharField(max_length=20, blank=True, null=True)
    religion = models.CharField(max_length=100, blank=True)
    legal_guardian = models.CharField(max_length=255, blank=True, null=True)
    legal_guardian_email = models.EmailField(blank=True, null=True)
    legal_guardian_cpf = models.CharField(max_length=14, blank=True, null=True)
    phone1 = models.CharField(max_length=20)
    phone2 = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    # Intake questionnaire
    has_therapy_history = models.BooleanField(default=False)
    therapy_history_details = models.TextField(blank=True, null=True)
    therapy_reason = models.TextField(blank=True, null=True)
    takes_medication = models.BooleanField(default=False)
    medication_since = models.CharField(max_length=100, blank=True, null=True)
    medication_names = models.TextField(blank=True, null=True)
    has_hospitalization = models.BooleanField(default=False)
    hospitalization_date = models.CharField(max_length=100, blank=True, null=True)
    hospitalization_reason = models.TextField(blank=True, null=True)
    consultation_price = models.FloatField(null=True, blank=True)
    consultation_frequency = models.CharField(max_length=50, blank=True, null=True)
    consultation_day = models.CharField(max_length=20, blank=True, null=True)
    credits = models.PositiveIntegerField(default=0, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['name', 'created_at'], name='patient_name_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Consultation(models.Model):
    STATUS_OPEN = 'OPEN'
    STATUS_FINALIZED = 'FINALIZED'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_FINALIZED, 'Finalized'),
    ]

    id = models.CharField(max_length=32, primary_key=True, default=generate_cuid, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='consultations')
    started_at = models.DateTimeField(db_index=True)
    finished_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    # Rich text from the consultation editor, sanitized on write
    content = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')
    price = models.FloatField()
    paid = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'status'], name='consult_patient_status_idx'),
            models.Index(fields=['status', 'started_at'], name='consult_status_started_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.id}: {self.patient_id} [{self.status}]"
