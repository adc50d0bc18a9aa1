from datetime import date, timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from core.models import Consultation, Patient


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_patient(db):
    def _make(name='Ana Souza', *, price=150.0, credits=0, birth_date=date(1990, 5, 17)):
        return Patient.objects.create(
            name=name, birth_date=birth_date, gender='FEMALE', religion='CATHOLIC', phone1='11999990000',
            consultation_price=price, credits=credits,
        )
    return _make


@pytest.fixture
def make_consultation(db):
    def _make(patient, *, status=Consultation.STATUS_OPEN, paid=False, price=150.0, started_ago=0):
        now = timezone.now()
        return Consultation.objects.create(
            patient=patient,
            started_at=now - timedelta(minutes=started_ago),
            status=status,
            paid=paid,
            paid_at=now if paid else None,
            finished_at=now if status == Consultation.STATUS_FINALIZED else None,
            price=price,
        )
    return _make


class Recorder:
    """Stand-in collaborator that records its calls."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def recorder():
    return Recorder
