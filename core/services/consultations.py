import logging
import math
from typing import Optional

import bleach
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.models import Consultation, Patient
from core.services.errors import (
    BusinessRuleError,
    ConsultationNotFound,
    InvalidQueryError,
    PatientNotFound,
)
from core.services.patients import format_patient_summary

logger = logging.getLogger(__name__)

# Markup produced by the consultation rich text editor
RICH_TEXT_TAGS = {'p', 'br', 'strong', 'b', 'em', 'i', 'u', 's', 'ul', 'ol', 'li', 'h1', 'h2', 'h3', 'blockquote', 'span'}

SORT_FIELDS = {'startedAt': 'started_at', 'status': 'status', 'paid': 'paid'}
STATUSES = (Consultation.STATUS_OPEN, Consultation.STATUS_FINALIZED)


def _iso(value):
    return value.isoformat() if value else None


def format_consultation(c: Consultation) -> dict:
    return {
        'id': c.id,
        'patientId': c.patient_id,
        'startedAt': _iso(c.started_at),
        'finishedAt': _iso(c.finished_at),
        'paidAt': _iso(c.paid_at),
        'status': c.status,
        'content': c.content,
        'notes': c.notes,
        'price': c.price,
        'paid': c.paid,
        'createdAt': _iso(c.created_at),
        'updatedAt': _iso(c.updated_at),
        'patient': format_patient_summary(c.patient),
    }


def sanitize_rich_text(value: Optional[str]) -> str:
    return bleach.clean(value or '', tags=RICH_TEXT_TAGS, attributes={}, strip=True)


def _require_id(consultation_id: str) -> str:
    if not consultation_id or not str(consultation_id).strip():
        raise InvalidQueryError('ID da consulta é obrigatório')
    return str(consultation_id)


def _get_or_raise(consultation_id: str, *, for_update: bool = False) -> Consultation:
    qs = Consultation.objects.select_related('patient')
    if for_update:
        qs = qs.select_for_update()
    c = qs.filter(id=_require_id(consultation_id)).first()
    if c is None:
        raise ConsultationNotFound()
    return c


@transaction.atomic
def create_consultation(patient_id: str, price: Optional[float] = None) -> dict:
    patient = Patient.objects.select_for_update().filter(id=patient_id).first()
    if patient is None:
        raise PatientNotFound()

    if Consultation.objects.filter(patient=patient, status=Consultation.STATUS_OPEN).exists():
        raise BusinessRuleError(
            'Paciente possui consulta não finalizada. Finalize a consulta atual antes de criar uma nova.'
        )

    price = price if price is not None else patient.consultation_price
    if price is None or not math.isfinite(price) or price <= 0:
        raise BusinessRuleError(
            'Preço da consulta deve ser definido no cadastro do paciente antes de criar uma consulta'
        )

    now = timezone.now()
    has_credits = patient.credits > 0
    c = Consultation.objects.create(
        patient=patient,
        started_at=now,
        price=price,
        paid=has_credits,
        paid_at=now if has_credits else None,
    )
    if has_credits:
        Patient.objects.filter(id=patient.id).update(credits=F('credits') - 1, updated_at=now)
        patient.refresh_from_db()
        logger.info('consultation %s paid with patient credit (%s left)', c.id, patient.credits)
    return format_consultation(c)


def get_consultation(consultation_id: str) -> Optional[dict]:
    c = Consultation.objects.select_related('patient').filter(id=_require_id(consultation_id)).first()
    return format_consultation(c) if c else None


@transaction.atomic
def update_consultation(consultation_id: str, data: dict) -> dict:
    """Apply a partial update.

    ``data`` holds model field names.  Finalizing stamps ``finished_at`` and
    marking paid stamps ``paid_at`` unless the caller supplies them.
    """
    c = _get_or_raise(consultation_id, for_update=True)
    now = timezone.now()
    for field in ('content', 'notes'):
        if data.get(field) is not None:
            setattr(c, field, sanitize_rich_text(data[field]))
    if data.get('status') is not None:
        if data['status'] not in STATUSES:
            raise InvalidQueryError('Status deve ser "OPEN" ou "FINALIZED"')
        c.status = data['status']
        if c.status == Consultation.STATUS_FINALIZED and not data.get('finished_at'):
            c.finished_at = c.finished_at or now
    if data.get('finished_at') is not None:
        c.finished_at = data['finished_at']
    if data.get('paid') is not None:
        c.paid = bool(data['paid'])
        if c.paid and not data.get('paid_at'):
            c.paid_at = c.paid_at or now
    if data.get('paid_at') is not None:
        c.paid_at = data['paid_at']
    if data.get('price') is not None:
        c.price = data['price']
    c.save()
    return format_consultation(c)


@transaction.atomic
def delete_consultation(consultation_id: str) -> None:
    c = _get_or_raise(consultation_id, for_update=True)
    if c.paid:
        raise BusinessRuleError('Não é possível excluir consulta paga')
    if c.status == Consultation.STATUS_FINALIZED:
        raise BusinessRuleError('Não é possível excluir consulta finalizada')
    c.delete()


def list_consultations(*, page: int = 1, limit: int = 10, sort_by: str = 'startedAt', sort_order: str = 'desc',
                       patient_id: Optional[str] = None, status: Optional[str] = None,
                       paid: Optional[bool] = None) -> dict:
    if page < 1:
        raise InvalidQueryError('Página deve ser maior que 0')
    if limit < 1 or limit > 100:
        raise InvalidQueryError('Limite deve estar entre 1 e 100')
    if sort_by not in SORT_FIELDS:
        raise InvalidQueryError('Campo de ordenação deve ser "startedAt", "status" ou "paid"')
    if sort_order not in ('asc', 'desc'):
        raise InvalidQueryError('Ordem deve ser "asc" ou "desc"')
    if status and status not in STATUSES:
        raise InvalidQueryError('Status deve ser "OPEN" ou "FINALIZED"')

    qs = Consultation.objects.select_related('patient')
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)
    if paid is not None:
        qs = qs.filter(paid=paid)

    total = qs.count()
    total_pages = math.ceil(total / limit)
    order = SORT_FIELDS[sort_by] if sort_order == 'asc' else f'-{SORT_FIELDS[sort_by]}'
    start = (page - 1) * limit
    items = qs.order_by(order, 'id')[start:start + limit]
    return {
        'consultations': [format_consultation(c) for c in items],
        'totalCount': total,
        'totalPages': total_pages,
        'currentPage': page,
        'hasNextPage': page < total_pages,
        'hasPreviousPage': page > 1,
    }


def get_active_consultation(patient_id: str) -> Optional[dict]:
    if not patient_id or not str(patient_id).strip():
        raise InvalidQueryError('ID do paciente é obrigatório')
    c = (Consultation.objects.select_related('patient')
         .filter(patient_id=patient_id, status=Consultation.STATUS_OPEN)
         .order_by('-started_at').first())
    return format_consultation(c) if c else None


@transaction.atomic
def finalize_consultation(consultation_id: str) -> dict:
    c = _get_or_raise(consultation_id, for_update=True)
    c.status = Consultation.STATUS_FINALIZED
    c.finished_at = timezone.now()
    c.save(update_fields=['status', 'finished_at', 'updated_at'])
    return format_consultation(c)


@transaction.atomic
def process_consultation_payment(consultation_id: str) -> dict:
    c = _get_or_raise(consultation_id, for_update=True)
    c.paid = True
    c.paid_at = timezone.now()
    c.save(update_fields=['paid', 'paid_at', 'updated_at'])
    return format_consultation(c)


def get_recent_consultations(limit: int = 3) -> list[dict]:
    qs = Consultation.objects.select_related('patient').order_by('-started_at', '-id')[:limit]
    return [format_consultation(c) for c in qs]


def get_consultation_stats() -> dict:
    qs = Consultation.objects.all()
    return {
        'totalConsultations': qs.count(),
        'openConsultations': qs.filter(status=Consultation.STATUS_OPEN).count(),
        'finalizedConsultations': qs.filter(status=Consultation.STATUS_FINALIZED).count(),
        'paidConsultations': qs.filter(paid=True).count(),
        'unpaidConsultations': qs.filter(paid=False).count(),
    }


def search_patients_for_consultations(query: str, limit: int = 10) -> list[dict]:
    """Patients with at least one consultation whose name contains ``query``."""
    query = (query or '').strip()
    if len(query) < 2:
        return []
    qs = (Patient.objects.filter(name__icontains=query, consultations__isnull=False)
          .distinct().order_by('name').values('id', 'name')[:limit])
    return list(qs)
