import logging
import math
from datetime import date
from typing import Optional

from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from core.models import Patient, Consultation
from core.services.errors import BusinessRuleError, InvalidQueryError, PatientNotFound

logger = logging.getLogger(__name__)

PATIENT_SORT_FIELDS = ('name', 'age')
PRICE_TOLERANCE = 0.01

# JSON key -> model field for the full patient record
PATIENT_FIELDS = {
    'name': 'name',
    'profilePhoto': 'profile_photo',
    'birthDate': 'birth_date',
    'gender': 'gender',
    'cpf': 'cpf',
    'rg': 'rg',
    'religion': 'religion',
    'legalGuardian': 'legal_guardian',
    'legalGuardianEmail': 'legal_guardian_email',
    'legalGuardianCpf': 'legal_guardian_cpf',
    'phone1': 'phone1',
    'phone2': 'phone2',
    'email': 'email',
    'hasTherapyHistory': 'has_therapy_history',
    'therapyHistoryDetails': 'therapy_history_details',
    'therapyReason': 'therapy_reason',
    'takesMedication': 'takes_medication',
    'medicationSince': 'medication_since',
    'medicationNames': 'medication_names',
    'hasHospitalization': 'has_hospitalization',
    'hospitalizationDate': 'hospitalization_date',
    'hospitalizationReason': 'hospitalization_reason',
    'consultationPrice': 'consultation_price',
    'consultationFrequency': 'consultation_frequency',
    'consultationDay': 'consultation_day',
    'credits': 'credits',
}


def calculate_age(birth_date: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def format_patient_summary(patient: Patient) -> dict:
    return {
        'id': patient.id,
        'name': patient.name,
        'profilePhoto': patient.profile_photo,
        'birthDate': patient.birth_date.isoformat(),
        'age': calculate_age(patient.birth_date),
    }


def format_patient(patient: Patient) -> dict:
    out = {'id': patient.id}
    for key, field in PATIENT_FIELDS.items():
        out[key] = getattr(patient, field)
    out['birthDate'] = patient.birth_date.isoformat()
    out['age'] = calculate_age(patient.birth_date)
    out['createdAt'] = patient.created_at.isoformat()
    out['updatedAt'] = patient.updated_at.isoformat()
    return out


def _require_id(patient_id: str) -> str:
    if not patient_id or not str(patient_id).strip():
        raise InvalidQueryError('ID do paciente é obrigatório')
    return str(patient_id)


def create_patient(data: dict) -> dict:
    """Create a patient from model field values."""
    patient = Patient.objects.create(**data)
    logger.info('patient %s registered', patient.id)
    return format_patient(patient)


def get_patient(patient_id: str) -> Optional[dict]:
    p = Patient.objects.filter(id=_require_id(patient_id)).first()
    return format_patient(p) if p else None


@transaction.atomic
def update_patient(patient_id: str, data: dict) -> dict:
    p = Patient.objects.select_for_update().filter(id=_require_id(patient_id)).first()
    if p is None:
        raise PatientNotFound()
    for field, value in data.items():
        setattr(p, field, value)
    p.save()
    return format_patient(p)


@transaction.atomic
def delete_patient(patient_id: str) -> None:
    p = Patient.objects.select_for_update().filter(id=_require_id(patient_id)).first()
    if p is None:
        raise PatientNotFound()
    if Consultation.objects.filter(patient=p).exists():
        raise BusinessRuleError('Não é possível excluir paciente com consultas registradas')
    p.delete()


def list_patients(*, page: int = 1, limit: int = 10, sort_by: str = 'name', sort_order: str = 'asc',
                  search: Optional[str] = None) -> dict:
    """Paginated patients with ``hasActiveConsultation``.

    Sorting by age orders by birth date in the opposite direction.
    """
    if page < 1:
        raise InvalidQueryError('Página deve ser maior que 0')
    if limit < 1 or limit > 100:
        raise InvalidQueryError('Limite deve estar entre 1 e 100')
    if sort_by not in PATIENT_SORT_FIELDS:
        raise InvalidQueryError('Campo de ordenação deve ser "name" ou "age"')
    if sort_order not in ('asc', 'desc'):
        raise InvalidQueryError('Ordem deve ser "asc" ou "desc"')

    qs = Patient.objects.all()
    if search and search.strip():
        qs = qs.filter(name__icontains=search.strip())
    qs = qs.annotate(open_consultations=Count(
        'consultations', filter=Q(consultations__status=Consultation.STATUS_OPEN)))

    if sort_by == 'age':
        order = 'birth_date' if sort_order == 'desc' else '-birth_date'
    else:
        order = 'name' if sort_order == 'asc' else '-name'

    total = qs.count()
    total_pages = math.ceil(total / limit)
    start = (page - 1) * limit
    rows = []
    for p in qs.order_by(order, 'id')[start:start + limit]:
        rows.append({**format_patient(p), 'hasActiveConsultation': p.open_consultations > 0})
    return {
        'patients': rows,
        'totalCount': total,
        'totalPages': total_pages,
        'currentPage': page,
        'hasNextPage': page < total_pages,
        'hasPreviousPage': page > 1,
    }


def search_patients(query: str, limit: int = 10) -> list[dict]:
    query = (query or '').strip()
    if len(query) < 2:
        return []
    return list(Patient.objects.filter(name__icontains=query).order_by('name').values('id', 'name')[:limit])


@transaction.atomic
def sell_credits(patient_id: str, quantity: int, unit_price: float) -> dict:
    """Add prepaid consultations to a patient.

    The unit price must match the patient's consultation price.
    """
    p = Patient.objects.select_for_update().filter(id=_require_id(patient_id)).first()
    if p is None:
        raise PatientNotFound()
    if not p.consultation_price or p.consultation_price <= 0:
        raise BusinessRuleError('Não é possível vender créditos. Valor da consulta não foi estabelecido.')
    if abs(p.consultation_price - unit_price) > PRICE_TOLERANCE:
        raise BusinessRuleError('Preço unitário deve corresponder ao valor da consulta do paciente')

    Patient.objects.filter(id=p.id).update(credits=F('credits') + quantity, updated_at=timezone.now())
    p.refresh_from_db()
    logger.info('sold %s credit(s) to patient %s (balance %s)', quantity, p.id, p.credits)
    plural = 's' if quantity > 1 else ''
    return {
        'success': True,
        'message': f'{quantity} crédito{plural} vendido{plural} com sucesso',
        'data': {
            'patientId': p.id,
            'patientName': p.name,
            'creditsSold': quantity,
            'unitPrice': unit_price,
            'totalCost': quantity * unit_price,
            'newCreditBalance': p.credits,
        },
    }


def get_patient_stats() -> dict:
    return {
        'totalPatients': Patient.objects.count(),
        'patientsWithCredits': Patient.objects.filter(credits__gt=0).count(),
        'patientsWithActiveConsultations': Patient.objects.filter(
            consultations__status=Consultation.STATUS_OPEN
        ).distinct().count(),
    }


def get_recent_patients(limit: int = 3) -> list[dict]:
    qs = Patient.objects.order_by('-created_at', '-id')[:limit]
    return [{
        **format_patient_summary(p),
        'credits': p.credits,
        'createdAt': p.created_at.isoformat(),
    } for p in qs]
