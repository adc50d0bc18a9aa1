"""
Financial view over patients and their consultations.

A patient's payment deficit is the number of consultations held minus
the number already paid; credits are prepaid consultations not yet
consumed.
"""
import math
from typing import Optional

from django.db.models import Count, Q, Sum

from core.models import Consultation, Patient
from core.services.errors import InvalidQueryError
from core.services.patients import calculate_age


def _with_counts(qs):
    return qs.annotate(
        total_consultations=Count('consultations'),
        paid_consultations=Count('consultations', filter=Q(consultations__paid=True)),
    )


def format_financial(p: Patient) -> dict:
    deficit = p.total_consultations - p.paid_consultations
    return {
        'id': p.id,
        'name': p.name,
        'profilePhoto': p.profile_photo,
        'birthDate': p.birth_date.isoformat(),
        'age': calculate_age(p.birth_date),
        'totalConsultations': p.total_consultations,
        'paidConsultations': p.paid_consultations,
        'availableCredits': p.credits,
        'paymentDeficit': deficit,
        'hasPaymentIssues': deficit > 0,
        'consultationPrice': p.consultation_price,
    }


def get_financial_overview(*, page: int = 1, limit: int = 10, sort_by: str = 'paymentDeficit',
                           sort_order: str = 'desc', search: Optional[str] = None) -> dict:
    """Paginated financial rows.

    ``sort_by`` is ``paymentDeficit`` or ``name``; any other value keeps
    registration order.  ``sort_order`` other than ``desc`` sorts ascending.
    """
    if page < 1:
        raise InvalidQueryError('Página deve ser maior que 0')
    if limit < 1 or limit > 100:
        raise InvalidQueryError('Limite deve estar entre 1 e 100')

    qs = Patient.objects.all()
    if search:
        qs = qs.filter(name__icontains=search)
    rows = [format_financial(p) for p in _with_counts(qs).order_by('created_at', 'id')]

    reverse = sort_order == 'desc'
    if sort_by == 'paymentDeficit':
        rows.sort(key=lambda r: r['paymentDeficit'], reverse=reverse)
    elif sort_by == 'name':
        rows.sort(key=lambda r: r['name'].casefold(), reverse=reverse)

    total = len(rows)
    total_pages = math.ceil(total / limit)
    start = (page - 1) * limit
    return {
        'patients': rows[start:start + limit],
        'totalCount': total,
        'totalPages': total_pages,
        'currentPage': page,
        'hasNextPage': page < total_pages,
        'hasPreviousPage': page > 1,
    }


def get_patient_financial_data(patient_id: str) -> Optional[dict]:
    if not patient_id:
        raise InvalidQueryError('ID do paciente é obrigatório')
    p = _with_counts(Patient.objects.filter(id=patient_id)).first()
    return format_financial(p) if p else None


def get_total_revenue() -> float:
    total = Consultation.objects.filter(paid=True).aggregate(total=Sum('price'))['total']
    return float(total or 0)


def get_financial_stats() -> dict:
    patients = _with_counts(Patient.objects.all())
    with_issues = sum(1 for p in patients if p.total_consultations > p.paid_consultations)
    return {
        'totalPatients': Patient.objects.count(),
        'patientsWithPaymentIssues': with_issues,
        'totalUnpaidConsultations': Consultation.objects.filter(paid=False).count(),
        'totalCreditsInSystem': Patient.objects.aggregate(total=Sum('credits'))['total'] or 0,
    }


def search_patients_for_financial(query: str, limit: int = 10) -> list[dict]:
    query = (query or '').strip()
    if len(query) < 2:
        return []
    return list(Patient.objects.filter(name__icontains=query).order_by('name').values('id', 'name')[:limit])
