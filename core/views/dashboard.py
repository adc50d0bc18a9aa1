"""
Dashboard endpoint.

Aggregates patient, consultation and financial statistics together with
the most recent consultations and patients for the home screen.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.consultations import get_consultation_stats, get_recent_consultations
from core.services.financial import get_financial_stats, get_total_revenue
from core.services.patients import get_patient_stats, get_recent_patients

RECENT_ITEMS = 3


@api_view(['GET'])
def dashboard(request):
    return Response({
        'stats': {
            'patients': get_patient_stats(),
            'consultations': get_consultation_stats(),
            'financial': get_financial_stats(),
            'totalRevenue': get_total_revenue(),
        },
        'recentConsultations': get_recent_consultations(RECENT_ITEMS),
        'recentPatients': get_recent_patients(RECENT_ITEMS),
    })
