"""
URL mappings for the clinic API and page shells.

Paths mirror those used by the front-end; trailing slashes are
deliberately omitted.  Fixed sub-paths under ``api/consultations/`` must
stay ahead of the ``<id>`` route, and likewise under ``api/patients/``.
"""
from django.urls import path

from .views import consultations, dashboard, device, financial, health, pages, patients

urlpatterns = [
    path('healthz', health.healthz),
    # Consultations
    path('api/consultations', consultations.consultations),
    path('api/consultations/stats', consultations.consultation_stats),
    path('api/consultations/search-patients', consultations.consultation_search_patients),
    path('api/consultations/<str:id>', consultations.consultation_detail),
    path('api/consultations/<str:id>/finalize', consultations.consultation_finalize),
    path('api/consultations/<str:id>/payment', consultations.consultation_payment),
    # Patients
    path('api/patients', patients.patients),
    path('api/patients/search', patients.patient_search),
    path('api/patients/stats', patients.patient_stats),
    path('api/patients/<str:id>', patients.patient_detail),
    path('api/patients/<str:id>/consultations', patients.patient_consultations),
    path('api/patients/<str:id>/credits', patients.patient_credits),
    path('api/patients/<str:id>/active-consultation', consultations.patient_active_consultation),
    # Financial
    path('api/financial', financial.financial_overview),
    path('api/financial/search-patients', financial.financial_search_patients),
    # Dashboard / device
    path('api/dashboard', dashboard.dashboard),
    path('api/device', device.device_info),
    # Pages
    path('', pages.home, name='home'),
    path('patients/new', pages.patient_new, name='patient_new'),
]
