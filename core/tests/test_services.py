from datetime import date

import pytest

from core.models import Consultation, Patient, generate_cuid
from core.services import consultations as consultation_service
from core.services import financial as financial_service
from core.services.errors import BusinessRuleError, ConsultationNotFound, InvalidQueryError, PatientNotFound
from core.services.patients import calculate_age, get_patient_stats

pytestmark = pytest.mark.django_db


def test_generate_cuid_is_unique_and_compact():
    ids = {generate_cuid() for _ in range(200)}
    assert len(ids) == 200
    assert all(i.startswith('c') and len(i) <= 32 for i in ids)


@pytest.mark.parametrize('birth,today,expected', [
    (date(1990, 5, 17), date(2024, 5, 16), 33),
    (date(1990, 5, 17), date(2024, 5, 17), 34),
    (date(2000, 2, 29), date(2023, 3, 1), 23),
])
def test_calculate_age(birth, today, expected):
    assert calculate_age(birth, today) == expected


def test_create_consumes_credit(make_patient):
    p = make_patient(credits=2)
    c = consultation_service.create_consultation(p.id)
    assert c['paid'] is True
    assert c['paidAt'] is not None
    p.refresh_from_db()
    assert p.credits == 1


def test_create_without_credit_is_unpaid(make_patient):
    p = make_patient()
    c = consultation_service.create_consultation(p.id, price=90.0)
    assert c['paid'] is False
    assert c['price'] == 90.0


def test_create_refuses_second_open_consultation(make_patient, make_consultation):
    p = make_patient()
    make_consultation(p)
    with pytest.raises(BusinessRuleError):
        consultation_service.create_consultation(p.id)
    assert Consultation.objects.filter(patient=p).count() == 1


@pytest.mark.parametrize('price', [None, 0.0, -10.0])
def test_create_requires_positive_price(make_patient, price):
    p = make_patient(price=price)
    with pytest.raises(BusinessRuleError, match='Preço da consulta'):
        consultation_service.create_consultation(p.id)


def test_create_unknown_patient():
    with pytest.raises(PatientNotFound):
        consultation_service.create_consultation('missing')


def test_finalize_unknown_raises_not_found():
    with pytest.raises(ConsultationNotFound) as exc:
        consultation_service.finalize_consultation('999')
    assert exc.value.kind == 'not_found'
    assert exc.value.message == 'Consulta não encontrada'


def test_blank_id_is_invalid():
    with pytest.raises(InvalidQueryError):
        consultation_service.process_consultation_payment('  ')


def test_delete_rules(make_patient, make_consultation):
    p = make_patient()
    finalized = make_consultation(p, status=Consultation.STATUS_FINALIZED)
    with pytest.raises(BusinessRuleError, match='finalizada'):
        consultation_service.delete_consultation(finalized.id)
    paid = make_consultation(make_patient('Outra'), paid=True)
    with pytest.raises(BusinessRuleError, match='paga'):
        consultation_service.delete_consultation(paid.id)


def test_update_status_stamps_finished_at(make_patient, make_consultation):
    c = make_consultation(make_patient())
    out = consultation_service.update_consultation(c.id, {'status': 'FINALIZED', 'paid': True})
    assert out['status'] == 'FINALIZED'
    assert out['finishedAt'] is not None
    assert out['paidAt'] is not None


def test_consultation_stats(make_patient, make_consultation):
    p = make_patient()
    make_consultation(p)
    make_consultation(p, status=Consultation.STATUS_FINALIZED, paid=True)
    make_consultation(p, status=Consultation.STATUS_FINALIZED)
    assert consultation_service.get_consultation_stats() == {
        'totalConsultations': 3,
        'openConsultations': 1,
        'finalizedConsultations': 2,
        'paidConsultations': 1,
        'unpaidConsultations': 2,
    }


def test_search_for_consultations_needs_two_chars(make_patient, make_consultation):
    make_consultation(make_patient('Ana'))
    assert consultation_service.search_patients_for_consultations('a') == []
    assert consultation_service.search_patients_for_consultations(' an ')[0]['name'] == 'Ana'


def test_search_for_consultations_respects_limit(make_patient, make_consultation):
    for name in ('Ana A', 'Ana B', 'Ana C'):
        make_consultation(make_patient(name))
    names = [p['name'] for p in consultation_service.search_patients_for_consultations('ana', 2)]
    assert names == ['Ana A', 'Ana B']


def test_financial_overview_validates_range():
    with pytest.raises(InvalidQueryError):
        financial_service.get_financial_overview(page=0)
    with pytest.raises(InvalidQueryError):
        financial_service.get_financial_overview(limit=101)


def test_financial_overview_pagination_and_name_sort(make_patient):
    for name in ('carlos', 'Ana', 'bia'):
        make_patient(name)
    out = financial_service.get_financial_overview(limit=2, sort_by='name', sort_order='asc')
    assert [p['name'] for p in out['patients']] == ['Ana', 'bia']
    assert out['totalPages'] == 2
    assert out['hasNextPage'] is True
    assert out['hasPreviousPage'] is False

    page2 = financial_service.get_financial_overview(page=2, limit=2, sort_by='name', sort_order='asc')
    assert [p['name'] for p in page2['patients']] == ['carlos']


def test_total_revenue_and_patient_stats(make_patient, make_consultation):
    p = make_patient(credits=1)
    make_consultation(p, paid=True, price=100.0)
    make_consultation(p, paid=False, price=40.0)
    assert financial_service.get_total_revenue() == 100.0
    assert get_patient_stats() == {
        'totalPatients': 1, 'patientsWithCredits': 1, 'patientsWithActiveConsultations': 1,
    }
    assert financial_service.get_patient_financial_data(p.id)['paymentDeficit'] == 1
    assert financial_service.get_patient_financial_data('missing') is None
    assert Patient.objects.count() == 1
