"""
Patient endpoints: registration, maintenance, search, stats, history and
credit sales.
"""
from datetime import date

import pytest

from core.models import Consultation, Patient
from core.services import patients as patient_service
from core.services.errors import BusinessRuleError, InvalidQueryError, PatientNotFound

pytestmark = pytest.mark.django_db

VIEWS = 'core.views.patients'
IPAD_UA = 'Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148'


@pytest.fixture
def form():
    return {
        'name': ' Maria <b>Clara</b> ',
        'birthDate': '1990-05-17',
        'gender': 'FEMALE',
        'religion': 'CATHOLIC',
        'phone1': '(11) 9999x9-0000',
        'cpf': '123.456.789-00',
        'hasTherapyHistory': False,
        'takesMedication': True,
        'medicationNames': 'Sertralina',
        'hasHospitalization': False,
        'consultationPrice': 180.0,
        'credits': 3,
    }


def test_create_patient_sanitizes_input(api_client, form):
    r = api_client.post('/api/patients', form, format='json')
    assert r.status_code == 201
    body = r.json()
    assert body['name'] == 'Maria Clara'
    assert body['phone1'] == '(11) 99999-0000'
    assert body['cpf'] == '123.456.789-00'
    assert body['consultationPrice'] == 180.0
    assert body['credits'] == 3
    assert body['age'] >= 30
    assert Patient.objects.get(id=body['id']).medication_names == 'Sertralina'


def test_create_from_tablet_leaves_pricing_to_the_desk(api_client, form):
    r = api_client.post('/api/patients', form, format='json', HTTP_USER_AGENT=IPAD_UA)
    assert r.status_code == 201
    p = Patient.objects.get(id=r.json()['id'])
    assert p.consultation_price is None
    assert p.credits == 0


def test_create_with_tablet_flag_in_body(api_client, form):
    r = api_client.post('/api/patients', {**form, 'isIpad': True}, format='json')
    assert r.status_code == 201
    assert r.json()['credits'] == 0
    assert r.json()['consultationPrice'] is None


def test_create_reports_invalid_fields(api_client, form):
    del form['name']
    r = api_client.post('/api/patients', form, format='json')
    assert r.status_code == 400
    assert r.json() == {'error': 'Dados inválidos', 'details': {'name': 'Nome é obrigatório'}}
    assert Patient.objects.count() == 0


@pytest.mark.parametrize('field,value,message', [
    ('birthDate', '2999-01-01', 'Data inválida'),
    ('consultationPrice', 0, 'Valor deve ser maior que zero'),
    ('credits', -1, 'Valor não pode ser negativo'),
    ('email', 'not-an-email', 'Email inválido'),
])
def test_create_field_rules(api_client, form, field, value, message):
    r = api_client.post('/api/patients', {**form, field: value}, format='json')
    assert r.status_code == 400
    assert r.json()['details'][field] == message


def test_guardian_needs_an_email(api_client, form):
    r = api_client.post('/api/patients', {**form, 'legalGuardian': 'Joana'}, format='json')
    assert r.status_code == 400
    assert r.json()['details'] == {
        'legalGuardianEmail': 'Email do responsável é obrigatório quando responsável é informado'}

    r = api_client.post('/api/patients', {**form, 'legalGuardian': 'Joana',
                                          'legalGuardianEmail': 'JOANA@Example.com'}, format='json')
    assert r.status_code == 201
    assert r.json()['legalGuardianEmail'] == 'joana@example.com'


def test_detail_update_delete(api_client, make_patient):
    p = make_patient()
    r = api_client.get(f'/api/patients/{p.id}')
    assert r.status_code == 200
    assert r.json()['name'] == 'Ana Souza'

    r = api_client.put(f'/api/patients/{p.id}', {'name': 'Ana <i>Lima</i>', 'email': None, 'credits': 4},
                       format='json')
    assert r.status_code == 200
    assert r.json()['name'] == 'Ana Lima'
    assert r.json()['credits'] == 4

    r = api_client.delete(f'/api/patients/{p.id}')
    assert r.json() == {'message': 'Paciente excluído com sucesso'}
    assert not Patient.objects.filter(id=p.id).exists()


@pytest.mark.parametrize('method', ['get', 'put', 'delete'])
def test_missing_patient_is_404(api_client, method):
    r = api_client.generic(method.upper(), '/api/patients/nope', '{}', content_type='application/json')
    assert r.status_code == 404
    assert r.json() == {'error': 'Paciente não encontrado'}


def test_update_rejects_bad_price(api_client, make_patient):
    p = make_patient()
    r = api_client.put(f'/api/patients/{p.id}', {'consultationPrice': -5}, format='json')
    assert r.status_code == 400
    assert r.json()['details'] == {'consultationPrice': 'Valor deve ser positivo'}


def test_delete_with_consultations_is_refused(api_client, make_patient, make_consultation):
    p = make_patient()
    make_consultation(p, status=Consultation.STATUS_FINALIZED)
    r = api_client.delete(f'/api/patients/{p.id}')
    assert r.status_code == 409
    assert r.json() == {'error': 'Não é possível excluir paciente com consultas registradas'}
    assert Patient.objects.filter(id=p.id).exists()


def test_list_sorts_and_flags_active_consultations(api_client, make_patient, make_consultation):
    older = make_patient('Bruno Alves', birth_date=date(1960, 1, 1))
    make_patient('Carla Dias', birth_date=date(2000, 1, 1))
    make_consultation(older)

    r = api_client.get('/api/patients')
    assert r.status_code == 200
    assert r['Cache-Control'] == 'public, s-maxage=60, stale-while-revalidate=300'
    body = r.json()
    assert [p['name'] for p in body['patients']] == ['Bruno Alves', 'Carla Dias']
    assert [p['hasActiveConsultation'] for p in body['patients']] == [True, False]
    assert body['totalCount'] == 2

    names = [p['name'] for p in api_client.get('/api/patients', {'sortBy': 'age'}).json()['patients']]
    assert names == ['Carla Dias', 'Bruno Alves']

    body = api_client.get('/api/patients', {'limit': 1, 'page': 2}).json()
    assert [p['name'] for p in body['patients']] == ['Carla Dias']
    assert body['hasPreviousPage'] is True and body['hasNextPage'] is False


def test_list_search_and_validation(api_client, make_patient):
    make_patient('Ana Souza')
    make_patient('Bruno Alves')
    body = api_client.get('/api/patients', {'search': "an'a"}).json()
    assert [p['name'] for p in body['patients']] == ['Ana Souza']

    r = api_client.get('/api/patients', {'sortBy': 'cpf'})
    assert r.status_code == 400
    assert r.json() == {'error': 'Campo de ordenação deve ser "name" ou "age"'}
    assert api_client.get('/api/patients', {'limit': 101}).status_code == 400


@pytest.mark.parametrize('q', ['', 'a', ' b '])
def test_search_short_query_returns_empty_list(api_client, monkeypatch, recorder, q):
    fake = recorder(result=[{'id': 'x', 'name': 'unused'}])
    monkeypatch.setattr(f'{VIEWS}.search_patients', fake)
    r = api_client.get('/api/patients/search', {'q': q, 'limit': 999})
    assert r.status_code == 200
    assert r.json() == []
    assert fake.calls == []


def test_search_returns_bare_list(api_client, make_patient):
    ana = make_patient('Ana Souza')
    make_patient('Bruno Alves')
    assert api_client.get('/api/patients/search', {'q': 'sou'}).json() == [{'id': ana.id, 'name': 'Ana Souza'}]
    assert api_client.get('/api/patients/search', {'query': 'sou'}).json() == [{'id': ana.id, 'name': 'Ana Souza'}]

    r = api_client.get('/api/patients/search', {'q': 'sou', 'limit': 51})
    assert r.status_code == 400
    assert r.json() == {'error': 'Limite deve estar entre 1 e 50'}


def test_stats(api_client, make_patient, make_consultation):
    make_patient(credits=2)
    make_consultation(make_patient('Bruno Alves'))
    assert api_client.get('/api/patients/stats').json() == {
        'totalPatients': 2, 'patientsWithCredits': 1, 'patientsWithActiveConsultations': 1}


def test_patient_consultations_are_scoped(api_client, make_patient, make_consultation):
    ana = make_patient()
    bruno = make_patient('Bruno Alves')
    mine = make_consultation(ana, status=Consultation.STATUS_FINALIZED)
    make_consultation(bruno)

    body = api_client.get(f'/api/patients/{ana.id}/consultations').json()
    assert [c['id'] for c in body['consultations']] == [mine.id]
    assert body['totalCount'] == 1

    r = api_client.get(f'/api/patients/{ana.id}/consultations', {'sortBy': 'price'})
    assert r.status_code == 400


def test_sell_credits(api_client, make_patient):
    p = make_patient(price=150.0, credits=1)
    r = api_client.post(f'/api/patients/{p.id}/credits', {'quantity': 2, 'unitPrice': 150.0}, format='json')
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    assert body['message'] == '2 créditos vendidos com sucesso'
    assert body['data'] == {'patientId': p.id, 'patientName': 'Ana Souza', 'creditsSold': 2,
                            'unitPrice': 150.0, 'totalCost': 300.0, 'newCreditBalance': 3}

    r = api_client.post(f'/api/patients/{p.id}/credits', {'quantity': 1, 'unitPrice': 150.005}, format='json')
    assert r.json()['message'] == '1 crédito vendido com sucesso'


def test_sell_credits_requires_matching_price(api_client, make_patient):
    p = make_patient(price=150.0)
    r = api_client.post(f'/api/patients/{p.id}/credits', {'quantity': 1, 'unitPrice': 120.0}, format='json')
    assert r.status_code == 400
    assert r.json() == {'error': 'Preço unitário deve corresponder ao valor da consulta do paciente'}
    p.refresh_from_db()
    assert p.credits == 0


def test_sell_credits_without_price(api_client, make_patient):
    p = make_patient(price=None)
    r = api_client.post(f'/api/patients/{p.id}/credits', {'quantity': 1, 'unitPrice': 100.0}, format='json')
    assert r.status_code == 400
    assert r.json() == {'error': 'Não é possível vender créditos. Valor da consulta não foi estabelecido.'}


@pytest.mark.parametrize('payload,field,message', [
    ({'quantity': 0, 'unitPrice': 150.0}, 'quantity', 'Quantidade deve ser pelo menos 1'),
    ({'quantity': 101, 'unitPrice': 150.0}, 'quantity', 'Quantidade muito alta'),
    ({'quantity': 1, 'unitPrice': 0}, 'unitPrice', 'Valor deve ser positivo'),
])
def test_sell_credits_validation(api_client, make_patient, payload, field, message):
    p = make_patient()
    r = api_client.post(f'/api/patients/{p.id}/credits', payload, format='json')
    assert r.status_code == 400
    assert r.json() == {'error': 'Dados inválidos', 'details': {field: message}}


def test_sell_credits_unknown_patient(api_client):
    r = api_client.post('/api/patients/nope/credits', {'quantity': 1, 'unitPrice': 150.0}, format='json')
    assert r.status_code == 404
    assert r.json() == {'error': 'Paciente não encontrado'}


def test_service_sell_credits_errors(make_patient):
    with pytest.raises(PatientNotFound):
        patient_service.sell_credits('nope', 1, 10.0)
    p = make_patient(price=0.0)
    with pytest.raises(BusinessRuleError, match='não foi estabelecido'):
        patient_service.sell_credits(p.id, 1, 10.0)


def test_service_list_rejects_bad_page(make_patient):
    with pytest.raises(InvalidQueryError, match='Página'):
        patient_service.list_patients(page=0)
