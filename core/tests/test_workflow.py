"""
End-to-end consultation workflow.

Walks a patient through the life of a consultation (open, annotate,
finalize, pay) and checks that the statistics and the financial overview
follow along.  Uses Django REST Framework's APIClient within the
APITestCase base class.
"""
from datetime import date

from rest_framework import status
from rest_framework.test import APITestCase

from core.models import Consultation, Patient


class ConsultationWorkflowTests(APITestCase):
    def setUp(self) -> None:
        self.patient = Patient.objects.create(
            name="Marina Rocha", birth_date=date(1985, 3, 2), gender="FEMALE",
            phone1="21988887777", consultation_price=180.0, credits=1,
        )
        self.other = Patient.objects.create(
            name="Otávio Reis", birth_date=date(1979, 11, 23), gender="MALE",
            phone1="21977776666", consultation_price=150.0,
        )

    def _open(self, patient) -> dict:
        resp = self.client.post('/api/consultations', {'patientId': patient.id}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        return resp.data

    def test_full_cycle(self):
        # First consultation is covered by the prepaid credit
        first = self._open(self.patient)
        self.assertTrue(first['paid'])
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.credits, 0)

        resp = self.client.put(f"/api/consultations/{first['id']}", {'content': '<p>Sessão inicial</p>'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['content'], '<p>Sessão inicial</p>')

        resp = self.client.post(f"/api/consultations/{first['id']}/finalize")
        self.assertEqual(resp.data['status'], Consultation.STATUS_FINALIZED)

        # Second one has to be paid explicitly
        second = self._open(self.patient)
        self.assertFalse(second['paid'])
        active = self.client.get(f'/api/patients/{self.patient.id}/active-consultation')
        self.assertEqual(active.data['id'], second['id'])

        self.client.post(f"/api/consultations/{second['id']}/finalize")
        stats = self.client.get('/api/consultations/stats').data
        self.assertEqual(stats['finalizedConsultations'], 2)
        self.assertEqual(stats['unpaidConsultations'], 1)

        overview = self.client.get('/api/financial', {'search': 'marina'}).data
        self.assertEqual(overview['patients'][0]['paymentDeficit'], 1)

        resp = self.client.post(f"/api/consultations/{second['id']}/payment")
        self.assertTrue(resp.data['paid'])
        overview = self.client.get('/api/financial', {'search': 'marina'}).data
        self.assertFalse(overview['patients'][0]['hasPaymentIssues'])

    def test_consultation_search_only_lists_patients_with_history(self):
        self._open(self.patient)
        resp = self.client.get('/api/consultations/search-patients', {'q': 'r'})
        self.assertEqual(resp.data, {'patients': []})
        resp = self.client.get('/api/consultations/search-patients', {'q': 'ro'})
        self.assertEqual([p['name'] for p in resp.data['patients']], ['Marina Rocha'])

        # Financial search covers every patient
        resp = self.client.get('/api/financial/search-patients', {'q': 'reis'})
        self.assertEqual(resp.data, [{'id': self.other.id, 'name': 'Otávio Reis'}])

    def test_list_filters(self):
        self._open(self.patient)
        self._open(self.other)
        resp = self.client.get('/api/consultations', {'patientId': self.other.id})
        self.assertEqual(resp.data['totalCount'], 1)
        resp = self.client.get('/api/consultations', {'paid': 'true'})
        self.assertEqual([c['patientId'] for c in resp.data['consultations']], [self.patient.id])
        resp = self.client.get('/api/consultations', {'status': 'CLOSED'})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
