"""
Integration tests for medical records: authorship, patient scoping,
amendments, per-patient history and the dashboard counter.
"""
from unittest import mock

from rest_framework.test import APITestCase

from clinic.models import Appointment, MedicalRecord, Notification

from .factories import make_admin, make_appointment, make_doctor, make_patient


class MedicalRecordTests(APITestCase):
    def setUp(self) -> None:
        self.doctor = make_doctor()
        self.other_doctor = make_doctor(first_name='Priya', last_name='Rao', specialization='Dermatology')
        self.patient = make_patient()
        self.other_patient = make_patient()
        self.appt = make_appointment(self.patient, self.doctor, days=0, status=Appointment.STATUS_COMPLETED)

    def _create(self, **overrides):
        body = {
            'patient': self.patient.id,
            'appointment': self.appt.id,
            'chiefComplaint': 'Chest pain',
            'symptoms': ['breathlessness', 'fatigue'],
            'diagnosis': 'Stable angina',
            'treatment': 'Rest and review in two weeks',
            'vitalSigns': {'bloodPressure': '140/90', 'heartRate': 88},
            'labResults': [{'testName': 'ECG', 'result': 'ST depression', 'date': '2026-03-10'}],
        }
        body.update(overrides)
        with mock.patch('clinic.services.records.push_event') as push:
            resp = self.client.post('/api/medical-records', body, format='json')
        return resp, push

    def _record(self):
        self.client.force_authenticate(self.doctor.user)
        resp, _ = self._create()
        self.assertEqual(resp.status_code, 201)
        return resp.data['data']['id']

    def test_doctor_writes_record_and_patient_is_told(self):
        self.client.force_authenticate(self.doctor.user)
        resp, push = self._create()
        self.assertEqual(resp.status_code, 201)
        data = resp.data['data']
        self.assertEqual(data['visitDate'], self.appt.appointment_date.isoformat())
        self.assertEqual(data['vitalSigns'], {'bloodPressure': '140/90', 'heartRate': 88})
        self.assertEqual(data['labResults'][0]['date'], '2026-03-10')
        self.assertTrue(Notification.objects.filter(recipient=self.patient.user, type='medical_record_created').exists())
        event, payload = push.call_args[0]
        self.assertEqual(event, 'medical_record_updated')
        self.assertEqual(payload['action'], 'created')
        self.assertEqual(payload['recordId'], data['id'])
        self.assertEqual(push.call_args[1]['user_ids'], [self.patient.user_id])

    def test_markup_is_stripped_from_record_text(self):
        self.client.force_authenticate(self.doctor.user)
        resp, _ = self._create(diagnosis='<b>Stable</b> angina', symptoms=['<i>cough</i>'])
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['data']['diagnosis'], 'Stable angina')
        self.assertEqual(resp.data['data']['symptoms'], ['cough'])

    def test_patient_cannot_write_record(self):
        self.client.force_authenticate(self.patient.user)
        resp, push = self._create()
        self.assertEqual(resp.status_code, 403)
        push.assert_not_called()

    def test_appointment_of_another_doctor_is_rejected(self):
        self.client.force_authenticate(self.other_doctor.user)
        resp, _ = self._create()
        self.assertEqual(resp.status_code, 403)
        self.assertFalse(MedicalRecord.objects.exists())

    def test_follow_up_before_visit_is_rejected(self):
        self.client.force_authenticate(self.doctor.user)
        resp, _ = self._create(visitDate='2026-03-10', followUpDate='2026-03-01')
        self.assertEqual(resp.status_code, 400)

    def test_unknown_patient_is_404(self):
        self.client.force_authenticate(self.doctor.user)
        resp, _ = self._create(patient=999999, appointment=None)
        self.assertEqual(resp.status_code, 404)

    def test_patient_reads_only_own_records(self):
        record_id = self._record()

        self.client.force_authenticate(self.patient.user)
        resp = self.client.get('/api/medical-records')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([r['id'] for r in resp.data['data']], [record_id])
        self.assertEqual(resp.data['pagination']['total'], 1)
        self.assertEqual(self.client.get(f'/api/medical-records/{record_id}').status_code, 200)

        self.client.force_authenticate(self.other_patient.user)
        self.assertEqual(self.client.get('/api/medical-records').data['data'], [])
        self.assertEqual(self.client.get(f'/api/medical-records/{record_id}').status_code, 404)

    def test_author_amends_record(self):
        record_id = self._record()
        with mock.patch('clinic.services.records.push_event') as push:
            resp = self.client.patch(f'/api/medical-records/{record_id}',
                                     {'treatment': 'Beta blockers', 'vitalSigns': {'heartRate': 72}}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['treatment'], 'Beta blockers')
        self.assertEqual(resp.data['data']['vitalSigns'], {'bloodPressure': '140/90', 'heartRate': 72})
        self.assertEqual(push.call_args[0][1]['action'], 'updated')
        self.assertTrue(Notification.objects.filter(recipient=self.patient.user, type='medical_record_updated').exists())

    def test_empty_amendment_is_rejected(self):
        record_id = self._record()
        resp = self.client.patch(f'/api/medical-records/{record_id}', {}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_only_author_can_amend(self):
        record_id = self._record()
        admin = make_admin()
        self.client.force_authenticate(admin)
        resp = self.client.patch(f'/api/medical-records/{record_id}', {'notes': 'x'}, format='json')
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.patient.user)
        resp = self.client.patch(f'/api/medical-records/{record_id}', {'notes': 'x'}, format='json')
        self.assertEqual(resp.status_code, 403)

        # another doctor does not even see it
        self.client.force_authenticate(self.other_doctor.user)
        resp = self.client.patch(f'/api/medical-records/{record_id}', {'notes': 'x'}, format='json')
        self.assertEqual(resp.status_code, 404)

    def test_patient_history_for_treating_doctor(self):
        record_id = self._record()
        url = f'/api/medical-records/patient/{self.patient.id}'

        resp = self.client.get(url)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([r['id'] for r in resp.data['data']], [record_id])

        self.client.force_authenticate(self.other_doctor.user)
        self.assertEqual(self.client.get(url).status_code, 403)

        make_appointment(self.patient, self.other_doctor, days=2)
        self.assertEqual(self.client.get(url).status_code, 200)

        self.client.force_authenticate(self.patient.user)
        self.assertEqual(self.client.get(url).status_code, 403)

    def test_stats_count_records(self):
        self._record()
        self.assertEqual(self.client.get('/api/appointments/stats').data['data']['records'], 1)

        self.client.force_authenticate(self.patient.user)
        self.assertEqual(self.client.get('/api/appointments/stats').data['data']['records'], 1)

        self.client.force_authenticate(self.other_patient.user)
        self.assertEqual(self.client.get('/api/appointments/stats').data['data']['records'], 0)

        self.client.force_authenticate(make_admin())
        self.assertEqual(self.client.get('/api/appointments/stats').data['data']['records'], 1)
