"""
Integration tests for doctors, prescriptions and notifications.

The tests use Django REST Framework's APIClient within the APITestCase
base class.

To run the tests:

```
pytest -q clinic/tests
```
"""
from unittest import mock

from rest_framework.test import APITestCase

from clinic.models import Doctor, Notification
from clinic.services.notifications import notify

from .factories import make_appointment, make_doctor, make_patient


class DoctorDirectoryTests(APITestCase):
    def setUp(self) -> None:
        self.patient = make_patient()
        self.cardio = make_doctor(specialization='Cardiology', first_name='Anil', last_name='Mehta')
        self.derma = make_doctor(specialization='Dermatology', first_name='Priya', last_name='Rao')
        self.client.force_authenticate(self.patient.user)

    def test_list_includes_user_summary(self):
        resp = self.client.get('/api/doctors', {'limit': 50})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['pagination']['total'], 2)
        names = {d['user']['name'] for d in resp.data['data']}
        self.assertEqual(names, {'Anil Mehta', 'Priya Rao'})

    def test_search_and_specialization_filter(self):
        resp = self.client.get('/api/doctors', {'q': 'rao'})
        self.assertEqual([d['id'] for d in resp.data['data']], [self.derma.id])
        resp = self.client.get('/api/doctors', {'specialization': 'cardiology'})
        self.assertEqual([d['id'] for d in resp.data['data']], [self.cardio.id])

    def test_list_is_cached(self):
        first = self.client.get('/api/doctors').data
        make_doctor(specialization='Pediatrics')
        self.assertEqual(Doctor.objects.count(), 3)
        second = self.client.get('/api/doctors').data
        self.assertEqual(second['pagination']['total'], first['pagination']['total'])

    def test_bad_pagination(self):
        self.assertEqual(self.client.get('/api/doctors', {'page': 'x'}).status_code, 400)


class PrescriptionTests(APITestCase):
    def setUp(self) -> None:
        self.doctor = make_doctor()
        self.patient = make_patient()
        self.other_patient = make_patient()
        self.appt = make_appointment(self.patient, self.doctor)

    def _create(self, **overrides):
        body = {
            'patient': self.patient.id,
            'appointment': self.appt.id,
            'medications': [{'name': 'Amlodipine', 'dosage': '5mg', 'frequency': 'daily', 'duration': '30 days'}],
            'diagnosis': 'Hypertension',
        }
        body.update(overrides)
        return self.client.post('/api/prescriptions', body, format='json')

    def test_doctor_writes_prescription(self):
        self.client.force_authenticate(self.doctor.user)
        with mock.patch('clinic.services.prescriptions.push_event') as push:
            resp = self._create()
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['data']['medications'][0]['name'], 'Amlodipine')
        self.assertTrue(Notification.objects.filter(recipient=self.patient.user, type='prescription_created').exists())
        event, payload = push.call_args[0]
        self.assertEqual(event, 'prescriptionCreated')
        self.assertEqual(payload['appointmentId'], self.appt.id)
        self.assertEqual(push.call_args[1]['user_ids'], [self.patient.user_id])

    def test_markup_is_stripped_from_prescription_text(self):
        self.client.force_authenticate(self.doctor.user)
        resp = self._create(
            diagnosis='<em>Hypertension</em>',
            medications=[{'name': '<b>Amlodipine</b>', 'dosage': '5mg'}],
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['data']['diagnosis'], 'Hypertension')
        self.assertEqual(resp.data['data']['medications'][0]['name'], 'Amlodipine')

    def test_patient_cannot_write_prescription(self):
        self.client.force_authenticate(self.patient.user)
        self.assertEqual(self._create().status_code, 403)

    def test_appointment_must_match_patient(self):
        self.client.force_authenticate(self.doctor.user)
        self.assertEqual(self._create(patient=self.other_patient.id).status_code, 403)

    def test_medications_required(self):
        self.client.force_authenticate(self.doctor.user)
        self.assertEqual(self._create(medications=[]).status_code, 400)

    def test_patients_see_only_their_own(self):
        self.client.force_authenticate(self.doctor.user)
        self._create()
        self.client.force_authenticate(self.patient.user)
        self.assertEqual(self.client.get('/api/prescriptions').data['pagination']['total'], 1)
        self.client.force_authenticate(self.other_patient.user)
        self.assertEqual(self.client.get('/api/prescriptions').data['pagination']['total'], 0)


class NotificationTests(APITestCase):
    def setUp(self) -> None:
        self.patient = make_patient()
        self.other = make_patient()
        self.n1 = notify(self.patient.user, 'appointment_updated', 'first')
        self.n2 = notify(self.patient.user, 'appointment_confirmed', 'second')
        notify(self.other.user, 'appointment_updated', 'not yours')
        self.client.force_authenticate(self.patient.user)

    def test_list_newest_first_with_unread_count(self):
        resp = self.client.get('/api/notifications')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([n['message'] for n in resp.data['data']], ['second', 'first'])
        self.assertEqual(resp.data['unread'], 2)

    def test_mark_one_read(self):
        resp = self.client.post(f'/api/notifications/{self.n1.id}/read')
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data['data']['read'])
        resp = self.client.get('/api/notifications', {'unread': 'true'})
        self.assertEqual([n['id'] for n in resp.data['data']], [self.n2.id])

    def test_cannot_mark_someone_elses(self):
        theirs = Notification.objects.get(recipient=self.other.user)
        self.assertEqual(self.client.post(f'/api/notifications/{theirs.id}/read').status_code, 403)

    def test_mark_all_read(self):
        resp = self.client.post('/api/notifications/read-all')
        self.assertEqual(resp.data['updated'], 2)
        self.assertEqual(Notification.objects.filter(recipient=self.other.user, read=False).count(), 1)

    def test_notify_pushes_to_recipient(self):
        with mock.patch('clinic.services.notifications.push_event') as push:
            n = notify(self.patient.user, 'payment_received', 'paid')
        event, payload = push.call_args[0]
        self.assertEqual(event, 'notification')
        self.assertEqual(payload['id'], n.id)
        self.assertEqual(push.call_args[1]['user_ids'], [self.patient.user.id])
