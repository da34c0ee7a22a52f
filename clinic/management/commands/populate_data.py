"""
Management command to populate the database with demo data.
"""
import random
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import Appointment, AppointmentTransition, Doctor, PatientProfile, User

DEMO_PASSWORD = '123456'


class Command(BaseCommand):
    help = 'Populate database with demo admin, doctors, patients and appointments'

    def add_arguments(self, parser):
        parser.add_argument('--appointments', type=int, default=20, help='appointments to create')
        parser.add_argument('--seed', type=int, default=None, help='random seed')

    def handle(self, *args, **options):
        if options['seed'] is not None:
            random.seed(options['seed'])
        self.stdout.write('Creating demo data...')

        admin = self.create_admin()
        doctors = self.create_doctors()
        patients = self.create_patients()
        self.create_appointments(admin, doctors, patients, options['appointments'])

        self.stdout.write(self.style.SUCCESS('Demo data created.'))

    def create_admin(self):
        user, created = User.objects.get_or_create(
            username='admin',
            defaults={
                'email': 'admin@medrecords.local',
                'password': make_password(DEMO_PASSWORD),
                'role': User.ROLE_ADMIN,
                'first_name': 'Clinic',
                'last_name': 'Admin',
                'is_staff': True,
            }
        )
        self.stdout.write(f'Admin: {user.username}')
        return user

    def create_doctors(self):
        doctors_data = [
            {'username': 'dr_mehta', 'first_name': 'Anil', 'last_name': 'Mehta', 'specialization': 'Cardiology', 'fee': 800, 'experience': 15},
            {'username': 'dr_rao', 'first_name': 'Priya', 'last_name': 'Rao', 'specialization': 'Dermatology', 'fee': 600, 'experience': 8},
            {'username': 'dr_khan', 'first_name': 'Sameer', 'last_name': 'Khan', 'specialization': 'Pediatrics', 'fee': 500, 'experience': 11},
            {'username': 'dr_iyer', 'first_name': 'Lakshmi', 'last_name': 'Iyer', 'specialization': 'General Medicine', 'fee': 0, 'experience': 5},
        ]
        doctors = []
        for i, data in enumerate(doctors_data, start=1):
            user, _ = User.objects.get_or_create(
                username=data['username'],
                defaults={
                    'email': f"{data['username']}@medrecords.local",
                    'password': make_password(DEMO_PASSWORD),
                    'role': User.ROLE_DOCTOR,
                    'first_name': data['first_name'],
                    'last_name': data['last_name'],
                }
            )
            doctor, _ = Doctor.objects.get_or_create(
                user=user,
                defaults={
                    'specialization': data['specialization'],
                    'license_number': f'LIC-{1000 + i}',
                    'experience': data['experience'],
                    'department': data['specialization'],
                    'consultation_fee': data['fee'],
                }
            )
            doctors.append(doctor)
            self.stdout.write(f'Doctor: {user.get_full_name()} ({doctor.specialization})')
        return doctors

    def create_patients(self):
        names = [('Ravi', 'Kumar', 'M'), ('Sneha', 'Patel', 'F'), ('Arjun', 'Singh', 'M'),
                 ('Meera', 'Nair', 'F'), ('Kiran', 'Das', 'O')]
        patients = []
        for first, last, gender in names:
            username = f'{first.lower()}.{last.lower()}'
            user, _ = User.objects.get_or_create(
                username=username,
                defaults={
                    'email': f'{username}@example.com',
                    'password': make_password(DEMO_PASSWORD),
                    'role': User.ROLE_PATIENT,
                    'first_name': first,
                    'last_name': last,
                }
            )
            profile, _ = PatientProfile.objects.get_or_create(
                user=user,
                defaults={
                    'gender': gender,
                    'date_of_birth': timezone.localdate() - timedelta(days=random.randint(20, 70) * 365),
                    'phone': f'98{random.randint(10000000, 99999999)}',
                    'blood_group': random.choice(['A+', 'B+', 'O+', 'AB+', 'O-']),
                }
            )
            patients.append(profile)
            self.stdout.write(f'Patient: {user.get_full_name()}')
        return patients

    def create_appointments(self, admin, doctors, patients, count):
        reasons = ['Routine checkup', 'Follow-up visit', 'Skin rash', 'Fever and cough', 'Chest pain', 'Vaccination']
        # Terminal states are reached through a transition from an open one
        paths = [
            [],
            [Appointment.STATUS_CONFIRMED],
            [Appointment.STATUS_SCHEDULED],
            [Appointment.STATUS_CONFIRMED, Appointment.STATUS_COMPLETED],
            [Appointment.STATUS_CANCELLED],
            [Appointment.STATUS_SCHEDULED, Appointment.STATUS_NO_SHOW],
        ]
        today = timezone.localdate()
        for _ in range(count):
            path = random.choice(paths)
            past = Appointment.STATUS_COMPLETED in path or Appointment.STATUS_NO_SHOW in path
            offset = -random.randint(1, 30) if past else random.randint(0, 30)
            appt = Appointment.objects.create(
                patient=random.choice(patients),
                doctor=random.choice(doctors),
                appointment_date=today + timedelta(days=offset),
                appointment_time=f'{random.randint(9, 17):02d}:{random.choice(["00", "30"])}',
                reason=random.choice(reasons),
                type=random.choice([c for c, _ in Appointment.TYPE_CHOICES]),
                payment_mode=Appointment.PAYMENT_OFFLINE,
            )
            AppointmentTransition.objects.create(appointment=appt, from_status=None, to_status=appt.status,
                                                 operator=admin, reason='created')
            for status in path:
                old = appt.status
                appt.status = status
                if status == Appointment.STATUS_CANCELLED:
                    appt.cancel_reason = 'Patient unavailable'
                if status == Appointment.STATUS_COMPLETED:
                    appt.started_at = appt.completed_at = timezone.now()
                appt.save()
                AppointmentTransition.objects.create(appointment=appt, from_status=old, to_status=status,
                                                     operator=admin, reason='demo data')
        self.stdout.write(f'Appointments: {count}')
