import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('clinic', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MedicalRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('visit_date', models.DateField(default=django.utils.timezone.localdate)),
                ('chief_complaint', models.CharField(max_length=255)),
                ('symptoms', models.JSONField(blank=True, default=list)),
                ('diagnosis', models.TextField()),
                ('treatment', models.TextField()),
                ('vital_signs', models.JSONField(blank=True, default=dict)),
                ('lab_results', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='medical_records', to='clinic.appointment')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medical_records', to='clinic.doctor')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medical_records', to='clinic.patientprofile')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['patient', 'visit_date'], name='mr_patient_visit_idx'),
                    models.Index(fields=['doctor', 'visit_date'], name='mr_doctor_visit_idx'),
                ],
            },
        ),
        migrations.AlterField(
            model_name='notification',
            name='type',
            field=models.CharField(choices=[('appointment_created', 'appointment_created'), ('appointment_cancelled', 'appointment_cancelled'), ('appointment_confirmed', 'appointment_confirmed'), ('appointment_updated', 'appointment_updated'), ('consultation_started', 'consultation_started'), ('consultation_completed', 'consultation_completed'), ('prescription_created', 'prescription_created'), ('payment_received', 'payment_received'), ('medical_record_created', 'medical_record_created'), ('medical_record_updated', 'medical_record_updated')], max_length=32),
        ),
    ]
