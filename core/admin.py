"""
Django admin registrations for the clinic models.

Lets an operator inspect and correct patients and consultations through
``/admin/`` during development or support sessions.
"""

from django.contrib import admin

from .models import Patient, Consultation


class ConsultationInline(admin.TabularInline):
    model = Consultation
    extra = 0
    fields = ('id', 'started_at', 'status', 'price', 'paid', 'paid_at')
    readonly_fields = ('id',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'birth_date', 'phone1', 'consultation_price', 'credits', 'created_at')
    list_filter = ('gender', 'religion', 'consultation_frequency')
    search_fields = ('id', 'name', 'cpf', 'email')
    inlines = [ConsultationInline]


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'started_at', 'status', 'price', 'paid')
    list_filter = ('status', 'paid')
    search_fields = ('id', 'patient__name')
    raw_id_fields = ('patient',)
