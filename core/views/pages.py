"""
Server-rendered page shells.

Pages extend ``core/layout.html``, which chooses the chrome from the
device information exposed by the context processor.
"""
from django.shortcuts import render


def home(request):
    return render(request, 'core/home.html', {'title': 'Dashboard'})


def patient_new(request):
    return render(request, 'core/patient_new.html', {'title': 'Novo Paciente'})
