import re
from datetime import date

import bleach
from rest_framework import serializers

from core.models import Patient
from core.services.patients import PATIENT_FIELDS

MAX_AGE_YEARS = 120
MAX_PRICE = 99999.99

PHONE_JUNK = re.compile(r'[^\d\s()\-+]')
DOCUMENT_JUNK = re.compile(r'[^\d.\-]')
IMAGE_DATA_URL = re.compile(r'^data:image/(jpeg|jpg|png|gif|webp|svg\+xml);base64,', re.IGNORECASE)
SEARCH_JUNK = re.compile(r"['\"`;\\\\]")


def clean_text(v):
    return bleach.clean((v or '').strip(), tags=set(), strip=True)


def clean_phone(v):
    return PHONE_JUNK.sub('', (v or '').strip())


def clean_document(v):
    return DOCUMENT_JUNK.sub('', (v or '').strip())


def to_model_fields(data: dict) -> dict:
    return {PATIENT_FIELDS[k]: v for k, v in data.items() if k in PATIENT_FIELDS}


def _blank_to_none(v):
    return v or None


class PatientCreateSerializer(serializers.Serializer):
    """Full registration form (desktop)."""
    name = serializers.CharField(max_length=255, error_messages={
        'required': 'Nome é obrigatório', 'blank': 'Nome é obrigatório', 'max_length': 'Nome muito longo'})
    birthDate = serializers.DateField(error_messages={
        'required': 'Data de nascimento é obrigatória', 'invalid': 'Data inválida'})
    gender = serializers.ChoiceField(choices=Patient.GENDERS, error_messages={
        'required': 'Gênero é obrigatório', 'invalid_choice': 'Gênero é obrigatório'})
    religion = serializers.ChoiceField(choices=Patient.RELIGIONS, error_messages={
        'required': 'Religião é obrigatória', 'invalid_choice': 'Religião é obrigatória'})
    phone1 = serializers.CharField(max_length=20, error_messages={
        'required': 'Telefone é obrigatório', 'blank': 'Telefone é obrigatório', 'max_length': 'Telefone muito longo'})
    hasTherapyHistory = serializers.BooleanField()
    takesMedication = serializers.BooleanField()
    hasHospitalization = serializers.BooleanField()
    cpf = serializers.CharField(max_length=14, error_messages={
        'required': 'CPF é obrigatório', 'blank': 'CPF é obrigatório', 'max_length': 'CPF muito longo'})

    profilePhoto = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    rg = serializers.CharField(required=False, allow_blank=True, max_length=20)
    legalGuardian = serializers.CharField(required=False, allow_blank=True, max_length=255)
    legalGuardianEmail = serializers.EmailField(required=False, allow_blank=True, allow_null=True,
                                                error_messages={'invalid': 'Email inválido'})
    legalGuardianCpf = serializers.CharField(required=False, allow_blank=True, max_length=14)
    phone2 = serializers.CharField(required=False, allow_blank=True, max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True,
                                   error_messages={'invalid': 'Email inválido'})
    therapyHistoryDetails = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    therapyReason = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    medicationSince = serializers.CharField(required=False, allow_blank=True, max_length=100)
    medicationNames = serializers.CharField(required=False, allow_blank=True, max_length=500)
    hospitalizationDate = serializers.CharField(required=False, allow_blank=True, max_length=100)
    hospitalizationReason = serializers.CharField(required=False, allow_blank=True, max_length=500)

    consultationPrice = serializers.FloatField(required=False, allow_null=True, max_value=MAX_PRICE, error_messages={
        'max_value': 'Valor muito alto'})
    consultationFrequency = serializers.ChoiceField(choices=Patient.FREQUENCIES, required=False, allow_null=True)
    consultationDay = serializers.ChoiceField(choices=Patient.WEEKDAYS, required=False, allow_null=True)
    credits = serializers.IntegerField(default=0, min_value=0, error_messages={
        'min_value': 'Valor não pode ser negativo'})

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Nome é obrigatório')
        return v

    def validate_birthDate(self, v):
        today = date.today()
        if v > today or v < date(today.year - MAX_AGE_YEARS, 1, 1):
            raise serializers.ValidationError('Data inválida')
        return v

    def validate_phone1(self, v):
        v = clean_phone(v)
        if not v:
            raise serializers.ValidationError('Telefone é obrigatório')
        return v

    def validate_cpf(self, v):
        v = clean_document(v)
        if not v:
            raise serializers.ValidationError('CPF é obrigatório')
        return v

    def validate_profilePhoto(self, v):
        v = (v or '').strip()
        if v and not (IMAGE_DATA_URL.match(v) or v.startswith(('http://', 'https://'))):
            raise serializers.ValidationError('URL da foto inválida')
        return v or None

    def validate_consultationPrice(self, v):
        if v is not None and v <= 0:
            raise serializers.ValidationError('Valor deve ser maior que zero')
        return v

    def validate_rg(self, v):
        return _blank_to_none(clean_document(v))

    def validate_legalGuardianCpf(self, v):
        return _blank_to_none(clean_document(v))

    def validate_phone2(self, v):
        return _blank_to_none(clean_phone(v))

    def validate_legalGuardian(self, v):
        return _blank_to_none(clean_text(v))

    def validate_email(self, v):
        return _blank_to_none((v or '').strip().lower())

    def validate_legalGuardianEmail(self, v):
        return _blank_to_none((v or '').strip().lower())

    def validate_therapyHistoryDetails(self, v):
        return _blank_to_none(clean_text(v))

    def validate_therapyReason(self, v):
        return _blank_to_none(clean_text(v))

    def validate_medicationSince(self, v):
        return _blank_to_none(clean_text(v))

    def validate_medicationNames(self, v):
        return _blank_to_none(clean_text(v))

    def validate_hospitalizationDate(self, v):
        return _blank_to_none(clean_text(v))

    def validate_hospitalizationReason(self, v):
        return _blank_to_none(clean_text(v))

    def validate(self, attrs):
        if attrs.get('legalGuardian') and not attrs.get('legalGuardianEmail'):
            raise serializers.ValidationError(
                {'legalGuardianEmail': 'Email do responsável é obrigatório quando responsável é informado'})
        return attrs

    def to_service(self) -> dict:
        return to_model_fields(self.validated_data)


class PatientTabletCreateSerializer(PatientCreateSerializer):
    """Registration from a tablet: pricing and credits are set later at the desk."""
    consultationPrice = None
    consultationFrequency = None
    consultationDay = None
    credits = None

    def to_service(self) -> dict:
        return {**super().to_service(), 'credits': 0}


class PatientUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, max_length=255, error_messages={
        'blank': 'Nome é obrigatório', 'max_length': 'Nome muito longo'})
    birthDate = serializers.DateField(required=False, error_messages={'invalid': 'Data inválida'})
    gender = serializers.ChoiceField(choices=Patient.GENDERS, required=False)
    religion = serializers.ChoiceField(choices=Patient.RELIGIONS, required=False)
    phone1 = serializers.CharField(required=False, max_length=20, error_messages={
        'blank': 'Telefone é obrigatório', 'max_length': 'Telefone muito longo'})
    hasTherapyHistory = serializers.BooleanField(required=False)
    takesMedication = serializers.BooleanField(required=False)
    hasHospitalization = serializers.BooleanField(required=False)
    profilePhoto = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    cpf = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=14)
    rg = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    legalGuardian = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    legalGuardianEmail = serializers.EmailField(required=False, allow_null=True,
                                                error_messages={'invalid': 'Email inválido'})
    legalGuardianCpf = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=14)
    phone2 = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    email = serializers.EmailField(required=False, allow_null=True, error_messages={'invalid': 'Email inválido'})
    therapyHistoryDetails = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=1000)
    therapyReason = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=1000)
    medicationSince = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=100)
    medicationNames = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=500)
    hospitalizationDate = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=100)
    hospitalizationReason = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=500)
    consultationPrice = serializers.FloatField(required=False, allow_null=True, min_value=0.01, max_value=MAX_PRICE,
                                               error_messages={'min_value': 'Valor deve ser positivo',
                                                               'max_value': 'Valor muito alto'})
    consultationFrequency = serializers.ChoiceField(choices=Patient.FREQUENCIES, required=False, allow_null=True)
    consultationDay = serializers.ChoiceField(choices=Patient.WEEKDAYS, required=False, allow_null=True)
    credits = serializers.IntegerField(required=False, min_value=0, error_messages={
        'min_value': 'Valor não pode ser negativo'})

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Nome é obrigatório')
        return v

    def validate_phone1(self, v):
        return clean_phone(v)

    def to_service(self) -> dict:
        """Model field values; explicit nulls are dropped (never cleared)."""
        return to_model_fields({k: v for k, v in self.validated_data.items() if v is not None})


class PatientListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(default=1, min_value=1, error_messages={
        'invalid': 'Página deve ser maior que 0', 'min_value': 'Página deve ser maior que 0'})
    limit = serializers.IntegerField(default=10, min_value=1, max_value=100, error_messages={
        'invalid': 'Limite deve estar entre 1 e 100',
        'min_value': 'Limite deve estar entre 1 e 100',
        'max_value': 'Limite deve estar entre 1 e 100'})
    sortBy = serializers.ChoiceField(choices=['name', 'age'], default='name', error_messages={
        'invalid_choice': 'Campo de ordenação deve ser "name" ou "age"'})
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='asc', error_messages={
        'invalid_choice': 'Ordem deve ser "asc" ou "desc"'})
    search = serializers.CharField(default=None, trim_whitespace=False)

    def validate_search(self, v):
        return SEARCH_JUNK.sub('', clean_text(v)) or None


class PatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(default='', allow_blank=True, trim_whitespace=False)
    limit = serializers.IntegerField(default=10, min_value=1, max_value=50, error_messages={
        'invalid': 'Limite deve estar entre 1 e 50',
        'min_value': 'Limite deve estar entre 1 e 50',
        'max_value': 'Limite deve estar entre 1 e 50'})


class CreditSaleSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, max_value=100, error_messages={
        'required': 'Quantidade é obrigatória',
        'min_value': 'Quantidade deve ser pelo menos 1',
        'max_value': 'Quantidade muito alta'})
    unitPrice = serializers.FloatField(max_value=MAX_PRICE, error_messages={
        'required': 'Preço unitário é obrigatório', 'max_value': 'Preço unitário muito alto'})

    def validate_unitPrice(self, v):
        if v <= 0:
            raise serializers.ValidationError('Valor deve ser positivo')
        return v
