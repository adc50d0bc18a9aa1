from rest_framework import serializers

LIMIT_RANGE_MESSAGE = 'Limite deve estar entre 1 e 50'


def present(params) -> dict:
    """Query values with blanks dropped, so that serializer defaults apply."""
    return {k: v for k, v in params.items() if v != ''}


class ConsultationPatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(default='', allow_blank=True, trim_whitespace=False)
    limit = serializers.IntegerField(
        default=10, min_value=1, max_value=50,
        error_messages={'invalid': LIMIT_RANGE_MESSAGE, 'min_value': LIMIT_RANGE_MESSAGE, 'max_value': LIMIT_RANGE_MESSAGE},
    )


class ConsultationListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(default=1, min_value=1, error_messages={
        'invalid': 'Página deve ser maior que 0', 'min_value': 'Página deve ser maior que 0'})
    limit = serializers.IntegerField(default=10, min_value=1, max_value=100, error_messages={
        'invalid': 'Limite deve estar entre 1 e 100',
        'min_value': 'Limite deve estar entre 1 e 100',
        'max_value': 'Limite deve estar entre 1 e 100'})
    sortBy = serializers.ChoiceField(choices=['startedAt', 'status', 'paid'], default='startedAt', error_messages={
        'invalid_choice': 'Campo de ordenação deve ser "startedAt", "status" ou "paid"'})
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='desc', error_messages={
        'invalid_choice': 'Ordem deve ser "asc" ou "desc"'})
    patientId = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=['OPEN', 'FINALIZED'], required=False, error_messages={
        'invalid_choice': 'Status deve ser "OPEN" ou "FINALIZED"'})
    paid = serializers.CharField(required=False)

    def validate_paid(self, v):
        return v == 'true'


class ConsultationCreateSerializer(serializers.Serializer):
    patientId = serializers.CharField(error_messages={
        'required': 'ID do paciente é obrigatório', 'blank': 'ID do paciente é obrigatório'})
    price = serializers.FloatField(required=False, allow_null=True)


class ConsultationUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    notes = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    status = serializers.ChoiceField(choices=['OPEN', 'FINALIZED'], required=False, error_messages={
        'invalid_choice': 'Status deve ser "OPEN" ou "FINALIZED"'})
    paid = serializers.BooleanField(required=False)
    price = serializers.FloatField(required=False, min_value=0)
    finishedAt = serializers.DateTimeField(required=False, allow_null=True)
    paidAt = serializers.DateTimeField(required=False, allow_null=True)

    def to_service(self) -> dict:
        """Validated payload keyed by model field name."""
        names = {'finishedAt': 'finished_at', 'paidAt': 'paid_at'}
        return {names.get(k, k): v for k, v in self.validated_data.items()}
