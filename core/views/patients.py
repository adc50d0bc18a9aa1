"""
Patient endpoints.

Registration, lookup and maintenance of patient records, name search for
autocomplete, dashboard statistics, the per-patient consultation history
and the sale of prepaid consultation credits.  Registration from an iPad
accepts a reduced form: pricing and credits are left for the desk.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.exceptions import first_message
from core.serializers.consultations import ConsultationListQuerySerializer, present
from core.serializers.patients import (
    CreditSaleSerializer,
    PatientCreateSerializer,
    PatientListQuerySerializer,
    PatientSearchQuerySerializer,
    PatientTabletCreateSerializer,
    PatientUpdateSerializer,
)
from core.services.consultations import list_consultations
from core.services.device import is_ipad_user_agent
from core.services.errors import BusinessRuleError, InvalidQueryError, NotFoundError
from core.services.patients import (
    create_patient,
    delete_patient,
    get_patient,
    get_patient_stats,
    list_patients,
    search_patients,
    sell_credits,
    update_patient,
)

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def _invalid(s, action: str) -> Response:
    details = {field: first_message(errors) for field, errors in s.errors.items()}
    logger.warning('%s: invalid data %s', action, details)
    return Response({'error': 'Dados inválidos', 'details': details}, status=status.HTTP_400_BAD_REQUEST)


def _error(e, code: int, action: str) -> Response:
    logger.warning('%s: %s', action, e.message)
    return Response({'error': e.message}, status=code)


def _from_tablet(request) -> bool:
    return is_ipad_user_agent(request.headers.get('User-Agent', '')) or request.data.get('isIpad') is True


@api_view(['GET', 'POST'])
def patients(request):
    if request.method == 'POST':
        serializer_cls = PatientTabletCreateSerializer if _from_tablet(request) else PatientCreateSerializer
        s = serializer_cls(data=request.data)
        if not s.is_valid():
            return _invalid(s, 'Error creating patient')
        return Response(create_patient(s.to_service()), status=status.HTTP_201_CREATED)

    q = PatientListQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    try:
        result = list_patients(
            page=q.validated_data['page'],
            limit=q.validated_data['limit'],
            sort_by=q.validated_data['sortBy'],
            sort_order=q.validated_data['sortOrder'],
            search=q.validated_data['search'],
        )
    except InvalidQueryError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST, 'Error listing patients')
    resp = Response(result)
    resp['Cache-Control'] = 'public, s-maxage=60, stale-while-revalidate=300'
    return resp


@api_view(['GET', 'PUT', 'DELETE'])
def patient_detail(request, id: str):
    if request.method == 'GET':
        p = get_patient(id)
        if p is None:
            return Response({'error': 'Paciente não encontrado'}, status=status.HTTP_404_NOT_FOUND)
        return Response(p)

    if request.method == 'PUT':
        s = PatientUpdateSerializer(data=request.data)
        if not s.is_valid():
            return _invalid(s, 'Error updating patient')
        try:
            return Response(update_patient(id, s.to_service()))
        except NotFoundError as e:
            return _error(e, status.HTTP_404_NOT_FOUND, 'Error updating patient')

    try:
        delete_patient(id)
    except NotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND, 'Error deleting patient')
    except BusinessRuleError as e:
        return _error(e, status.HTTP_409_CONFLICT, 'Error deleting patient')
    return Response({'message': 'Paciente excluído com sucesso'})


@api_view(['GET'])
def patient_search(request):
    # Short queries answer before the limit is looked at
    raw = request.query_params.get('q') or request.query_params.get('query') or ''
    if len(raw.strip()) < MIN_SEARCH_LENGTH:
        return Response([])

    q = PatientSearchQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    return Response(search_patients(raw, q.validated_data['limit']))


@api_view(['GET'])
def patient_stats(request):
    return Response(get_patient_stats())


@api_view(['GET'])
def patient_consultations(request, id: str):
    q = ConsultationListQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    try:
        result = list_consultations(
            page=q.validated_data['page'],
            limit=q.validated_data['limit'],
            sort_by=q.validated_data['sortBy'],
            sort_order=q.validated_data['sortOrder'],
            patient_id=id,
            status=q.validated_data.get('status'),
            paid=q.validated_data.get('paid'),
        )
    except InvalidQueryError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST, 'Error listing patient consultations')
    return Response(result)


@api_view(['POST'])
def patient_credits(request, id: str):
    s = CreditSaleSerializer(data=request.data)
    if not s.is_valid():
        return _invalid(s, 'Error selling credits')
    try:
        return Response(sell_credits(id, s.validated_data['quantity'], s.validated_data['unitPrice']))
    except NotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND, 'Error selling credits')
    except BusinessRuleError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST, 'Error selling credits')
