"""
Consultation endpoints.

Each view resolves its query/body through a serializer, calls one
service function and returns the result unchanged.  Not-found and
business-rule errors are mapped here; anything else falls through to
the unified exception handler (500).
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.serializers.consultations import (
    ConsultationCreateSerializer,
    ConsultationListQuerySerializer,
    ConsultationPatientSearchQuerySerializer,
    ConsultationUpdateSerializer,
    present,
)
from core.services.consultations import (
    create_consultation,
    delete_consultation,
    finalize_consultation,
    get_active_consultation,
    get_consultation,
    get_consultation_stats,
    list_consultations,
    process_consultation_payment,
    search_patients_for_consultations,
    update_consultation,
)
from core.services.errors import BusinessRuleError, InvalidQueryError, NotFoundError

logger = logging.getLogger(__name__)


def _not_found(e: NotFoundError, action: str) -> Response:
    logger.warning('%s: %s', action, e.message)
    return Response({'error': e.message}, status=status.HTTP_404_NOT_FOUND)


def _bad_request(e, action: str) -> Response:
    logger.warning('%s: %s', action, e.message)
    return Response({'error': e.message}, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
def consultations(request):
    if request.method == 'POST':
        s = ConsultationCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            c = create_consultation(s.validated_data['patientId'], s.validated_data.get('price'))
        except NotFoundError as e:
            return _not_found(e, 'Error creating consultation')
        except BusinessRuleError as e:
            return _bad_request(e, 'Error creating consultation')
        return Response(c, status=status.HTTP_201_CREATED)

    q = ConsultationListQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    try:
        result = list_consultations(
            page=q.validated_data['page'],
            limit=q.validated_data['limit'],
            sort_by=q.validated_data['sortBy'],
            sort_order=q.validated_data['sortOrder'],
            patient_id=q.validated_data.get('patientId'),
            status=q.validated_data.get('status'),
            paid=q.validated_data.get('paid'),
        )
    except InvalidQueryError as e:
        return _bad_request(e, 'Error listing consultations')
    resp = Response(result)
    resp['Cache-Control'] = 'public, s-maxage=30, stale-while-revalidate=180'
    return resp


@api_view(['GET', 'PUT', 'DELETE'])
def consultation_detail(request, id: str):
    if request.method == 'GET':
        c = get_consultation(id)
        if c is None:
            return Response({'error': 'Consulta não encontrada'}, status=status.HTTP_404_NOT_FOUND)
        return Response(c)

    if request.method == 'PUT':
        s = ConsultationUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            return Response(update_consultation(id, s.to_service()))
        except NotFoundError as e:
            return _not_found(e, 'Error updating consultation')
        except InvalidQueryError as e:
            return _bad_request(e, 'Error updating consultation')

    try:
        delete_consultation(id)
    except NotFoundError as e:
        return _not_found(e, 'Error deleting consultation')
    except BusinessRuleError as e:
        return _bad_request(e, 'Error deleting consultation')
    return Response({'message': 'Consulta excluída com sucesso'})


@api_view(['POST'])
def consultation_finalize(request, id: str):
    try:
        return Response(finalize_consultation(id))
    except NotFoundError as e:
        return _not_found(e, 'Error finalizing consultation')


@api_view(['POST'])
def consultation_payment(request, id: str):
    try:
        return Response(process_consultation_payment(id))
    except NotFoundError as e:
        return _not_found(e, 'Error processing consultation payment')


@api_view(['GET'])
def consultation_stats(request):
    return Response(get_consultation_stats())


@api_view(['GET'])
def consultation_search_patients(request):
    q = ConsultationPatientSearchQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    patients = search_patients_for_consultations(q.validated_data['q'], q.validated_data['limit'])
    return Response({'patients': patients})


@api_view(['GET'])
def patient_active_consultation(request, id: str):
    c = get_active_consultation(id)
    if c is None:
        return Response({'error': 'Nenhuma consulta ativa encontrada'}, status=status.HTTP_404_NOT_FOUND)
    return Response(c)
