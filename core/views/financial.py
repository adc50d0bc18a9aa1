from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.serializers.consultations import present
from core.serializers.financial import FinancialOverviewQuerySerializer, FinancialPatientSearchQuerySerializer
from core.services.financial import get_financial_overview, get_financial_stats, search_patients_for_financial

MIN_SEARCH_LENGTH = 2


@api_view(['GET'])
def financial_overview(request):
    """Paginated financial overview, or the aggregate stats with ``stats=true``."""
    if request.query_params.get('stats') == 'true':
        return Response(get_financial_stats())

    q = FinancialOverviewQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    result = get_financial_overview(
        page=q.validated_data['page'],
        limit=q.validated_data['limit'],
        sort_by=q.validated_data['sortBy'],
        sort_order=q.validated_data['sortOrder'],
        search=q.validated_data['search'],
    )
    return Response(result)


@api_view(['GET'])
def financial_search_patients(request):
    # Trivial prefixes never reach the database; note the bare list response.
    raw = request.query_params.get('q') or ''
    if len(raw.strip()) < MIN_SEARCH_LENGTH:
        return Response([])

    q = FinancialPatientSearchQuerySerializer(data=present(request.query_params))
    q.is_valid(raise_exception=True)
    return Response(search_patients_for_financial(q.validated_data['q'], q.validated_data['limit']))
