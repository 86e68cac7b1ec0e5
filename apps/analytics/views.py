from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .exceptions import AnalyticsServiceError
from .permissions import CanViewSalesReports
from .reports import (
    ReportFilters,
    ReportWindow,
    build_sales_report,
    load_cost_index,
    load_order_snapshots,
    snapshot_product_ids,
)
from .serializers import SalesReportQuerySerializer, SalesReportSerializer, ErrorSerializer


@extend_schema(
    parameters=[
        OpenApiParameter('period', OpenApiTypes.STR, description='Month period (YYYY-MM)'),
        OpenApiParameter('start_date', OpenApiTypes.DATE, description='First local date (YYYY-MM-DD)'),
        OpenApiParameter('end_date', OpenApiTypes.DATE, description='Last local date, inclusive'),
        OpenApiParameter('tz_offset', OpenApiTypes.INT, description='Minutes east of UTC', default=180),
        OpenApiParameter('status', OpenApiTypes.STR, description='processing or delivered'),
        OpenApiParameter('payment_method', OpenApiTypes.STR, description='Payment provider'),
        OpenApiParameter('sales_rep', OpenApiTypes.UUID, description='Sales rep id'),
        OpenApiParameter('branch', OpenApiTypes.STR, description="Branch id ('Unassigned' for none)"),
        OpenApiParameter('channel', OpenApiTypes.STR, description='pos, online or field'),
        OpenApiParameter('top_n', OpenApiTypes.INT, description='Products to rank', default=10),
    ],
    responses={
        200: SalesReportSerializer,
        400: ErrorSerializer,
    },
    description="Sales, COGS, margin and breakdowns for confirmed orders in a local date window.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewSalesReports])
def sales_report(request):
    """Sales report for the current user's scope - thin HTTP handler."""
    query_serializer = SalesReportQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    window = ReportWindow(
        start=params['start_date'],
        end=params['end_date'],
        tz_offset_minutes=params['tz_offset'],
    )
    filters = ReportFilters(
        status=params.get('status'),
        payment_method=params.get('payment_method'),
        sales_rep=params.get('sales_rep'),
        branch=params.get('branch'),
        channel=params.get('channel'),
    )

    try:
        snapshots = load_order_snapshots(request.user, window)
        report = build_sales_report(
            snapshots,
            load_cost_index(snapshot_product_ids(snapshots)),
            window,
            filters,
            top_n=params['top_n'],
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(SalesReportSerializer(report).data)
