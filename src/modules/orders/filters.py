import django_filters

from modules.orders.constants import OrderStatus, OrderType, ServiceType
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    service_type = django_filters.ChoiceFilter(choices=ServiceType.choices)
    order_type = django_filters.ChoiceFilter(choices=OrderType.choices)
    queue_date = django_filters.DateFilter(field_name="queue_date")
    student = django_filters.UUIDFilter(field_name="student_id")
    reference = django_filters.CharFilter(
        field_name="reference_number", lookup_expr="iexact"
    )
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "service_type",
            "order_type",
            "queue_date",
            "student",
            "reference",
            "start_date",
            "end_date",
        ]
