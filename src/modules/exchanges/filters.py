import django_filters

from modules.exchanges.models import Exchange


class ExchangeFilter(django_filters.FilterSet):
    """Narrowing applied on top of the caller's role/status listing."""

    product = django_filters.CharFilter(
        field_name="items__product_id", distinct=True
    )
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__lte"
    )

    class Meta:
        model = Exchange
        fields = ["product", "start_date", "end_date"]
