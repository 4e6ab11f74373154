import django_filters


class CatalogFilter(django_filters.FilterSet):
    """Narrow priced child entries by their parent's name.

    Matching is a case-insensitive substring match on the trimmed term;
    a blank term leaves the queryset untouched.
    """

    parent_name = django_filters.CharFilter(method="filter_parent_name")

    def filter_parent_name(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(product__parent__name__icontains=term)
