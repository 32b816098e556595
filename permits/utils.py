from django.db.models.functions import Length
from django.utils import timezone


def next_reference_number(queryset, field, prefix):
    """
    Returns the next reference in the series PREFIX/YEAR/NNNN for the current year.

    The serial restarts at 1 every year and widens past four digits when
    needed. Callers run this inside the same transaction that saves the new
    number.
    """
    year = timezone.localtime().year
    series = f"{prefix}/{year}/"
    # Longer serials sort after shorter ones: .../10000 follows .../9999
    last = (
        queryset.filter(**{f"{field}__startswith": series})
        .order_by(Length(field).desc(), f"-{field}")
        .values_list(field, flat=True)
        .first()
    )

    next_serial = 1
    if last:
        try:
            next_serial = int(last.rsplit('/', 1)[-1]) + 1
        except ValueError:
            next_serial = queryset.filter(**{f"{field}__startswith": series}).count() + 1

    return f"{series}{next_serial:04d}"
