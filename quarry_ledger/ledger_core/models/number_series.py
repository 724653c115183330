from django.db import models

SCOPE_CHOICES = [
    ("journal", "Journal entry"),
    ("invoice", "Invoice"),
    ("prepayment", "Customer prepayment"),
]


class NumberSeries(models.Model):
    """
    Per (scope, prefix, year) counter behind every generated document number.
    Rows are locked with select_for_update() while a number is handed out.
    """

    scope = models.CharField(max_length=20, choices=SCOPE_CHOICES)
    # "INV", "ADV", "JE", ...
    prefix = models.CharField(max_length=20)
    year = models.PositiveIntegerField()
    # never behind the highest number already stored (see resync_series)
    next_number = models.PositiveIntegerField(default=1)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["scope", "prefix", "year"], name="uq_number_series_scope"
            )
        ]

    def __str__(self):
        return f"{self.scope}:{self.prefix}/{self.year} next={self.next_number}"
