from django.core.validators import MinValueValidator
from django.db import models


class PricingModel(models.TextChoices):
    FLAT = "flat", "Flat rate"
    PER_ITEM = "per-item", "Per item"
    PER_KG = "per-kg", "Per kilogram"


class Service(models.Model):
    """
    Something a provider sells, e.g. "Wash & fold".

    Rules:
    - base_price must be > 0
    - names are unique per provider among non-deleted services (checked by the API)
    - only active, non-deleted services can be ordered
    - processing_time_hours seeds the order's processing estimate
    """
    provider_id = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    pricing_model = models.CharField(max_length=16, choices=PricingModel.choices)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    # e.g. [{"name": "Express", "price": "80.00"}]
    variations = models.JSONField(default=list, blank=True)
    image_key = models.CharField(max_length=255, blank=True)
    processing_time_hours = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["provider_id", "name"]

    def __str__(self):
        return f"{self.name} ({self.provider_id})"
