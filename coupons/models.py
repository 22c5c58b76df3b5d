# coupons/models.py
#
# Purpose:
# - Discount codes managed by marketplace admins.
#
# Design highlights:
# - code is unique among non-deleted coupons (checked by the API; a deleted
#   coupon's code can be reused).
# - Deleting only sets is_deleted so orders that used the code keep pointing
#   at something meaningful.
# - The discount itself is computed by coupons.services.coupon_validator.
#
from django.core.validators import MinValueValidator
from django.db import models


class Coupon(models.Model):
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=50, db_index=True)
    max_discount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    min_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    valid_from = models.DateTimeField()
    valid_till = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.code} (up to {self.max_discount})"
