# reviews/models.py
#
# Purpose:
# - A requester's rating of a completed order.
#
# Design:
# - author_id is the same opaque identity orders use (a username).
# - DELETE is a soft delete; a deleted review no longer blocks a new one.
#
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from orders.models import Order


class Review(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="reviews")
    author_id = models.CharField(max_length=128, db_index=True)
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    images = models.JSONField(default=list, blank=True)  # list of image URLs
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(condition=Q(rating__gte=1, rating__lte=5), name="review_rating_1_to_5"),
            models.UniqueConstraint(
                fields=["order", "author_id"],
                condition=Q(is_deleted=False),
                name="one_live_review_per_order_author",
            ),
        ]

    def __str__(self):
        return f"Review for order #{self.order_id} (rating {self.rating})"
