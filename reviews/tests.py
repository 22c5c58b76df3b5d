from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from orders.state import OrderStatus
from orders.tests.utils import make_order
from .models import Review


class ReviewApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.jane = User.objects.create_user(username="jane", password="pass123")
        self.bob = User.objects.create_user(username="bob", password="pass123")
        self.order = make_order(status=OrderStatus.COMPLETED, requester_id="jane")
        self.client.force_authenticate(self.jane)

    def post_review(self, **overrides):
        data = {"order": self.order.pk, "rating": 5, "comment": "Crisp shirts."}
        data.update(overrides)
        return self.client.post("/api/reviews/", data, format="json")

    def test_review_completed_order(self):
        response = self.post_review(images=["https://img.example.com/1.jpg"])
        self.assertEqual(response.status_code, 201)
        review = Review.objects.get()
        self.assertEqual(review.author_id, "jane")
        self.assertEqual(review.images, ["https://img.example.com/1.jpg"])

    def test_rating_out_of_range(self):
        response = self.post_review(rating=6)
        self.assertEqual(response.status_code, 400)
        self.assertIn("rating", response.data["errors"])

    def test_order_must_be_completed(self):
        self.order.status = OrderStatus.IN_PROGRESS
        self.order.save()
        response = self.post_review()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "failed-precondition")

    def test_only_requester_reviews(self):
        self.client.force_authenticate(self.bob)
        response = self.post_review()
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Review.objects.exists())

    def test_one_review_per_order(self):
        self.post_review()
        response = self.post_review(rating=1)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "already-exists")

    def test_patch_allow_listed_fields_only(self):
        review_id = self.post_review().data["id"]
        other = make_order(status=OrderStatus.COMPLETED, requester_id="jane")

        response = self.client.patch(
            f"/api/reviews/{review_id}/",
            {"rating": 3, "author_id": "bob", "order": other.pk, "is_deleted": True},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        review = Review.objects.get(pk=review_id)
        self.assertEqual(review.rating, 3)
        self.assertEqual(review.author_id, "jane")
        self.assertEqual(review.order_id, self.order.pk)
        self.assertFalse(review.is_deleted)

    def test_cannot_touch_someone_elses_review(self):
        review_id = self.post_review().data["id"]
        self.client.force_authenticate(self.bob)

        self.assertEqual(self.client.patch(f"/api/reviews/{review_id}/", {"rating": 1}, format="json").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/reviews/{review_id}/").status_code, 404)

    def test_soft_delete_allows_new_review(self):
        review_id = self.post_review().data["id"]
        response = self.client.delete(f"/api/reviews/{review_id}/")
        self.assertEqual(response.status_code, 204)
        self.assertTrue(Review.objects.get(pk=review_id).is_deleted)

        self.assertEqual(self.post_review(rating=4).status_code, 201)

    def test_list_by_order_and_mine(self):
        self.post_review()
        self.client.force_authenticate(self.bob)

        by_order = self.client.get("/api/reviews/", {"order": self.order.pk})
        self.assertEqual(len(by_order.data), 1)

        mine = self.client.get("/api/reviews/")
        self.assertEqual(mine.data, [])
