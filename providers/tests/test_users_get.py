# providers/tests/test_users_get.py
from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from catalog.models import Category, City, ServiceCategory
from providers.models import ProviderProfile, Review

User = get_user_model()


def make_provider(email, business_name, category=None, service_category=None, cities=(), ratings=()):
    account = User.objects.create_user(email=email, password="secret123", role_id=User.Role.PROVIDER)
    profile = ProviderProfile.objects.create(
        account=account,
        business_name=business_name,
        category=category,
        service_category=service_category,
        start_time="09:00",
        stop_time="17:00",
    )
    profile.workspaces.set(cities)
    for i, rating in enumerate(ratings):
        reviewer = User.objects.create_user(email=f"{email.split('@')[0]}-reviewer{i}@reviews.test", password="secret123")
        Review.objects.create(provider=profile, reviewer=reviewer, rating=rating)
    return account


class UserListTests(APITestCase):
    def setUp(self):
        self.url = reverse("user-list")
        self.admin = User.objects.create_user(email="admin@example.com", password="secret123", role_id=1)
        token = Token.objects.create(user=self.admin)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")

        self.events = Category.objects.create(name="Events")
        self.home = Category.objects.create(name="Home")
        self.photo = ServiceCategory.objects.create(name="Photography")
        self.athens = City.objects.create(name="Athens")
        self.patras = City.objects.create(name="Patras")

        self.p1 = make_provider(
            "alpha@example.com", "Alpha Studio", self.events, self.photo, [self.athens, self.patras], [5, 4]
        )
        self.p2 = make_provider("beta@example.com", "Beta Plumbing", self.home, None, [self.patras], [2])
        self.end_user = User.objects.create_user(
            email="user@example.com", password="secret123", email_verified_at=timezone.now()
        )

    def ids(self, resp):
        return [row["id"] for row in resp.data["data"]]

    def test_envelope_shape(self):
        resp = self.client.get(self.url, {"page": 1, "limit": 10})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        total = User.objects.count()
        self.assertEqual(resp.data["total"], total)
        self.assertEqual(resp.data["recordsTotal"], total)
        self.assertEqual(resp.data["recordsFiltered"], total)
        self.assertEqual(resp.data["meta"], {"current_page": 1, "last_page": 1, "per_page": 10})

    def test_provider_columns_are_flattened(self):
        resp = self.client.get(self.url, {"search": "alpha@"})
        row = resp.data["data"][0]
        sp = row["service_provider"]
        self.assertEqual(sp["business_name"], "Alpha Studio")
        self.assertEqual(sp["category"], "Events")
        self.assertEqual(sp["service_category"], "Photography")
        self.assertEqual(sp["rating"], 4.5)
        self.assertEqual(sp["workspaces"], "Athens, Patras")
        self.assertEqual(sp["start_time"], "09:00")

    def test_non_provider_has_null_service_provider(self):
        resp = self.client.get(self.url, {"search": "user@"})
        self.assertEqual(self.ids(resp), [self.end_user.id])
        self.assertIsNone(resp.data["data"][0]["service_provider"])

    def test_default_order_is_newest_first(self):
        resp = self.client.get(self.url)
        ids = self.ids(resp)
        self.assertEqual(ids, sorted(ids, reverse=True))

    def test_filter_by_role(self):
        resp = self.client.get(self.url, {"role": 2})
        self.assertEqual(sorted(self.ids(resp)), sorted([self.p1.id, self.p2.id]))

    def test_filter_by_category_and_service_category(self):
        resp = self.client.get(self.url, {"category": self.home.id})
        self.assertEqual(self.ids(resp), [self.p2.id])
        resp = self.client.get(self.url, {"service_category": self.photo.id})
        self.assertEqual(self.ids(resp), [self.p1.id])

    def test_filter_by_workstation(self):
        resp = self.client.get(self.url, {"workstation": self.athens.id})
        self.assertEqual(self.ids(resp), [self.p1.id])
        resp = self.client.get(self.url, {"workspace": self.patras.id})
        self.assertEqual(sorted(self.ids(resp)), sorted([self.p1.id, self.p2.id]))

    def test_filter_by_rating_range(self):
        resp = self.client.get(self.url, {"rating_min": "3"})
        self.assertEqual(self.ids(resp), [self.p1.id])
        resp = self.client.get(self.url, {"rating_max": "3"})
        self.assertEqual(self.ids(resp), [self.p2.id])

    def test_filter_verified(self):
        resp = self.client.get(self.url, {"verified": "yes"})
        self.assertEqual(self.ids(resp), [self.end_user.id])

    def test_empty_filter_values_are_ignored(self):
        resp = self.client.get(self.url, {"role": "", "category": ""})
        self.assertEqual(resp.data["total"], User.objects.count())

    def test_non_numeric_filter_400(self):
        resp = self.client.get(self.url, {"role": "abc"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("role", resp.data)

    def test_search_email_business_and_id(self):
        resp = self.client.get(self.url, {"search": "plumbing"})
        self.assertEqual(self.ids(resp), [self.p2.id])
        resp = self.client.get(self.url, {"search": str(self.end_user.id)})
        self.assertIn(self.end_user.id, self.ids(resp))

    def test_filtered_total_vs_records_total(self):
        resp = self.client.get(self.url, {"role": 2})
        self.assertEqual(resp.data["total"], 2)
        self.assertEqual(resp.data["recordsFiltered"], 2)
        self.assertEqual(resp.data["recordsTotal"], User.objects.count())

    def test_sort_by_email(self):
        resp = self.client.get(self.url, {"sort": "email", "direction": "asc"})
        emails = [row["email"] for row in resp.data["data"]]
        self.assertEqual(emails, sorted(emails))
        resp = self.client.get(self.url, {"sort": "email", "direction": "desc"})
        emails = [row["email"] for row in resp.data["data"]]
        self.assertEqual(emails, sorted(emails, reverse=True))

    def test_sort_by_rating(self):
        resp = self.client.get(self.url, {"role": 2, "sort": "rating", "direction": "desc"})
        self.assertEqual(self.ids(resp), [self.p1.id, self.p2.id])

    def test_invalid_sort_400(self):
        resp = self.client.get(self.url, {"sort": "password"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sort", resp.data)
        resp = self.client.get(self.url, {"sort": "email", "direction": "up"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("direction", resp.data)

    def test_requires_admin(self):
        token = Token.objects.create(user=self.end_user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_requires_auth(self):
        self.client.credentials()
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


class UserPaginationTests(APITestCase):
    def setUp(self):
        self.url = reverse("user-list")
        self.admin = User.objects.create_user(email="admin@example.com", password="secret123", role_id=1)
        token = Token.objects.create(user=self.admin)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
        for i in range(22):
            User.objects.create_user(email=f"user{i:02d}@example.com", password="secret123")

    def test_last_page_holds_remainder(self):
        resp = self.client.get(self.url, {"page": 3, "limit": 10})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total"], 23)
        self.assertEqual(len(resp.data["data"]), 3)
        self.assertEqual(resp.data["meta"]["current_page"], 3)
        self.assertEqual(resp.data["meta"]["last_page"], 3)

    def test_pages_do_not_overlap(self):
        seen = []
        for page in (1, 2, 3):
            resp = self.client.get(self.url, {"page": page, "limit": 10})
            seen.extend(row["id"] for row in resp.data["data"])
        self.assertEqual(len(seen), 23)
        self.assertEqual(len(set(seen)), 23)

    def test_legacy_start_length(self):
        resp = self.client.get(self.url, {"start": 20, "length": 10})
        self.assertEqual(len(resp.data["data"]), 3)
        self.assertEqual(resp.data["meta"]["current_page"], 3)

    def test_without_pagination_returns_everything(self):
        resp = self.client.get(self.url)
        self.assertEqual(len(resp.data["data"]), 23)
        self.assertEqual(resp.data["meta"]["last_page"], 1)

    def test_limit_is_capped(self):
        resp = self.client.get(self.url, {"page": 1, "limit": 500})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("limit", resp.data)

    def test_page_zero_400(self):
        resp = self.client.get(self.url, {"page": 0, "limit": 10})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("page", resp.data)
