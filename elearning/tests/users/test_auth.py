from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from ..factories import make_admin, make_user

"""
    Tests für die Token-Ausgabe über HTTP-only Cookies, das Erneuern des
    Access Tokens, den Logout und die Abfrage des eigenen Benutzers.
"""

PASSWORD = "Testpasswort123"


class TokenTests(TestCase):
    def setUp(self):
        self.user = make_user("testUser")
        self.client = APIClient()
        self.response = self.client.post(
            "/api/elearning/token/",
            {"username": "testUser", "password": PASSWORD},
            format="json",
        )

    def test_login_sets_cookies(self):
        self.assertEqual(self.response.status_code, status.HTTP_200_OK)
        self.assertIn("access_token", self.response.cookies)
        self.assertIn("refresh_token", self.response.cookies)
        self.assertTrue(self.response.cookies["access_token"]["httponly"])

    def test_no_JWT_in_body(self):
        body = self.response.json()
        self.assertNotIn("access", body)
        self.assertNotIn("refresh", body)
        self.assertEqual(body["role"], "STUDENT")

    def test_wrong_password(self):
        response = APIClient().post(
            "/api/elearning/token/",
            {"username": "testUser", "password": "falsch"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", response.json())

    def test_cookie_authenticates_requests(self):
        response = self.client.get("/api/elearning/users/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["username"], "testUser")
        self.assertEqual(response.json()["role"], "STUDENT")

    def test_refresh_token_success(self):
        response = self.client.post("/api/elearning/token/refresh/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access_token", response.cookies)

    def test_refresh_token_failure(self):
        self.client.cookies["refresh_token"] = "bad token"
        response = self.client.post("/api/elearning/token/refresh/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_token_missing(self):
        del self.client.cookies["refresh_token"]
        response = self.client.post("/api/elearning/token/refresh/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Refresh token not provided")

    def test_logout_blacklists_refresh_token(self):
        refresh = self.client.cookies["refresh_token"].value

        response = self.client.post("/api/elearning/users/logout/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get("/api/elearning/users/me/").status_code, 401)

        self.client.cookies["refresh_token"] = refresh
        response = self.client.post("/api/elearning/token/refresh/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class RoleTests(TestCase):
    def test_admin_role_in_me(self):
        client = APIClient()
        client.force_authenticate(make_admin())
        self.assertEqual(client.get("/api/elearning/users/me/").json()["role"], "ADMIN")

    def test_me_requires_login(self):
        response = APIClient().get("/api/elearning/users/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
