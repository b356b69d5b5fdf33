"""End-to-end tests for the POS HTTP API."""

from __future__ import annotations

import sqlite3
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

from pos_api.config import Settings
from pos_api.database import Database
from pos_api.service import LIVENESS_MESSAGE, create_app
from pos_api.tokens import TokenIssuer

SECRET = "service-tests-signing-secret-0123456789"


class ServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tempdir = tempfile.TemporaryDirectory()
        db_path = Path(self._tempdir.name) / "pos.sqlite3"
        self.settings = Settings(
            database_path=db_path,
            token_secret=SECRET,
            token_ttl=timedelta(hours=1),
            password_min_length=6,
        )
        self.database = Database(db_path)
        self.app = create_app(self.settings, database=self.database)
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()
        self._tempdir.cleanup()

    def _register(self, email: str = "a@x.com", password: str = "secret"):
        return self.client.post("/api/users/register", json={"email": email, "password": password})

    def test_liveness(self) -> None:
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, LIVENESS_MESSAGE)
        self.assertTrue(response.headers["content-type"].startswith("text/plain"))

    def test_register_returns_public_fields_only(self) -> None:
        response = self._register()
        self.assertEqual(response.status_code, 201, response.text)
        payload = response.json()
        self.assertEqual(set(payload), {"id", "email", "created_at"})
        self.assertEqual(payload["email"], "a@x.com")
        self.assertNotIn("password", response.text)

    def test_register_short_password_is_rejected(self) -> None:
        response = self._register(password="abc")
        self.assertEqual(response.status_code, 400)
        self.assertIn("at least 6", response.json()["detail"])

    def test_register_missing_fields_is_rejected(self) -> None:
        response = self.client.post("/api/users/register", json={"email": "a@x.com"})
        self.assertEqual(response.status_code, 400)

    def test_register_duplicate_is_rejected(self) -> None:
        self.assertEqual(self._register().status_code, 201)
        response = self._register()
        self.assertEqual(response.status_code, 400)
        self.assertIn("already exists", response.json()["detail"])

    def test_malformed_body_is_bad_request(self) -> None:
        response = self.client.post(
            "/api/users/register",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)

    def test_login_issues_token_for_user(self) -> None:
        user_id = self._register().json()["id"]
        response = self.client.post(
            "/api/users/login", json={"email": "a@x.com", "password": "secret"}
        )
        self.assertEqual(response.status_code, 200, response.text)
        token = response.json()["token"]
        self.assertEqual(TokenIssuer(SECRET).verify(token), user_id)

    def test_login_failures_share_one_generic_message(self) -> None:
        self._register()
        wrong_password = self.client.post(
            "/api/users/login", json={"email": "a@x.com", "password": "wrong-password"}
        )
        unknown_email = self.client.post(
            "/api/users/login", json={"email": "b@x.com", "password": "secret"}
        )
        self.assertEqual(wrong_password.status_code, 400)
        self.assertEqual(unknown_email.status_code, 400)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.json()["detail"], "Invalid email or password")

    def test_current_user_requires_valid_token(self) -> None:
        self.assertEqual(self.client.get("/api/users/me").status_code, 401)

        invalid = self.client.get("/api/users/me", headers={"Authorization": "Bearer nope"})
        self.assertEqual(invalid.status_code, 401)
        self.assertEqual(invalid.headers.get("www-authenticate"), "Bearer")

        self._register()
        token = self.client.post(
            "/api/users/login", json={"email": "a@x.com", "password": "secret"}
        ).json()["token"]
        me = self.client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200, me.text)
        self.assertEqual(me.json()["email"], "a@x.com")

    def test_business_units_on_both_prefixes(self) -> None:
        group = self.client.post("/business-units", json={"name": "Holding", "type": "group"})
        self.assertEqual(group.status_code, 201, group.text)
        group_id = group.json()["id"]

        company = self.client.post(
            "/api/business-units",
            json={"name": "Retail Co", "type": "company", "parent_id": group_id},
        )
        self.assertEqual(company.status_code, 201, company.text)
        self.assertEqual(company.json()["parent_id"], group_id)

        branch = self.client.post(
            "/api/business-units",
            json={"name": "Downtown", "type": "branch", "parentId": company.json()["id"]},
        )
        self.assertEqual(branch.status_code, 201, branch.text)

        for path in ("/business-units", "/api/business-units"):
            listing = self.client.get(path)
            self.assertEqual(listing.status_code, 200)
            ids = [unit["id"] for unit in listing.json()]
            self.assertEqual(ids, sorted(ids))
            self.assertEqual(len(ids), 3)

    def test_business_unit_validation(self) -> None:
        missing = self.client.post("/business-units", json={"name": "Holding"})
        self.assertEqual(missing.status_code, 400)

        bad_type = self.client.post("/business-units", json={"name": "Kiosk", "type": "franchise"})
        self.assertEqual(bad_type.status_code, 400)

    def test_business_unit_self_reference_is_rejected(self) -> None:
        response = self.client.post(
            "/business-units", json={"name": "Loop", "type": "group", "parent_id": 1}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get("/business-units").json(), [])

    def test_register_overlong_password_is_rejected(self) -> None:
        response = self._register(email="long@x.com", password="p" * 5000)
        self.assertEqual(response.status_code, 400, response.text)
        self.assertIn("at most", response.json()["detail"])

        login = self.client.post(
            "/api/users/login", json={"email": "long@x.com", "password": "p" * 5000}
        )
        self.assertEqual(login.status_code, 400)
        self.assertEqual(login.json()["detail"], "Invalid email or password")

    def test_business_unit_parent_id_out_of_range_is_rejected(self) -> None:
        for parent_id in (2**70, 0, -1):
            response = self.client.post(
                "/business-units",
                json={"name": "Big", "type": "group", "parent_id": parent_id},
            )
            self.assertEqual(response.status_code, 400, response.text)
            self.assertIn("parent_id", response.json()["detail"])
        self.assertEqual(self.client.get("/business-units").json(), [])

    def test_expired_token_is_unauthorized(self) -> None:
        user_id = self._register().json()["id"]
        stale = TokenIssuer(
            SECRET, clock=lambda: datetime.now(timezone.utc) - timedelta(hours=2)
        )
        response = self.client.get(
            "/api/users/me", headers={"Authorization": f"Bearer {stale.issue(user_id)}"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"detail": "Token expired"})
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

    def test_storage_failure_returns_generic_500(self) -> None:
        with mock.patch.object(
            self.database,
            "list_business_units",
            side_effect=sqlite3.OperationalError("database is locked"),
        ):
            response = self.client.get("/business-units")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Internal server error"})

        with mock.patch.object(
            self.database,
            "get_user_by_email",
            side_effect=sqlite3.OperationalError("database is locked"),
        ):
            response = self._register()
        self.assertEqual(response.status_code, 500)
        self.assertNotIn("locked", response.text)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
