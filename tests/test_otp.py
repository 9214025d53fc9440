"""
Tests for OTP generation, verification and the expiry sweep.
"""
import asyncio
from datetime import timedelta

import pytest

from docspace.commands import purge_expired_otps
from docspace.db.base import utcnow
from docspace.domains.identity.entities import generate_otp_code
from tests.conftest import API


def _generate(client, email):
    return client.post(f"{API}/otp/generate", json={"email": email})


def _verify(client, email, otp):
    return client.post(f"{API}/otp/verify", json={"email": email, "otp": otp})


class TestOTPCode:
    def test_codes_are_six_digits(self):
        for _ in range(50):
            code = generate_otp_code()
            assert len(code) == 6
            assert code.isdigit()


class TestGenerate:
    def test_code_is_emailed_not_returned(self, client, email_outbox):
        response = _generate(client, "new@example.com")
        assert response.status_code == 200
        code = email_outbox.last_code("new@example.com")
        assert code not in response.text
        assert email_outbox.sent[-1]["subject"] == "Your OTP Code"

    def test_registered_email_is_rejected(self, client, register, email_outbox):
        register("alice@example.com")
        response = _generate(client, "alice@example.com")
        assert response.status_code == 409
        assert email_outbox.sent == []

    def test_regenerating_replaces_the_previous_code(self, client, email_outbox, monkeypatch):
        codes = iter(["111111", "222222"])
        monkeypatch.setattr(
            "docspace.domains.identity.services.generate_otp_code", lambda: next(codes)
        )
        _generate(client, "new@example.com")
        _generate(client, "new@example.com")

        assert _verify(client, "new@example.com", "111111").status_code == 400
        assert _verify(client, "new@example.com", "222222").status_code == 200


class TestVerify:
    def test_wrong_code_then_right_code_then_reuse(self, client, email_outbox):
        _generate(client, "new@example.com")
        code = email_outbox.last_code("new@example.com")
        wrong = "000000" if code != "000000" else "999999"

        response = _verify(client, "new@example.com", wrong)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid OTP"}

        response = _verify(client, "new@example.com", code)
        assert response.status_code == 200

        response = _verify(client, "new@example.com", code)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid OTP"}

    def test_expired_code_is_reported_as_invalid(self, client, settings, email_outbox):
        settings.otp_ttl_minutes = -1
        _generate(client, "new@example.com")
        code = email_outbox.last_code("new@example.com")

        response = _verify(client, "new@example.com", code)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid OTP"}

    def test_code_for_another_email_is_rejected(self, client, email_outbox):
        _generate(client, "one@example.com")
        code = email_outbox.last_code("one@example.com")
        assert _verify(client, "two@example.com", code).status_code == 400

    @pytest.mark.parametrize("otp", ["12345", "abcdef", "1234567", "", 12345])
    def test_malformed_code_is_invalid(self, client, email_outbox, otp):
        _generate(client, "new@example.com")
        response = _verify(client, "new@example.com", otp)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid OTP"}

    def test_numeric_code_is_accepted(self, client, email_outbox, monkeypatch):
        monkeypatch.setattr("docspace.domains.identity.services.generate_otp_code", lambda: "123456")
        _generate(client, "new@example.com")
        assert _verify(client, "new@example.com", 123456).status_code == 200


class TestSweep:
    def test_purge_removes_only_expired_codes(self, client, settings, email_outbox):
        settings.otp_ttl_minutes = -1
        _generate(client, "old1@example.com")
        _generate(client, "old2@example.com")
        settings.otp_ttl_minutes = 10
        _generate(client, "fresh@example.com")

        assert asyncio.run(purge_expired_otps(settings, dry_run=True)) == 2
        assert asyncio.run(purge_expired_otps(settings)) == 2
        assert asyncio.run(purge_expired_otps(settings)) == 0

        code = email_outbox.last_code("fresh@example.com")
        assert _verify(client, "fresh@example.com", code).status_code == 200

    def test_purge_ignores_the_used_flag(self, client, settings, email_outbox, monkeypatch):
        _generate(client, "used@example.com")
        _verify(client, "used@example.com", email_outbox.last_code("used@example.com"))
        _generate(client, "unused@example.com")

        later = utcnow() + timedelta(hours=1)
        monkeypatch.setattr("docspace.domains.identity.services.utcnow", lambda: later)
        assert asyncio.run(purge_expired_otps(settings)) == 2
