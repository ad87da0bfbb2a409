"""Tests for the Redis-backed reset-code store and the email sender."""
import smtplib
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest.mock import MagicMock, patch

from roleplay_tutor.core.config import settings
from roleplay_tutor.core.errors import EmailDeliveryError
from roleplay_tutor.infrastructure.redis import OtpStore, generate_otp, get_otp_store
from roleplay_tutor.services.otp import issue_password_reset_code, send_otp_email


class TestGenerateOtp:
    """Test generate_otp."""

    def test_six_digits(self):
        """Codes are six digits without a leading zero."""
        for _ in range(50):
            code = generate_otp()
            assert len(code) == 6
            assert code.isdigit()
            assert code[0] != "0"


class TestOtpStore:
    """Test OtpStore against the in-memory Redis fake."""

    def test_store_sets_ttl_and_lowercases(self, fake_redis):
        """Entries are keyed by lower-cased email with the configured TTL."""
        store = OtpStore(redis_client=fake_redis, ttl_minutes=10)

        assert store.store("Giulia@Example.com", "123456")

        assert fake_redis.ttls["otp:giulia@example.com"] == timedelta(minutes=10)
        assert fake_redis.entry("giulia@example.com") == {
            "code": "123456",
            "email": "giulia@example.com",
            "attempts": 0,
        }

    def test_correct_code_verifies_once(self, fake_redis):
        """A correct code succeeds and is then consumed."""
        store = OtpStore(redis_client=fake_redis)
        store.store("giulia@example.com", "123456")

        assert store.verify("GIULIA@example.com", "123456") is True
        assert store.verify("giulia@example.com", "123456") is False

    def test_wrong_code_counts_attempts(self, fake_redis):
        """Wrong codes bump the attempt counter and keep the TTL."""
        store = OtpStore(redis_client=fake_redis)
        store.store("giulia@example.com", "123456")

        assert store.verify("giulia@example.com", "000000") is False

        assert fake_redis.entry("giulia@example.com")["attempts"] == 1
        assert "otp:giulia@example.com" in fake_redis.ttls

    def test_attempts_exhausted_deletes_code(self, fake_redis):
        """After max attempts even the right code fails and the entry is gone."""
        store = OtpStore(redis_client=fake_redis, max_attempts=3)
        store.store("giulia@example.com", "123456")

        for _ in range(3):
            assert store.verify("giulia@example.com", "999999") is False

        assert store.verify("giulia@example.com", "123456") is False
        assert fake_redis.entry("giulia@example.com") is None

    def test_missing_code(self, fake_redis):
        """Verifying without a stored code fails."""
        assert OtpStore(redis_client=fake_redis).verify("nobody@example.com", "123456") is False

    def test_delete(self, fake_redis):
        """delete reports whether a code was removed."""
        store = OtpStore(redis_client=fake_redis)
        store.store("giulia@example.com", "123456")

        assert store.delete("giulia@example.com") is True
        assert store.delete("giulia@example.com") is False

    def test_redis_errors_are_contained(self):
        """Store operations report failure instead of raising."""
        broken = MagicMock()
        broken.setex.side_effect = ConnectionError("down")
        broken.transaction.side_effect = ConnectionError("down")

        store = OtpStore(redis_client=broken)

        assert store.store("giulia@example.com", "123456") is False
        assert store.verify("giulia@example.com", "123456") is False

    def test_verify_watches_the_entry_key(self, fake_redis):
        """The read, compare and attempt update run in one transaction on the code's key."""
        store = OtpStore(redis_client=fake_redis)
        store.store("giulia@example.com", "123456")

        store.verify("giulia@example.com", "000000")

        assert fake_redis.watched == ["otp:giulia@example.com"]

    def test_parallel_guesses_respect_attempt_limit(self, fake_redis):
        """Concurrent wrong guesses cannot spend more than the attempt budget."""
        store = OtpStore(redis_client=fake_redis, max_attempts=5)
        store.store("giulia@example.com", "123456")
        guesses = [f"{n:06d}" for n in range(20)] + ["123456"]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda guess: store.verify("giulia@example.com", guess), guesses))

        assert results.count(True) <= 1
        assert fake_redis.entry("giulia@example.com") is None

    def test_parallel_correct_code_accepted_once(self, fake_redis):
        """A code checked by several requests at once is accepted exactly once."""
        store = OtpStore(redis_client=fake_redis)
        store.store("giulia@example.com", "123456")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: store.verify("giulia@example.com", "123456"), range(10)))

        assert results.count(True) == 1

    def test_shared_store_recovers_after_outage(self, fake_redis):
        """A store created while Redis was down works once Redis is back."""
        with patch("roleplay_tutor.infrastructure.redis.get_redis_client", side_effect=[None, fake_redis]):
            store = get_otp_store()
            assert store.store("giulia@example.com", "123456") is False
            assert store.store("giulia@example.com", "123456") is True

        assert get_otp_store() is store
        assert store.verify("giulia@example.com", "123456") is True


class TestOtpEmail:
    """Test send_otp_email and issue_password_reset_code."""

    def test_logs_without_smtp(self):
        """Without SMTP settings nothing is sent."""
        with patch.object(settings, "smtp_host", None), \
             patch("roleplay_tutor.services.otp.smtplib.SMTP") as mock_smtp:
            send_otp_email("giulia@example.com", "123456")

        mock_smtp.assert_not_called()

    def test_sends_via_smtp(self):
        """With SMTP settings the message is sent after STARTTLS and login."""
        with patch.object(settings, "smtp_host", "smtp.example.com"), \
             patch.object(settings, "smtp_username", "user"), \
             patch.object(settings, "smtp_password", "secret"), \
             patch("roleplay_tutor.services.otp.smtplib.SMTP") as mock_smtp:
            send_otp_email("giulia@example.com", "123456")

        server = mock_smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "secret")
        message = server.send_message.call_args.args[0]
        assert message["To"] == "giulia@example.com"
        text_part = message.get_payload()[0]
        assert "123456" in text_part.get_payload(decode=True).decode("utf-8")

    def test_smtp_failure_raises(self):
        """SMTP errors surface as EmailDeliveryError."""
        with patch.object(settings, "smtp_host", "smtp.example.com"), \
             patch("roleplay_tutor.services.otp.smtplib.SMTP") as mock_smtp:
            mock_smtp.return_value.__enter__.return_value.send_message.side_effect = smtplib.SMTPException("rejected")

            with pytest.raises(EmailDeliveryError):
                send_otp_email("giulia@example.com", "123456")

    def test_issue_stores_and_sends(self, fake_redis):
        """A new code is stored and emailed."""
        with patch("roleplay_tutor.services.otp.send_otp_email") as mock_send:
            issue_password_reset_code("Giulia@example.com")

        stored = fake_redis.entry("giulia@example.com")
        mock_send.assert_called_once_with("Giulia@example.com", stored["code"])

    def test_issue_deletes_code_when_email_fails(self, fake_redis):
        """A code that could not be delivered is removed."""
        with patch("roleplay_tutor.services.otp.send_otp_email", side_effect=EmailDeliveryError("down")):
            with pytest.raises(EmailDeliveryError):
                issue_password_reset_code("giulia@example.com")

        assert fake_redis.entry("giulia@example.com") is None
