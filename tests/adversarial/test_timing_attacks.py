"""
Adversarial tests for timing oracle attack prevention.

Verifies that sign-in failures for an unknown email and for a wrong
password take statistically similar time, so response timing does not
reveal which emails have accounts.

Defense: sign-in always runs a bcrypt check, against a fixed dummy hash
when no account matches the email.
"""

import statistics
import time

import pytest

from src.adapters.repository.postgres import PostgresAccountRepository
from src.domain.authentication import Authenticator, TokenService
from src.domain.exceptions import InvalidCredentials
from src.domain.models import ApprovalStatus, NewAccount, Role
from src.domain.passwords import hash_password
from tests.helpers import TEST_SECRET


@pytest.mark.adversarial
class TestSignInTiming:
    """
    Verify constant-time behavior prevents account enumeration.

    Stored hashes use cost 10, the same cost as the dummy hash, so both
    failure paths pay for one full bcrypt check.
    """

    # Number of measurements per scenario
    ITERATIONS = 10

    # Maximum allowed difference in mean times
    MAX_VARIANCE_RATIO = 0.20

    @pytest.fixture
    def authenticator(self, repository: PostgresAccountRepository) -> Authenticator:
        repository.create(
            NewAccount(
                email="valid@example.com",
                password_hash=hash_password("password123", rounds=10),
                name="Valid",
                surname="User",
                approval_status=ApprovalStatus.APPROVED,
                role=Role.USER,
                is_verified=True,
            )
        )
        return Authenticator(repository=repository, tokens=TokenService(secret_key=TEST_SECRET))

    def measure_time(self, authenticator: Authenticator, email: str, password: str) -> float:
        start = time.perf_counter()
        with pytest.raises(InvalidCredentials):
            authenticator.sign_in(email, password)
        return time.perf_counter() - start

    def assert_timing_similar(
        self,
        times1: list[float],
        times2: list[float],
        label1: str,
        label2: str,
    ) -> None:
        """Assert two timing distributions are statistically similar."""
        mean1 = statistics.mean(times1)
        mean2 = statistics.mean(times2)

        ratio = abs(mean1 - mean2) / max(mean1, mean2)

        assert ratio < self.MAX_VARIANCE_RATIO, (
            f"Timing difference too large between {label1} and {label2}: "
            f"{ratio:.1%} (threshold: {self.MAX_VARIANCE_RATIO:.0%})\n"
            f"  {label1}: mean={mean1:.4f}s, stdev={statistics.stdev(times1):.4f}s\n"
            f"  {label2}: mean={mean2:.4f}s, stdev={statistics.stdev(times2):.4f}s"
        )

    def test_unknown_email_timing_similar_to_wrong_password(
        self, authenticator: Authenticator
    ) -> None:
        # Warm up connections and bcrypt
        self.measure_time(authenticator, "warmup@example.com", "password123")

        unknown_times = [
            self.measure_time(authenticator, f"nobody{i}@example.com", "password123")
            for i in range(self.ITERATIONS)
        ]
        wrong_password_times = [
            self.measure_time(authenticator, "valid@example.com", f"wrong-password-{i}")
            for i in range(self.ITERATIONS)
        ]

        self.assert_timing_similar(
            unknown_times, wrong_password_times, "unknown_email", "wrong_password"
        )
