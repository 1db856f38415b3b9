import threading
import unittest

from autosched.errors import RateLimitError
from autosched.ratelimit import FixedWindowRateLimiter, client_identity


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestFixedWindowRateLimiter(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.limiter = FixedWindowRateLimiter(3, 60, clock=self.clock)

    def test_quota_then_reject(self):
        self.assertEqual([self.limiter.consume("1.2.3.4").remaining for _ in range(3)], [2, 1, 0])
        with self.assertRaises(RateLimitError) as ctx:
            self.limiter.consume("1.2.3.4")
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.retry_after, 60)

    def test_identities_are_independent(self):
        for _ in range(3):
            self.limiter.consume("a")
        self.assertEqual(self.limiter.consume("b").remaining, 2)

    def test_window_resets(self):
        for _ in range(3):
            self.limiter.consume("a")
        self.clock.now += 30
        with self.assertRaises(RateLimitError) as ctx:
            self.limiter.consume("a")
        self.assertEqual(ctx.exception.retry_after, 30)
        self.clock.now += 30
        self.assertEqual(self.limiter.consume("a").remaining, 2)

    def test_cost(self):
        self.assertEqual(self.limiter.consume("a", cost=2).remaining, 1)
        with self.assertRaises(RateLimitError):
            self.limiter.consume("a", cost=2)
        # a rejected request does not use quota
        self.assertEqual(self.limiter.consume("a").remaining, 0)

    def test_concurrent_consumers_never_exceed_quota(self):
        limiter = FixedWindowRateLimiter(50, 60, clock=self.clock)
        allowed = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                try:
                    limiter.consume("shared")
                except RateLimitError:
                    continue
                with lock:
                    allowed.append(1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(allowed), 50)

    def test_invalid_config(self):
        with self.assertRaises(ValueError):
            FixedWindowRateLimiter(0, 60)
        with self.assertRaises(ValueError):
            FixedWindowRateLimiter(1, 0)


class TestClientIdentity(unittest.TestCase):
    def test_first_forwarded_address(self):
        headers = {"x-forwarded-for": " 203.0.113.7 , 10.0.0.1", "x-real-ip": "10.0.0.2"}
        self.assertEqual(client_identity(headers), "203.0.113.7")

    def test_header_priority(self):
        headers = {"x-client-ip": "198.51.100.1", "cf-connecting-ip": "198.51.100.2"}
        self.assertEqual(client_identity(headers), "198.51.100.2")

    def test_fallbacks(self):
        self.assertEqual(client_identity({}, fallback="127.0.0.1"), "127.0.0.1")
        self.assertEqual(client_identity({"x-forwarded-for": ""}), "0.0.0.0")


if __name__ == "__main__":
    unittest.main()
