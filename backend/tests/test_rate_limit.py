from dentalcare.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_login_is_limited_per_client():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)

    for _ in range(5):
        allowed, _ = limiter.hit("/api/v1/auth/login", "POST", "10.0.0.1:anonymous")
        assert allowed

    allowed, info = limiter.hit("/api/v1/auth/login", "POST", "10.0.0.1:anonymous")
    assert not allowed
    assert info["retry_after"] >= 1

    # a different client has its own window
    allowed, _ = limiter.hit("/api/v1/auth/login", "POST", "10.0.0.2:anonymous")
    assert allowed


def test_window_slides():
    clock = FakeClock()
    limiter = RateLimiter(limits={"/api/v1/expenses": (2, 60)}, clock=clock)

    assert limiter.hit("/api/v1/expenses", "POST", "a")[0]
    assert limiter.hit("/api/v1/expenses", "POST", "a")[0]
    assert not limiter.hit("/api/v1/expenses", "POST", "a")[0]

    clock.now += 61
    allowed, info = limiter.hit("/api/v1/expenses", "POST", "a")
    assert allowed
    assert info["remaining"] == 1


def test_reads_are_not_counted():
    limiter = RateLimiter(limits={"/api/v1/billing/invoices": (1, 60)})
    for _ in range(3):
        allowed, info = limiter.hit("/api/v1/billing/invoices", "GET", "a")
        assert allowed
        assert info is None


def test_unlisted_paths_use_default():
    limiter = RateLimiter(limits={}, default=(3, 60))
    assert limiter.limit_for("/api/v1/patients") == (3, 60)


def test_middleware_returns_429_when_enabled(client, monkeypatch):
    from dentalcare.core.config import settings
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)

    payload = {"username": "nobody", "password": "wrong-password"}
    codes = [client.post("/api/v1/auth/login", json=payload).status_code for _ in range(6)]

    assert codes[:5] == [401] * 5
    assert codes[5] == 429


def test_paths_under_one_prefix_share_a_window():
    limiter = RateLimiter(limits={"/api/v1/billing/invoices": (2, 60)}, clock=FakeClock())

    allowed = [
        limiter.hit(f"/api/v1/billing/invoices/{i}/cancel", "POST", "10.0.0.1:anonymous")[0]
        for i in range(10)
    ]
    assert allowed.count(True) == 2
    assert limiter.bucket_count == 1


def test_idle_buckets_are_swept():
    clock = FakeClock()
    limiter = RateLimiter(limits={}, default=(100, 60), clock=clock)
    limiter.SWEEP_EVERY = 3

    limiter.hit("/api/v1/patients", "POST", "a")
    limiter.hit("/api/v1/patients", "POST", "b")
    assert limiter.bucket_count == 2

    clock.now += 120
    limiter.hit("/api/v1/patients", "POST", "c")
    assert limiter.bucket_count == 1
