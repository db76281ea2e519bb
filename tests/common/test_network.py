from __future__ import annotations

import httpx

from prefect_attendance.common.network import is_online, wait_for_online


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_online_when_first_probe_answers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, str(request.url)))
        return httpx.Response(204)

    assert is_online(urls=["https://a.example/", "https://b.example/"], client=_client(handler)) is True
    assert seen == [("HEAD", "https://a.example/")]


def test_falls_back_to_next_probe_and_any_status_counts():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "a.example":
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(503)

    assert is_online(urls=["https://a.example/", "https://b.example/"], client=_client(handler)) is True


def test_offline_when_every_probe_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timeout", request=request)

    assert is_online(urls=["https://a.example/", "https://b.example/"], client=_client(handler)) is False


def test_wait_for_online_polls_until_success():
    answers = iter([False, False, True])
    now = [0.0]
    sleeps = []

    def sleep(seconds):
        sleeps.append(seconds)
        now[0] += seconds

    assert wait_for_online(10, interval=2, probe=lambda: next(answers), sleep=sleep, clock=lambda: now[0]) is True
    assert sleeps == [2, 2]


def test_wait_for_online_gives_up_after_timeout():
    now = [0.0]

    def sleep(seconds):
        now[0] += seconds

    assert wait_for_online(5, interval=2, probe=lambda: False, sleep=sleep, clock=lambda: now[0]) is False
    assert now[0] == 6
