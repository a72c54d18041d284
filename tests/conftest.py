import pytest

from sitecrawl.crawler.config import CrawlConfig


SEED_URL = "https://example.com/"


class FakeResponse:
    def __init__(self, status_code=200, body="", *, url=None, content_type="text/html; charset=utf-8"):
        self.status_code = status_code
        self.text = body
        self.content = body.encode("utf-8")
        self.url = url
        self.headers = {"Content-Type": content_type} if content_type else {}


class FakeSession:
    """Stands in for `requests.Session`, answering GETs from a URL route table.

    A route value may be a FakeResponse, an exception instance to raise, or a
    list of either consumed one per call (the last entry repeats).
    Unrouted URLs answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.closed = False

    def get(self, url, headers=None, timeout=None, allow_redirects=True):
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, "", url=url)
        if isinstance(route, list):
            entry = route.pop(0) if len(route) > 1 else route[0]
        else:
            entry = route
        if isinstance(entry, BaseException):
            raise entry
        if entry.url is None:
            entry.url = url
        return entry

    def calls_to(self, url):
        return [call for call in self.calls if call == url]

    def close(self):
        self.closed = True


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def html_page(title, *hrefs, body=""):
    links = "\n".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1><p>{body or 'Some page text for ' + title + '.'}</p>"
        f"{links}</body></html>"
    )


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        payload = {
            "seed_url": SEED_URL,
            "delay_seconds": 0.0,
            "retry_backoff_seconds": 0.5,
            "timeout_seconds": 5.0,
            "output_dir": str(tmp_path / "results"),
        }
        payload.update(overrides)
        return CrawlConfig(**payload)

    return _make
