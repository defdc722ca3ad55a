import json
from unittest.mock import MagicMock

import pytest
import requests

import catalog_media.download_images as dl


def make_response(status_code=200, chunks=(b"image-bytes",)):
    response = MagicMock()
    response.status_code = status_code
    response.iter_content.return_value = iter(chunks)
    return response


def make_session(responses):
    """Session whose get() answers from a {url: response-or-exception} mapping."""
    session = MagicMock(spec=requests.Session)

    def _get(url, **kwargs):
        outcome = responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    session.get.side_effect = _get
    return session


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    calls = []
    monkeypatch.setattr(dl.time, "sleep", lambda seconds: calls.append(seconds))
    return calls


@pytest.fixture
def products_file(tmp_path):
    def _write(data, name="products.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
