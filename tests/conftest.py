import os
from typing import Any, Iterator

import pytest
import requests

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: ?token=tok", response=self)

    def json(self) -> Any:
        if self._text is not None:
            raise ValueError(f"Expecting value: {self._text[:20]!r}")
        return self._payload


class FakeSession:
    """Registra las llamadas GET y devuelve respuestas preparadas."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


@pytest.fixture(scope="session")
def qapp() -> Iterator[QCoreApplication]:
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
