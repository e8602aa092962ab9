import json

import fitz  # PyMuPDF
import pytest

from app import create_app
from config import Settings
from errors import InferenceError

MINIMAL_EVALUATION = (
    '{"glow":[],"grow":[],"action_items":[],'
    '"claim":{"points":1,"commentary":"x"},'
    '"support":{"points":1,"commentary":"x"},'
    '"organization":{"points":1,"commentary":"x"},'
    '"graphics":{"points":1,"commentary":"x"},'
    '"summary":"s"}'
)


class FakeInferenceClient:
    """Records every message it receives and answers from a script"""

    def __init__(self, final_response=MINIMAL_EVALUATION, fail_on_call=None):
        self.calls = []
        self.final_response = final_response
        self.fail_on_call = fail_on_call

    def complete(self, content):
        self.calls.append(content)
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise InferenceError("service unavailable")
        if isinstance(content, str):
            return self.final_response
        return f"analysis {len(self.calls)}"

    @property
    def group_calls(self):
        return [c for c in self.calls if isinstance(c, list)]

    @property
    def aggregation_calls(self):
        return [c for c in self.calls if isinstance(c, str)]


def make_pdf(page_count: int) -> bytes:
    document = fitz.open()
    for number in range(page_count):
        page = document.new_page(width=200, height=200)
        page.insert_text((20, 40), f"Page {number + 1}")
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture
def fake_client():
    return FakeInferenceClient()


@pytest.fixture
def settings():
    return Settings(api_key="test-key", render_dpi=20)


@pytest.fixture
def app_factory(settings):
    def factory(client, **overrides):
        values = {**settings.__dict__, **overrides}
        app = create_app(Settings(**values), client)
        app.config["TESTING"] = True
        return app
    return factory


@pytest.fixture
def minimal_evaluation():
    return json.loads(MINIMAL_EVALUATION)
