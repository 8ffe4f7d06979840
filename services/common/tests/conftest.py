import pytest

from services.common.core.request_context import clear_request_id


@pytest.fixture(autouse=True)
def _clear_request_context():
    """Keep request ids from leaking between tests."""
    clear_request_id()
    yield
    clear_request_id()
