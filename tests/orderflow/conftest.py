import pytest


@pytest.fixture(scope="session")
def _orderflow_domain():
    """Initialize the orderflow domain once per session."""
    from orderflow.domain import orderflow

    orderflow.init()
    return orderflow


@pytest.fixture(scope="session", autouse=True)
def setup_db(_orderflow_domain):
    from orderflow.utils.db import drop_db, setup_db

    setup_db(_orderflow_domain)

    yield

    drop_db(_orderflow_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_orderflow_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _orderflow_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    from orderflow.payment import reset_payment_ledger
    from orderflow.sink import reset_event_sink
    from orderflow.workflow.cache import reset_workflow_cache

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()

    reset_workflow_cache()
    reset_payment_ledger()
    reset_event_sink()
    ctx.pop()


@pytest.fixture()
def seeded():
    """Default statuses, transitions and parameters."""
    from orderflow.workflow.seed import seed_workflow

    return seed_workflow()


@pytest.fixture()
def ledger():
    from orderflow.payment import set_payment_ledger
    from orderflow.payment.fake_adapter import FakePaymentLedger

    fake = FakePaymentLedger()
    set_payment_ledger(fake)
    return fake


@pytest.fixture()
def sink():
    from orderflow.sink import set_event_sink
    from orderflow.sink.fake_adapter import RecordingEventSink

    recording = RecordingEventSink()
    set_event_sink(recording)
    return recording
