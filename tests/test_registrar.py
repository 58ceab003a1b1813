import pytest

from storefront.db.secrets import KeyValueSecretStore, MemorySecretStore
from storefront.device.registrar import DEVICE_ID_KEY, PUSH_TOKEN_KEY, DeviceRegistrar, IdentityState
from storefront.remote.errors import ServerError


class FakeBackend:
    def __init__(self, failures=0):
        self.failures = failures
        self.payloads = []

    async def register_device(self, payload):
        self.payloads.append(payload)
        if self.failures:
            self.failures -= 1
            raise ServerError("unavailable", status_code=503)


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture()
def sleep():
    return SleepRecorder()


@pytest.mark.asyncio
async def test_two_failures_then_success(sleep):
    client = FakeBackend(failures=2)
    registrar = DeviceRegistrar(client, MemorySecretStore(), sleep=sleep)
    result = await registrar.refresh_registration()

    assert result.success
    assert result.attempts == 3
    assert sleep.delays == [2.0, 4.0]
    assert len(client.payloads) == 3


@pytest.mark.asyncio
async def test_gives_up_after_three_failures(sleep):
    client = FakeBackend(failures=5)
    registrar = DeviceRegistrar(client, MemorySecretStore(), sleep=sleep)
    result = await registrar.refresh_registration()

    assert not result.success
    assert result.attempts == 3
    assert isinstance(result.error, ServerError)
    assert sleep.delays == [2.0, 4.0]
    assert len(client.payloads) == 3


@pytest.mark.asyncio
async def test_weak_identity_never_overrides_strong(sleep):
    client = FakeBackend()
    registrar = DeviceRegistrar(client, MemorySecretStore(), sleep=sleep)
    weak = registrar.device_id()

    await registrar.receive_push_credential(bytes([0xAB, 0x01, 0xFF]))
    assert registrar.state is IdentityState.STRONG
    assert client.payloads[-1]["token"] == "ab01ff"

    skipped = await registrar.register(weak)
    assert skipped.skipped
    assert len(client.payloads) == 1

    await registrar.refresh_registration()
    assert [p["token"] for p in client.payloads] == ["ab01ff", "ab01ff"]


@pytest.mark.asyncio
async def test_payload_shape(sleep):
    client = FakeBackend()
    registrar = DeviceRegistrar(client, MemorySecretStore(), device_name="Kitchen iPad", sleep=sleep)
    await registrar.refresh_registration()

    (payload,) = client.payloads
    assert payload == {
        "token": registrar.device_id(),
        "platform": "ios",
        "device_id": registrar.device_id(),
        "device_name": "Kitchen iPad",
        "apns_environment": "production",
    }


def test_identity_states():
    secrets = MemorySecretStore()
    registrar = DeviceRegistrar(FakeBackend(), secrets)
    assert registrar.state is IdentityState.NO_IDENTITY
    registrar.device_id()
    assert registrar.state is IdentityState.WEAK
    secrets.set(PUSH_TOKEN_KEY, "abc")
    assert registrar.state is IdentityState.STRONG


def test_device_id_is_stable_across_instances(engine):
    first = DeviceRegistrar(FakeBackend(), KeyValueSecretStore(engine)).device_id()
    second = DeviceRegistrar(FakeBackend(), KeyValueSecretStore(engine)).device_id()
    assert first == second
    assert KeyValueSecretStore(engine).get(DEVICE_ID_KEY) == first


@pytest.mark.asyncio
async def test_push_credential_survives_relaunch(engine, sleep):
    first = DeviceRegistrar(FakeBackend(), KeyValueSecretStore(engine), sleep=sleep)
    await first.receive_push_credential(b"\xab\xcd")

    client = FakeBackend()
    relaunched = DeviceRegistrar(client, KeyValueSecretStore(engine), sleep=sleep)
    assert relaunched.state is IdentityState.STRONG

    await relaunched.refresh_registration()
    assert [p["token"] for p in client.payloads] == ["abcd"]

    skipped = await relaunched.register(relaunched.device_id())
    assert skipped.skipped
    assert len(client.payloads) == 1


@pytest.mark.asyncio
async def test_credential_arriving_during_backoff_drops_weak_retry():
    client = FakeBackend(failures=1)
    secrets = MemorySecretStore()

    async def credential_arrives(delay):
        secrets.set(PUSH_TOKEN_KEY, "beef")

    registrar = DeviceRegistrar(client, secrets, sleep=credential_arrives)
    weak = registrar.device_id()
    await registrar.refresh_registration()

    assert [p["token"] for p in client.payloads] == [weak]
