"""
Tests for the Federated-Catalogue node.

Scripts run for real (fake Python scripts); the deployed instance is an
httpx.MockTransport.
"""

import asyncio

import pytest

from easystack.config.provider import HttpClientConfig
from easystack.errors import FileWriteError, MissingSecretError, OperationCancelled, UninstallFailure
from easystack.modules.api import NodeMessage, NodeState
from easystack.modules.credentials import CredentialMaterializer
from easystack.modules.nodes import FederatedCatalogueNode, NodeClosedError, build_registry

EXPECTED_PAYLOAD = {
    "ingressExternalIp": "10.0.0.1",
    "fcServiceUrl": "https://x",
    "keycloakUrl": "https://y",
    "clientSecret": "s3cr3t",
}


@pytest.fixture
def scripts(fake_scripts, deploy_stdout):
    fake_scripts.catalogue.set("deploy", stdout=deploy_stdout)
    return fake_scripts.catalogue


@pytest.fixture
def node(registry, catalogue_config, scripts) -> FederatedCatalogueNode:
    return registry.create("Federated-Catalogue", catalogue_config, node_id="fc")


async def deploy(node):
    return await node.handle(NodeMessage(payload="go"))


@pytest.mark.asyncio
async def test_deploy_extracts_metadata(node, scripts, creds_dir):
    output = await deploy(node)

    assert output.payload == EXPECTED_PAYLOAD
    assert output.error is None
    assert node.state is NodeState.DEPLOYED
    assert node.indicator.fill == "green"
    assert node.session.get() == "s3cr3t"
    assert node.info() == EXPECTED_PAYLOAD
    assert list(creds_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_deploy_argument_order(node, scripts, catalogue_config):
    await deploy(node)

    call = scripts.calls("deploy")[0]
    kube, key, crt = call["args"][:3]
    assert call["args"][3:] == ["example.org", "fc1", "admin", "admin-pw", "alice", "alice-pw"]
    assert call["files"][kube] == catalogue_config["kubeconfigContent"]
    assert call["files"][key] == catalogue_config["privateKeyContent"]
    assert call["files"][crt] == catalogue_config["certificateContent"]


@pytest.mark.asyncio
async def test_deploy_without_service_user(registry, catalogue_config, scripts):
    del catalogue_config["newUser"]
    del catalogue_config["newPass"]
    node = registry.create("Federated-Catalogue", catalogue_config)

    await deploy(node)

    assert scripts.calls("deploy")[0]["args"][7:] == ["", ""]


@pytest.mark.asyncio
async def test_deploy_passes_through_message_fields(node):
    msg = NodeMessage.model_validate({"payload": "go", "requestId": "m-1", "action": "deploy"})

    output = await node.handle(msg)

    wire = output.to_wire()
    assert wire["requestId"] == "m-1"
    assert wire["payload"] == EXPECTED_PAYLOAD


@pytest.mark.asyncio
async def test_deploy_failure_reports_error(node, scripts, creds_dir):
    scripts.set("deploy", stdout="partial", stderr="helm: timed out waiting for condition", exit=1)

    output = await deploy(node)

    assert output.payload == "helm: timed out waiting for condition"
    assert output.error == "helm: timed out waiting for condition"
    assert node.state is NodeState.FAILED
    assert node.indicator.text == "deploy failed"
    assert node.session.get() is None
    assert list(creds_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_redeploy_without_secret_unsets_session(node, scripts):
    await deploy(node)
    scripts.set("deploy", stdout="🔹 Keycloak URL:   https://kc2\n")

    output = await deploy(node)

    assert output.payload == {"keycloakUrl": "https://kc2"}
    assert node.session.get() is None
    assert node.info()["clientSecret"] == ""


@pytest.mark.asyncio
async def test_file_write_error(catalogue_config, provisioning_config, tmp_path, scripts):
    registry = build_registry(
        provisioning_config,
        HttpClientConfig(timeout=5.0),
        materializer=CredentialMaterializer(tmp_path / "missing"),
    )
    node = registry.create("Federated-Catalogue", catalogue_config)

    with pytest.raises(FileWriteError):
        await deploy(node)

    assert node.state is NodeState.FAILED
    assert node.indicator.text == "file error"
    assert scripts.calls("deploy") == []


@pytest.mark.asyncio
async def test_service_call_uses_session_secret(node, fake_instance):
    await deploy(node)
    fake_instance.service_status = 201
    fake_instance.service_body = {"id": "sd-1"}

    output = await node.handle(NodeMessage(topic="self-descriptions", payload={"name": "x"}))

    assert output.fc_response == {"statusCode": 201, "body": {"id": "sd-1"}}
    assert fake_instance.token_forms()[0]["client_secret"] == "s3cr3t"
    request = fake_instance.service_requests()[0]
    assert request.method == "POST"
    assert str(request.url) == "https://example.org/fc1/fcservice/self-descriptions"
    assert request.headers["authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_service_call_before_deploy(node, fake_instance, scripts):
    with pytest.raises(MissingSecretError):
        await node.handle(NodeMessage(topic="participants"))

    assert fake_instance.requests == []
    assert scripts.calls("deploy") == []


@pytest.mark.asyncio
async def test_service_call_with_message_credentials(node, fake_instance):
    msg = NodeMessage.model_validate(
        {"topic": "participants", "clientSecret": "given", "username": "bob", "password": "bob-pw"}
    )

    output = await node.handle(msg)

    assert output.fc_response["statusCode"] == 200
    form = fake_instance.token_forms()[0]
    assert (form["client_secret"], form["username"], form["password"]) == ("given", "bob", "bob-pw")
    assert fake_instance.service_requests()[0].method == "GET"


@pytest.mark.asyncio
async def test_blank_topic_deploys(node, scripts):
    output = await node.handle(NodeMessage(topic="   "))

    assert output.payload == EXPECTED_PAYLOAD
    assert len(scripts.calls("deploy")) == 1


@pytest.mark.asyncio
async def test_uninstall_clears_metadata(node, scripts, catalogue_config, creds_dir):
    await deploy(node)
    scripts.set("uninstall", stdout="release removed")

    output = await node.handle(NodeMessage(action="uninstall"))

    assert output.payload == {"uninstalled": True}
    call = scripts.calls("uninstall")[0]
    assert call["args"][1] == "fc1"
    assert call["files"][call["args"][0]] == catalogue_config["kubeconfigContent"]
    assert node.state is NodeState.IDLE
    assert node.session.get() is None
    assert node.info() == {key: "" for key in EXPECTED_PAYLOAD}
    assert list(creds_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_uninstall_failure(node, scripts):
    await deploy(node)
    scripts.set("uninstall", stderr="namespace busy", exit=1)

    with pytest.raises(UninstallFailure, match="namespace busy"):
        await node.uninstall()

    assert node.state is NodeState.FAILED
    # metadata survives a failed uninstall
    assert node.session.get() == "s3cr3t"


@pytest.mark.asyncio
async def test_close_removed_runs_uninstall(node, scripts):
    await node.close(removed=True)

    assert len(scripts.calls("uninstall")) == 1
    assert node.state is NodeState.CLOSED


@pytest.mark.asyncio
async def test_close_removed_survives_uninstall_failure(node, scripts):
    scripts.set("uninstall", stderr="boom", exit=1)

    await node.close(removed=True)

    assert node.state is NodeState.CLOSED
    with pytest.raises(NodeClosedError):
        await deploy(node)


@pytest.mark.asyncio
async def test_close_without_removal(node, scripts):
    await node.close()
    await node.close()

    assert scripts.calls("uninstall") == []
    assert node.state is NodeState.CLOSED


@pytest.mark.asyncio
async def test_cancel_inflight_deploy(node, scripts, creds_dir):
    scripts.set("deploy", sleep=30)

    task = asyncio.create_task(deploy(node))
    for _ in range(50):
        await asyncio.sleep(0.1)
        if scripts.calls("deploy"):
            break
    assert node.busy
    assert node.cancel() is True

    with pytest.raises(OperationCancelled):
        await task

    assert node.state is NodeState.FAILED
    assert node.indicator.text == "deploy cancelled"
    assert list(creds_dir.iterdir()) == []
    assert node.cancel() is False


async def wait_for_call(scripts, name):
    for _ in range(50):
        await asyncio.sleep(0.1)
        if scripts.calls(name):
            return
    raise AssertionError(f"{name} script was never started")


@pytest.mark.asyncio
async def test_close_during_deploy_stays_closed(node, scripts, creds_dir):
    scripts.set("deploy", sleep=30)

    task = asyncio.create_task(deploy(node))
    await wait_for_call(scripts, "deploy")
    await node.close()

    with pytest.raises(OperationCancelled):
        await task

    assert node.state is NodeState.CLOSED
    assert node.indicator.text is None
    assert list(creds_dir.iterdir()) == []
    with pytest.raises(NodeClosedError):
        await deploy(node)


@pytest.mark.asyncio
async def test_close_refuses_queued_deploy(node, scripts):
    scripts.set("deploy", sleep=30)

    first = asyncio.create_task(deploy(node))
    await wait_for_call(scripts, "deploy")
    second = asyncio.create_task(deploy(node))
    await asyncio.sleep(0)
    await node.close()

    with pytest.raises(OperationCancelled):
        await first
    with pytest.raises(NodeClosedError):
        await second

    assert len(scripts.calls("deploy")) == 1
    assert node.state is NodeState.CLOSED


@pytest.mark.asyncio
async def test_close_removed_during_deploy_uninstalls(node, scripts):
    scripts.set("deploy", sleep=30)

    task = asyncio.create_task(deploy(node))
    await wait_for_call(scripts, "deploy")
    await node.close(removed=True)

    with pytest.raises(OperationCancelled):
        await task

    assert len(scripts.calls("uninstall")) == 1
    assert node.state is NodeState.CLOSED
    assert node.indicator.fill is None


@pytest.mark.asyncio
async def test_concurrent_deploys_are_serialized(node, scripts):
    scripts.set("deploy", stdout="🔹 Client Secret:   s3cr3t\n", sleep=0.2)

    first, second = await asyncio.gather(deploy(node), deploy(node))

    assert first.payload == second.payload == {"clientSecret": "s3cr3t"}
    assert len(scripts.calls("deploy")) == 2
    assert not node.busy
