"""End-to-end coverage of the configuration facade.

Each test points the facade at an isolated file under ``tmp_path`` and walks
one of the documented resolution scenarios: first run, file precedence,
explicit overrides, ignored bad input, and re-resolution.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from synapse_server_config import (
    AuthenticationScheme,
    CspProviderFlags,
    InvalidFormat,
    MergePolicy,
    ServerConfigService,
    ServerConfiguration,
    ServerRole,
    ValidationError,
    configure,
    configure_object,
    get_defaults,
    load_config,
)
from synapse_server_config.adapters.store.structured import StructuredConfigStore


def _service(tmp_path: Path, name: str = "Synapse.Server.config.yaml") -> ServerConfigService:
    return ServerConfigService(StructuredConfigStore(tmp_path / name))


def test_first_configure_creates_controller_file(tmp_path: Path) -> None:
    service = _service(tmp_path)
    resolved = service.configure(ServerRole.CONTROLLER, {})
    assert service.store.exists()
    persisted = service.load()
    assert persisted == resolved
    assert persisted.web_api_port == 20000
    assert persisted.service_name == "Synapse.Controller"


def test_override_beats_file_value(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure(ServerRole.CONTROLLER, {})
    assert service.load().authentication_scheme is AuthenticationScheme.INTEGRATED_WINDOWS_AUTHENTICATION
    resolved = service.configure(ServerRole.CONTROLLER, {"authenticationscheme": "Negotiate"})
    assert resolved.authentication_scheme is AuthenticationScheme.NEGOTIATE
    assert service.load().authentication_scheme is AuthenticationScheme.NEGOTIATE


def test_unparsable_port_keeps_file_value(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure(ServerRole.CONTROLLER, {})
    resolved = service.configure(ServerRole.CONTROLLER, {"webapiport": "not-a-number"})
    assert resolved.web_api_port == 20000


@pytest.mark.parametrize(
    ("key", "file_value", "default_value", "attribute", "expected"),
    [
        ("WebApiPort", "21000", "20000", "web_api_port", 20000),
        (
            "AuthenticationScheme",
            "Negotiate",
            "IntegratedWindowsAuthentication",
            "authentication_scheme",
            AuthenticationScheme.INTEGRATED_WINDOWS_AUTHENTICATION,
        ),
        (
            "SignatureCspProviderFlags",
            "UseMachineKeyStore, NoPrompt",
            "NoFlags",
            "signature_csp_provider_flags",
            CspProviderFlags.NO_FLAGS,
        ),
    ],
)
def test_explicit_default_override_beats_file_value(
    tmp_path: Path,
    key: str,
    file_value: str,
    default_value: str,
    attribute: str,
    expected: object,
) -> None:
    service = _service(tmp_path)
    service.configure("Controller", {key: file_value})
    assert getattr(service.load(), attribute) != expected
    resolved = service.configure("Controller", {key: default_value})
    assert getattr(resolved, attribute) == expected
    assert getattr(service.load(), attribute) == expected


def test_typed_default_candidate_beats_file_value(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure("Controller", {"AuthenticationScheme": "Negotiate"})
    scheme = AuthenticationScheme.INTEGRATED_WINDOWS_AUTHENTICATION
    resolved = service.configure_object(ServerConfiguration(authentication_scheme=scheme))
    assert resolved.authentication_scheme is scheme


def test_file_value_survives_unrelated_configure(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure("Controller", {"ServiceName": "Synapse.Primary", "SignatureKeyFile": "/keys/synapse.xml"})
    resolved = service.configure("Controller", {"ServiceDisplayName": "Primary Controller"})
    assert resolved.service_name == "Synapse.Primary"
    assert resolved.signature_key_file == "/keys/synapse.xml"
    assert resolved.service_display_name == "Primary Controller"


def test_blank_override_does_not_erase_file_value(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure("Node", {"ServiceName": "Synapse.Edge"})
    resolved = service.configure("Node", {"ServiceName": "   "})
    assert resolved.service_name == "Synapse.Edge"


def test_reconfigure_into_other_role(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure("Controller", {"NodeUrl": "http://node-7:20001/synapse/node"})
    resolved = service.configure("Node", {})
    assert resolved.server_role is ServerRole.NODE
    assert resolved.service_name == "Synapse.Node"
    assert resolved.web_api_port == 20001
    assert resolved.controller.node_url == "http://node-7:20001/synapse/node"


def test_configure_object_uses_file_for_unset_fields(tmp_path: Path) -> None:
    service = _service(tmp_path)
    service.configure("Node", {"WebApiPort": "21001"})
    resolved = service.configure_object(ServerConfiguration(signature_key_container_name="EdgeKeys"))
    assert resolved.server_role is ServerRole.NODE
    assert resolved.web_api_port == 21001
    assert resolved.signature_key_container_name == "EdgeKeys"


def test_load_seeds_default_file(tmp_path: Path) -> None:
    service = _service(tmp_path, "server.json")
    config = service.load()
    assert service.store.exists()
    assert config.server_role is ServerRole.CONTROLLER
    assert config.web_api_port == 20000


def test_load_is_read_through(tmp_path: Path) -> None:
    path = tmp_path / "server.yaml"
    path.write_text("ServerRole: Node\nWebApiPort: 25000\n", encoding="utf-8")
    config = load_config(path)
    assert config.web_api_port == 25000
    assert path.read_text(encoding="utf-8") == "ServerRole: Node\nWebApiPort: 25000\n"


def test_malformed_file_aborts_resolution(tmp_path: Path) -> None:
    path = tmp_path / "server.yaml"
    path.write_text("WebApiPort: [", encoding="utf-8")
    with pytest.raises(InvalidFormat):
        configure("Controller", {}, path=path)
    assert path.read_text(encoding="utf-8") == "WebApiPort: ["


def test_unknown_role_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        configure("Gateway", {}, path=tmp_path / "server.yaml")
    with pytest.raises(ValidationError):
        get_defaults("")


def test_policy_opt_out_resets_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "server.yaml"
    configure("Controller", {"ServiceName": "Synapse.Primary"}, path=path)
    resolved = configure("Controller", {}, path=path, policy=MergePolicy(defaulting_is_unsettable=False))
    assert resolved.service_name == "Synapse.Controller"


def test_module_level_helpers_share_one_file(tmp_path: Path) -> None:
    path = tmp_path / "server.yaml"
    first = configure("Node", {"MaxServerThreads": "16"}, path=path)
    second = configure_object(ServerConfiguration(), path=path)
    assert second == first
    assert get_defaults(ServerRole.NODE)["WebApiPort"] == "20001"


def test_default_store_honours_environment(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "env" / "server.yaml"
    monkeypatch.setenv("SYNAPSE_SERVER_CONFIG", str(target))
    resolved = configure("Controller", {"WebApiPort": "20100"})
    assert target.is_file()
    assert load_config() == resolved


OVERRIDE = st.fixed_dictionaries(
    {},
    optional={
        "webapiport": st.one_of(st.integers(min_value=-5, max_value=70000).map(str), st.text(max_size=6)),
        "authenticationscheme": st.sampled_from(["Negotiate", "ntlm", "Basic", "Kerberos", "", " "]),
        "servicename": st.sampled_from(["Synapse.Primary", "", "  ", "Synapse.Controller"]),
        "serverrole": st.sampled_from(["Controller", "node", "gateway"]),
        "maxserverthreads": st.sampled_from(["0", "8", "-1", "many"]),
    },
)


@settings(max_examples=40, deadline=None)
@given(OVERRIDE)
def test_resolution_is_idempotent(overrides: dict[str, str]) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _service(Path(tmp))
        resolved = service.configure("Controller", overrides)
        assert service.configure_object(resolved) == resolved
        assert service.load() == resolved
