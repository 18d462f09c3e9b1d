from __future__ import annotations

import pytest

from ovpnctl.ovpn import AuthMethod, FailureKind, ParseFailure, RemoteEndpoint, describe, parse
from tests.helpers import SAMPLE_CONFIG


def test_parse_extracts_remotes_cipher_auth_and_sections() -> None:
    config = parse(SAMPLE_CONFIG)

    assert config.remotes == [
        RemoteEndpoint(host="vpn.example.com", port="1194", proto="udp"),
        RemoteEndpoint(host="backup.example.com", port="443", proto="tcp"),
    ]
    assert config.cipher == "AES-256-GCM"
    assert config.auth_method is AuthMethod.USER_PASS
    assert config.certificates["ca"] == (
        "-----BEGIN CERTIFICATE-----\n"
        "MIIBszCCAVmgAwIBAgIU\n"
        "-----END CERTIFICATE-----\n"
    )
    assert config.certificates["tls-crypt"] == "6acef03f62675b4b\n"
    assert config.raw == SAMPLE_CONFIG


def test_parse_single_remote_defaults_proto_to_tcp() -> None:
    config = parse("remote a.example 1194\n")

    assert config.remotes == [RemoteEndpoint(host="a.example", port="1194", proto="tcp")]
    assert config.certificates == {}
    assert config.auth_method is None
    assert config.cipher is None


def test_parse_keeps_remote_order_and_raw_text_verbatim() -> None:
    text = "  remote one 1 udp  \r\nremote two 2\nremote three 3 tcp-client"
    config = parse(text)

    assert [r.host for r in config.remotes] == ["one", "two", "three"]
    assert config.remotes[2].proto == "tcp-client"
    assert config.primary.host == "one"
    assert config.raw == text


def test_parse_ignores_incomplete_remote_lines() -> None:
    config = parse("remote lonely\nremote good.example 443\n")

    assert [r.host for r in config.remotes] == ["good.example"]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "proto udp\n",
        "remote only-host\n",
        "# remote commented 1194\n",
        "<ca>\nremote hidden.example 1194\n</ca>\n",
    ],
)
def test_parse_without_usable_remote_fails(text: str) -> None:
    with pytest.raises(ParseFailure) as exc:
        parse(text)

    assert exc.value.kind is FailureKind.NO_REMOTE_FOUND
    assert exc.value.detail == "No remote servers found in config"
    assert exc.value.raw == text


@pytest.mark.parametrize("value", [None, 42, {"raw": "remote a 1"}, ["remote a 1"], b"remote a 1"])
def test_parse_rejects_non_text_input(value: object) -> None:
    with pytest.raises(ParseFailure) as exc:
        parse(value)

    assert exc.value.kind is FailureKind.INVALID_INPUT
    assert exc.value.detail == "Config must be a string"


def test_unknown_tags_close_the_current_section() -> None:
    text = "remote a 1\n<key>\nsecret\n<extra-certs>\nnot captured\n</extra-certs>\n"
    config = parse(text)

    assert config.certificates == {"key": "secret\n"}


def test_section_opened_without_close_collects_until_end() -> None:
    config = parse("remote a 1\n<cert>\nline one\nline two")

    assert config.certificates["cert"] == "line one\nline two\n"


def test_later_cipher_wins_and_auth_needs_no_argument() -> None:
    config = parse("remote a 1\ncipher BF-CBC\ncipher AES-256-CBC\nauth-user-pass creds.txt\n")

    assert config.cipher == "AES-256-CBC"
    assert config.auth_method is AuthMethod.USER_PASS
    assert config.requires_credentials is True


def test_describe_summarizes_primary_remote() -> None:
    details = describe(parse(SAMPLE_CONFIG))

    assert details == {
        "server": "vpn.example.com:1194 (udp)",
        "host": "vpn.example.com",
        "port": "1194",
        "proto": "udp",
        "remotes": 2,
        "cipher": "AES-256-GCM",
        "auth": "Username/Password",
        "sections": ["ca", "tls-crypt"],
    }


def test_describe_omits_absent_fields() -> None:
    assert describe(parse("remote a.example 1194\n")) == {
        "server": "a.example:1194 (tcp)",
        "host": "a.example",
        "port": "1194",
        "proto": "tcp",
        "remotes": 1,
    }


def test_parsed_config_round_trips_through_json_dump() -> None:
    config = parse(SAMPLE_CONFIG)
    stored = config.model_dump(mode="json")

    assert stored["auth_method"] == "user-pass"
    assert stored["remotes"][0] == {"host": "vpn.example.com", "port": "1194", "proto": "udp"}
    assert type(config).model_validate(stored) == config


def test_section_blob_keeps_crlf_line_endings() -> None:
    text = "remote a.example 1194\r\n<ca>\r\nline-one\r\n\r\nline-two\r\n</ca>\r\n"

    config = parse(text)

    assert config.certificates == {"ca": "line-one\r\n\r\nline-two\r\n"}
    assert config.raw == text
