"""Line-oriented parser for OpenVPN style configuration documents.

Only the directives the control plane cares about are extracted:
``remote`` endpoints, the ``cipher``, whether ``auth-user-pass`` is
requested, and inline credential sections (``<ca>``, ``<cert>``, ``<key>``,
``<tls-crypt>``). Everything else is ignored, and the original text is kept
verbatim on the result.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .errors import FailureKind, ParseFailure
from .models import AuthMethod, ParsedConfig, RemoteEndpoint

SECTION_TAGS = ("ca", "cert", "key", "tls-crypt")
DEFAULT_PROTO = "tcp"


def _tag(line: str) -> tuple[str, bool] | None:
    """Return ``(name, closing)`` when the trimmed line is a ``<...>`` marker."""
    if len(line) < 3 or not (line.startswith("<") and line.endswith(">")):
        return None
    inner = line[1:-1].strip()
    if inner.startswith("/"):
        return inner[1:].strip(), True
    return inner, False


def _remote(line: str) -> Optional[RemoteEndpoint]:
    tokens = line.split()
    if len(tokens) < 3:
        # permissive: incomplete remote lines are skipped, not rejected
        return None
    proto = tokens[3] if len(tokens) > 3 else DEFAULT_PROTO
    return RemoteEndpoint(host=tokens[1], port=tokens[2], proto=proto)


def parse(text: Any) -> ParsedConfig:
    """Parse a configuration document.

    Args:
        text: The raw document.

    Returns:
        The structured configuration, with ``raw`` set to ``text`` unchanged.

    Raises:
        ParseFailure: ``INVALID_INPUT`` when ``text`` is not a string,
            ``NO_REMOTE_FOUND`` when no usable ``remote`` line exists.
    """
    if not isinstance(text, str):
        raise ParseFailure(FailureKind.INVALID_INPUT)

    remotes: List[RemoteEndpoint] = []
    sections: Dict[str, List[str]] = {}
    auth_method: Optional[AuthMethod] = None
    cipher: Optional[str] = None
    current: Optional[str] = None

    for line in text.split("\n"):
        trimmed = line.strip()

        tag = _tag(trimmed)
        if tag is not None:
            name, closing = tag
            if not closing and name in SECTION_TAGS:
                current = name
                sections.setdefault(name, [])
            else:
                current = None
            continue

        if current is not None:
            sections[current].append(line + "\n")
            continue

        if trimmed.startswith("remote "):
            endpoint = _remote(trimmed)
            if endpoint is not None:
                remotes.append(endpoint)
        elif trimmed.startswith("auth-user-pass"):
            auth_method = AuthMethod.USER_PASS
        elif trimmed.startswith("cipher "):
            cipher = trimmed.split()[1]

    if not remotes:
        raise ParseFailure(FailureKind.NO_REMOTE_FOUND, raw=text)

    return ParsedConfig(
        remotes=remotes,
        certificates={name: "".join(chunks) for name, chunks in sections.items()},
        auth_method=auth_method,
        cipher=cipher,
        raw=text,
    )


def describe(config: ParsedConfig) -> dict[str, Any]:
    """Connection details for display: primary server, cipher and auth."""
    details: dict[str, Any] = {
        "server": str(config.primary),
        "host": config.primary.host,
        "port": config.primary.port,
        "proto": config.primary.proto,
        "remotes": len(config.remotes),
    }
    if config.cipher:
        details["cipher"] = config.cipher
    if config.auth_method is not None:
        details["auth"] = config.auth_method.label
    if config.certificates:
        details["sections"] = sorted(config.certificates)
    return details
