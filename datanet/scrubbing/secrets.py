"""Secret detection in property values using detect-secrets.

Key-name rules catch fields called "api_key" or "password"; this catches
secrets that were pasted into innocently named fields ("notes",
"description"). Any string value with a finding is dropped by the scrubber
at every level.
"""

from __future__ import annotations

import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from detect_secrets.core.scan import scan_line
from detect_secrets.settings import transient_settings

# Entropy plugins are left out on purpose: they flag hashes and UUIDs,
# which are legitimate analytics keys.
DETECT_SECRETS_PLUGINS: tuple[str, ...] = (
    "AWSKeyDetector",
    "BasicAuthDetector",
    "GitHubTokenDetector",
    "JwtTokenDetector",
    "KeywordDetector",
    "PrivateKeyDetector",
    "SlackDetector",
    "StripeDetector",
)

# detect-secrets keeps its settings in process-global state
_SETTINGS_LOCK = threading.Lock()

_AWS_KEY_PATTERN = re.compile(r"AKIA[0-9A-Z]{16}")

_API_KEY_PATTERNS = [
    re.compile(
        r'["\']?(?:api[_-]?key|apikey|secret[_-]?key|auth[_-]?token|access[_-]?token)["\']?'
        r'\s*[:=]\s*["\']?([a-zA-Z0-9_\-]{20,})',
        re.IGNORECASE,
    ),
    re.compile(r"sk-[a-zA-Z0-9]{20,}"),  # OpenAI style keys
    re.compile(r"gh[pos]_[a-zA-Z0-9]{36}"),  # GitHub tokens
    re.compile(r"-----BEGIN (?:[A-Z]+ )?PRIVATE KEY-----"),
]

_CONN_STRING_PATTERNS = [
    re.compile(
        r"(?:postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^\s\"']+",
        re.IGNORECASE,
    ),
    re.compile(
        r"Server\s*=\s*[^;]+;\s*Database\s*=\s*[^;]+;\s*(?:User\s*Id|Uid)\s*=\s*[^;]+;"
        r"\s*(?:Password|Pwd)\s*=\s*[^;]+",
        re.IGNORECASE,
    ),
]


@dataclass
class SecretFinding:
    """A credential found in a value. Carries no secret material."""

    secret_type: str
    line_number: int


@contextmanager
def _plugin_settings() -> Iterator[None]:
    with _SETTINGS_LOCK:
        with transient_settings(
            {"plugins_used": [{"name": name} for name in DETECT_SECRETS_PLUGINS]}
        ):
            yield


def detect_secrets_in_text(text: str) -> list[SecretFinding]:
    """Scan a property value for credentials, line by line.

    Args:
        text: String property value (may span several lines)

    Returns:
        Findings from detect-secrets plugins and the extra patterns below
    """
    findings: list[SecretFinding] = []
    lines = text.split("\n")

    with _plugin_settings():
        for line_num, line in enumerate(lines, start=1):
            for potential in scan_line(line):
                findings.append(
                    SecretFinding(secret_type=potential.type, line_number=line_num)
                )

    for line_num, line in enumerate(lines, start=1):
        findings.extend(_match_custom_patterns(line, line_num))

    return findings


def contains_secret(text: str) -> bool:
    """True if text holds anything that looks like a credential."""
    if not text.strip():
        return False
    return bool(detect_secrets_in_text(text))


def _match_custom_patterns(line: str, line_number: int) -> list[SecretFinding]:
    """Credential shapes the enabled plugins miss (AWS ids, DSNs, key headers).

    Args:
        line: One line of the value
        line_number: 1-indexed position of the line

    Returns:
        One finding per matching pattern
    """
    findings: list[SecretFinding] = []

    if _AWS_KEY_PATTERN.search(line):
        findings.append(SecretFinding("AWS Access Key", line_number))

    for pattern in _API_KEY_PATTERNS:
        if pattern.search(line):
            findings.append(SecretFinding("API Key", line_number))

    for pattern in _CONN_STRING_PATTERNS:
        if pattern.search(line):
            findings.append(SecretFinding("Connection String", line_number))

    return findings
