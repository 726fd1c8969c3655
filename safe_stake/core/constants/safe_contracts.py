from __future__ import annotations

from eth_utils import to_checksum_address

# Canonical MultiSendCallOnly deployments by Safe version. The contract rejects
# any packed entry whose operation is a delegate call.
MULTISEND_CALL_ONLY_BY_VERSION: dict[str, str] = {
    "1.3.0": to_checksum_address("0x40A2aCCbd92BCA938b02010E17A5b8929b49130D"),
    "1.4.1": to_checksum_address("0x9641d764fc13c8B624c04430C7356C1C7C8102e2"),
}


def normalize_safe_version(version: str) -> str:
    # L2 singletons report e.g. "1.3.0+L2"
    return str(version).strip().split("+", 1)[0]
