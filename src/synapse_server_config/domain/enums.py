"""Enumerations carried by the server configuration.

Purpose
-------
Name the closed value sets a configuration field may take. The wire names
(what appears in the persisted file and in installer input) are the string
values for :class:`ServerRole` and :class:`AuthenticationScheme`, and the
PascalCase form of the member name for :class:`CspProviderFlags`.

Contents
--------
* :class:`ServerRole` – which half of the service a process runs as.
* :class:`AuthenticationScheme` – HTTP authentication accepted by the web API.
* :class:`CspProviderFlags` – key-store flags used when loading the signature key.
"""

from __future__ import annotations

from enum import Enum, IntFlag


class ServerRole(str, Enum):
    """Role of a server process; selects the role-dependent defaults."""

    CONTROLLER = "Controller"
    NODE = "Node"


class AuthenticationScheme(str, Enum):
    """Authentication scheme accepted by the web API listener.

    Besides the names, the numeric values of the .NET ``AuthenticationSchemes``
    enumeration resolve to their member, so ``AuthenticationScheme(2)`` is
    :attr:`NEGOTIATE`. Combined bit patterns other than
    ``IntegratedWindowsAuthentication`` (6) are rejected.
    """

    NONE = "None"
    DIGEST = "Digest"
    NEGOTIATE = "Negotiate"
    NTLM = "Ntlm"
    INTEGRATED_WINDOWS_AUTHENTICATION = "IntegratedWindowsAuthentication"
    BASIC = "Basic"
    ANONYMOUS = "Anonymous"

    @classmethod
    def _missing_(cls, value: object) -> AuthenticationScheme | None:
        if isinstance(value, int) and not isinstance(value, bool):
            return _SCHEME_NUMBERS.get(value)
        return None


_SCHEME_NUMBERS: dict[int, AuthenticationScheme] = {
    0: AuthenticationScheme.NONE,
    1: AuthenticationScheme.DIGEST,
    2: AuthenticationScheme.NEGOTIATE,
    4: AuthenticationScheme.NTLM,
    6: AuthenticationScheme.INTEGRATED_WINDOWS_AUTHENTICATION,
    8: AuthenticationScheme.BASIC,
    0x8000: AuthenticationScheme.ANONYMOUS,
}


class CspProviderFlags(IntFlag):
    """Cryptographic service provider flags for the signature key container.

    Values match the CryptoAPI constants so a file written by another
    implementation of the service round-trips unchanged.
    """

    NO_FLAGS = 0
    USE_MACHINE_KEY_STORE = 1
    USE_DEFAULT_KEY_CONTAINER = 2
    USE_NON_EXPORTABLE_KEY = 4
    USE_EXISTING_KEY = 8
    USE_ARCHIVABLE_KEY = 16
    USE_USER_PROTECTED_KEY = 32
    NO_PROMPT = 64
    CREATE_EPHEMERAL_KEY = 128


__all__ = ["AuthenticationScheme", "CspProviderFlags", "ServerRole"]
