"""Identity provider port and its Magic-link implementation.

The provider turns a bearer token into verified account metadata. A Magic DID
token is base64 JSON `[proof, claim]` where `proof` is an Ethereum personal
signature over the claim string, made by the key whose address is the tail of
the claim's `iss` DID.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct

from userapi.errors import IdentityError, IdentityProviderError

logger = logging.getLogger(__name__)

# Allowed clock skew between us and the provider when checking nbf/ext.
CLOCK_SKEW_S = 300


@dataclass(frozen=True)
class IdentityMetadata:
    issuer: str | None
    email: str | None
    public_address: str | None


def parse_authorization_header(header: str | None) -> str:
    """Extract the token from a 'Bearer <token>' header."""
    if not header:
        raise IdentityError('missing authorization header')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise IdentityError('malformed authorization header')
    return token.strip()


class IdentityProvider(ABC):
    @abstractmethod
    def validate(self, token: str) -> str:
        """Check the token and return its issuer. Raises IdentityError."""

    @abstractmethod
    def get_metadata(self, token: str) -> IdentityMetadata:
        """Return account metadata for the token's issuer.

        Raises IdentityError for a bad token, IdentityProviderError when the lookup fails.
        """

    def close(self) -> None:
        """Release any network resources held by the provider."""


def decode_did_token(token: str) -> tuple[str, str, dict]:
    """Split a base64 DID token into its proof, raw claim string and decoded claim."""
    try:
        padded = token + '=' * (-len(token) % 4)
        proof, raw_claim = json.loads(base64.urlsafe_b64decode(padded))
        claim = json.loads(raw_claim)
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError) as exc:
        raise IdentityError('malformed identity token') from exc
    if not isinstance(claim, dict) or not isinstance(proof, str):
        raise IdentityError('malformed identity token')
    return proof, raw_claim, claim


def recover_signer(raw_claim: str, proof: str) -> str:
    """Return the address that produced `proof` as a personal signature over `raw_claim`."""
    try:
        return Account.recover_message(encode_defunct(text=raw_claim), signature=proof)
    except Exception as exc:  # eth-account raises several unrelated types for bad signatures
        raise IdentityError('invalid identity token signature') from exc


class MagicIdentityProvider(IdentityProvider):
    """Validates Magic DID tokens and fetches user metadata from the Magic admin API."""

    def __init__(
        self,
        secret_key: str,
        *,
        base_url: str = 'https://api.magic.link',
        client: httpx.Client | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=10.0)

    def validate(self, token: str) -> str:
        proof, raw_claim, claim = decode_did_token(token)
        issuer = claim.get('iss')
        if not issuer or not isinstance(issuer, str):
            raise IdentityError('identity token has no issuer')
        try:
            expires_at = float(claim['ext'])
            not_before = float(claim.get('nbf', 0))
        except (KeyError, TypeError, ValueError) as exc:
            raise IdentityError('malformed identity token') from exc

        now = time.time()
        if now > expires_at + CLOCK_SKEW_S:
            raise IdentityError('identity token has expired')
        if now < not_before - CLOCK_SKEW_S:
            raise IdentityError('identity token is not yet valid')

        signer = recover_signer(raw_claim, proof)
        if signer.lower() != issuer.rsplit(':', 1)[-1].lower():
            logger.warning('Identity token for %s was signed by %s', issuer, signer)
            raise IdentityError('identity token signer does not match issuer')
        return issuer

    def get_metadata(self, token: str) -> IdentityMetadata:
        issuer = self.validate(token)
        try:
            resp = self._client.get(
                '/v1/admin/auth/user/get',
                params={'issuer': issuer},
                headers={'X-Magic-Secret-Key': self._secret_key},
            )
            resp.raise_for_status()
            data = resp.json().get('data') or {}
        except httpx.HTTPStatusError as exc:
            logger.warning('Identity lookup for %s returned %s', issuer, exc.response.status_code)
            raise IdentityError('identity lookup was rejected') from exc
        except httpx.HTTPError as exc:
            logger.error('Identity lookup for %s failed: %s', issuer, exc)
            raise IdentityProviderError('identity provider is unavailable') from exc
        except (ValueError, AttributeError) as exc:
            logger.error('Identity lookup for %s returned an unreadable body', issuer)
            raise IdentityProviderError('identity provider returned an invalid response') from exc
        if not isinstance(data, dict):
            raise IdentityProviderError('identity provider returned an invalid response')
        return IdentityMetadata(
            issuer=data.get('issuer'),
            email=data.get('email'),
            public_address=data.get('public_address'),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def build_identity_provider(secret_key: str | None, base_url: str) -> IdentityProvider | None:
    """The Magic provider for a configured secret key, or None when none is set."""
    if not secret_key:
        return None
    return MagicIdentityProvider(secret_key, base_url=base_url)
