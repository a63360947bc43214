from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from ..keystore import KeyStore, KeyStoreError, keys
from .api import CloudflareApi
from .errors import CloudflareError, DecodeError, PersistError, TokenCreationFailed
from .permissions import PermissionResolver


TOKENS_PATH = "/user/tokens"
ACCOUNT_RESOURCE_KEY = "com.cloudflare.api.account"
DEFAULT_TOKEN_NAME = "wasmflare-pages-deploy"

LogFn = Callable[..., None]


def _silent(*_parts: Any) -> None:
    return None


def scoped_token_payload(*, name: str, permission_group_id: str, account_id: str) -> Dict[str, Any]:
    """Token-creation body: one allow policy, one permission group, one account."""
    return {
        "name": name,
        "policies": [
            {
                "effect": "allow",
                "permission_groups": [{"id": permission_group_id}],
                "resources": {ACCOUNT_RESOURCE_KEY: account_id},
            }
        ],
    }


def parse_token_value(result: Any) -> str:
    if result is None:
        raise TokenCreationFailed("token value empty in response")
    if not isinstance(result, dict):
        raise DecodeError("parse token response: expected an object")
    value = result.get("value")
    if value is not None and not isinstance(value, str):
        raise DecodeError("parse token response: 'value' must be a string")
    if not value:
        raise TokenCreationFailed("token value empty in response")
    return value


class TokenScoper:
    """Mints a Pages:Edit token bound to one account from a bootstrap token.

    The bootstrap token is only passed through to the two API calls; it is
    never stored and never logged.
    """

    def __init__(
        self,
        *,
        api: CloudflareApi,
        keystore: KeyStore,
        resolver: Optional[PermissionResolver] = None,
        token_name: str = DEFAULT_TOKEN_NAME,
        log: Optional[LogFn] = None,
    ) -> None:
        self.api = api
        self.keystore = keystore
        self.resolver = resolver if resolver is not None else PermissionResolver(api)
        self.token_name = token_name
        self.log = log or _silent

    def create_scoped_token(self, bootstrap_token: str, account_id: str, permission_group_id: str) -> str:
        payload = scoped_token_payload(
            name=self.token_name,
            permission_group_id=permission_group_id,
            account_id=account_id,
        )
        return parse_token_value(self.api.post_json(TOKENS_PATH, bootstrap_token, payload))

    def _persist(self, key: str, value: str, label: str) -> None:
        try:
            self.keystore.set(key, value)
        except KeyStoreError as e:
            raise PersistError(key, str(e)).within(f"store {label}")

    def setup(self, account_id: str, bootstrap_token: str, project_name: str) -> None:
        """Resolve the permission group, mint the scoped token, persist it.

        Any failure aborts the remaining steps. Stores are written in order
        (account id, token, project) and are not rolled back: a failure while
        persisting leaves earlier keys updated, and re-running setup overwrites
        all three.
        """
        resolver_label = f"find {self.resolver.capability}:{self.resolver.action} permission"

        self.log("Cloudflare: fetching permission groups...")
        try:
            permission_id = self.resolver.resolve(bootstrap_token)
        except CloudflareError as e:
            raise e.within(resolver_label)

        self.log("Cloudflare: creating scoped Pages token...")
        try:
            scoped_token = self.create_scoped_token(bootstrap_token, account_id, permission_id)
        except CloudflareError as e:
            raise e.within("create scoped token")

        self._persist(keys.ACCOUNT_ID, account_id, "account_id")
        self._persist(keys.PAGES_TOKEN, scoped_token, "pages_token")
        self._persist(keys.PROJECT, project_name, "project")

        self.log("Cloudflare: setup complete, scoped token stored.")

    def is_configured(self) -> bool:
        return bool(self.keystore.get(keys.PAGES_TOKEN))
