"""HTTP adapters for the identity provider and the marketplace backend."""

from pykappa._api.identity import CognitoIdentityProvider
from pykappa._api.members import BackendAssetStore, BackendDraftStore
from pykappa._api.users import BackendUserStore

__all__ = [
    "BackendAssetStore",
    "BackendDraftStore",
    "BackendUserStore",
    "CognitoIdentityProvider",
]
