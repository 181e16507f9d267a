"""Event handlers grouped by emitting contract kind."""

from asset_indexer.engine.context import Handler
from asset_indexer.engine.handlers import identity, system, token, vault
from asset_indexer.ingestor.models import ContractKind


def _table() -> dict[tuple[ContractKind, str], Handler]:
    groups: dict[ContractKind, dict[str, Handler]] = {
        ContractKind.SYSTEM: system.SYSTEM_HANDLERS,
        ContractKind.TOKEN_REGISTRY: system.REGISTRY_HANDLERS,
        ContractKind.TOKEN: token.HANDLERS,
        ContractKind.VAULT_FACTORY: vault.FACTORY_HANDLERS,
        ContractKind.VAULT: vault.HANDLERS,
        ContractKind.IDENTITY: identity.HANDLERS,
        ContractKind.IDENTITY_REGISTRY: identity.REGISTRY_HANDLERS,
    }
    return {
        (kind, name): handler
        for kind, handlers in groups.items()
        for name, handler in handlers.items()
    }


HANDLERS: dict[tuple[ContractKind, str], Handler] = _table()

__all__ = ["HANDLERS"]
