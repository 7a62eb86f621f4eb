"""The prediction module's genesis handling and simulation hooks."""

from __future__ import annotations

from collections.abc import Iterable

from speculod.keeper import Context, Keeper
from speculod.models import MODULE_NAME, GenesisState, default_genesis, default_params

CONSENSUS_VERSION = 1


class AppModule:
    """Ties a keeper to the application's genesis and simulation life cycle."""

    name = MODULE_NAME

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def default_genesis(self) -> str:
        return default_genesis().to_json()

    def _parse(self, data: str | bytes) -> GenesisState:
        try:
            return GenesisState.from_json(data)
        except ValueError as exc:
            raise ValueError(f"failed to unmarshal {MODULE_NAME} genesis state: {exc}") from exc

    def validate_genesis(self, data: str | bytes) -> None:
        self._parse(data).validate()

    def init_genesis(self, ctx: Context, data: str | bytes) -> None:
        self.keeper.init_genesis(ctx, self._parse(data))

    def export_genesis(self, ctx: Context) -> str:
        try:
            state = self.keeper.export_genesis(ctx)
        except LookupError as exc:
            raise RuntimeError(f"failed to export {MODULE_NAME} genesis state: {exc}") from exc
        return state.to_json()

    def generate_genesis_state(self, accounts: Iterable[str]) -> dict[str, str]:
        """Return the module's simulated genesis, keyed by module name."""
        return {MODULE_NAME: GenesisState(params=default_params()).to_json()}

    def consensus_version(self) -> int:
        return CONSENSUS_VERSION