"""Profile store: user profile fields with merge-on-set."""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from finance_tracker.models.events import StoreChangeBuilder
from finance_tracker.models.profile import Profile
from finance_tracker.services.storage import SnapshotStorageInterface
from finance_tracker.store.base import PersistedStore


DEFAULT_STORAGE_KEY = "profile-storage"


class ProfileStore(PersistedStore):
    """Holds one Profile. No invariants beyond field replacement."""

    def __init__(
        self,
        storage: Optional[SnapshotStorageInterface] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        super().__init__(storage, storage_key)
        self._profile = self._hydrate()

    def _hydrate(self) -> Profile:
        state = self._load_state()
        if state is None:
            return Profile()
        try:
            return Profile.model_validate(state)
        except ValidationError as e:
            self._logger.warning("snapshot_invalid", error_count=e.error_count())
            return Profile()

    def _dump_state(self) -> dict[str, Any]:
        return self._profile.to_json_dict()

    @property
    def profile(self) -> Profile:
        return self._profile

    def set_profile(self, updates: Mapping[str, Any]) -> None:
        """Merge the given fields into the profile. Invalid values are ignored."""
        try:
            self._profile = self._profile.merged(updates)
        except ValidationError as e:
            self._logger.warning(
                "update_rejected",
                error_count=e.error_count(),
                fields=sorted(updates),
            )
            return
        fields = list(Profile.normalize_updates(updates))
        self._logger.info("profile_updated", fields=sorted(fields))
        self._commit(StoreChangeBuilder.profile_updated(fields))
