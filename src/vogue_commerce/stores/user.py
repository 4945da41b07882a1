# src/vogue_commerce/stores/user.py
"""
User Store

Signed-in user, body measurements, favorites, recently viewed products
and profile counters, persisted write-through as one user record.

Logging out forgets the user but keeps measurements and history, which
belong to the device rather than the account.
"""

import threading
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..core.exceptions import PersistenceException
from ..core.logger import get_logger, set_user_session
from ..models.user import HISTORY_LIMIT, User, UserMeasurements, UserRecord, UserStats
from ..storage.adapter import InMemoryStorage, PersistenceAdapter

DEFAULT_USER_KEY = "virtual-vogue-user"


class UserStore:
    """Persisted shopper profile state."""

    def __init__(
            self,
            storage: Optional[PersistenceAdapter] = None,
            key: str = DEFAULT_USER_KEY
    ):
        self.storage = storage if storage is not None else InMemoryStorage()
        self.key = key
        self.logger = get_logger("user")
        self.last_persist_error: Optional[PersistenceException] = None

        self._lock = threading.RLock()
        self._record = self._restore()

    @property
    def record(self) -> UserRecord:
        """Copy of the current record."""
        return self._record.model_copy(deep=True)

    @property
    def user(self) -> Optional[User]:
        return self._record.user

    @property
    def measurements(self) -> Optional[UserMeasurements]:
        return self._record.measurements

    @property
    def favorites(self) -> list:
        return list(self._record.favorites)

    @property
    def history(self) -> list:
        return list(self._record.history)

    @property
    def stats(self) -> UserStats:
        return self._record.stats

    @property
    def is_authenticated(self) -> bool:
        return self._record.is_authenticated

    def set_user(self, user: Optional[Union[User, Mapping[str, Any]]]) -> None:
        """Sign a user in (or out with None); favorites come from the user."""
        if user is not None and not isinstance(user, User):
            user = User.model_validate(user)
        with self._lock:
            favorites = list(user.favorites) if user is not None else []
            self._update(
                user=user,
                favorites=favorites,
                stats=self._record.stats.model_copy(update={"favorite_count": len(favorites)})
            )
        if user is not None:
            set_user_session(user.id)
        self.logger.info("User set", user_id=user.id if user else None)

    def logout(self) -> None:
        with self._lock:
            self._update(user=None)
        self.logger.info("User logged out")

    def set_measurements(self, measurements: Union[UserMeasurements, Mapping[str, Any]]) -> None:
        if not isinstance(measurements, UserMeasurements):
            measurements = UserMeasurements.model_validate(measurements)
        with self._lock:
            self._update(measurements=measurements)

    def clear_measurements(self) -> None:
        with self._lock:
            self._update(measurements=None)

    def toggle_favorite(self, product_id: str) -> bool:
        """
        Add or remove a favorite.

        Returns:
            True if the product is a favorite afterwards
        """
        with self._lock:
            favorites = list(self._record.favorites)
            if product_id in favorites:
                favorites.remove(product_id)
                now_favorite = False
            else:
                favorites.append(product_id)
                now_favorite = True
            self._update(
                favorites=favorites,
                stats=self._record.stats.model_copy(update={"favorite_count": len(favorites)})
            )
        self.logger.debug("Favorite toggled", product_id=product_id, is_favorite=now_favorite)
        return now_favorite

    def is_favorite(self, product_id: str) -> bool:
        return product_id in self._record.favorites

    def add_to_history(self, product_id: str) -> None:
        """Record a product view, most recent first."""
        with self._lock:
            history = [pid for pid in self._record.history if pid != product_id]
            history.insert(0, product_id)
            self._update(history=history[:HISTORY_LIMIT])

    def clear_history(self) -> None:
        with self._lock:
            self._update(history=[])

    def increment_ar_tries(self) -> int:
        with self._lock:
            stats = self._record.stats
            count = stats.ar_tries_count + 1
            self._update(stats=stats.model_copy(update={"ar_tries_count": count}))
        return count

    def _update(self, **changes: Any) -> None:
        self._record = self._record.model_copy(update=changes)
        try:
            self.storage.set_item(self.key, self._record.to_json_string())
        except PersistenceException as e:
            self.last_persist_error = e
            self.logger.error("User persistence failed", key=self.key, **e.to_dict())
        else:
            self.last_persist_error = None

    def _restore(self) -> UserRecord:
        try:
            raw = self.storage.get_item(self.key)
        except PersistenceException as e:
            self.last_persist_error = e
            self.logger.error("User restore failed", key=self.key, **e.to_dict())
            return UserRecord()
        if not raw:
            return UserRecord()
        try:
            return UserRecord.from_json_string(raw)
        except ValidationError as e:
            self.logger.warning("Discarding malformed user record", key=self.key, error_count=e.error_count())
            return UserRecord()
