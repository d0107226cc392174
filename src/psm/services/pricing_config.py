from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Mapping, Optional

from psm.config import DEFAULT_SIZE_INCREMENTS
from psm.domain.errors import ConflictError, NotFoundError, RemoteError, ValidationError
from psm.repositories.contracts import Backend, SettingsStore

log = logging.getLogger(__name__)

_REMOTE_FAILURES = (RemoteError, NotFoundError, ConflictError)


def normalize_size(size: object) -> str:
    return str(size or "").strip().upper()


@dataclass(frozen=True)
class PricingConfig:
    """Snapshot of the local pricing caches handed to the resolvers."""

    size_increments: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_SIZE_INCREMENTS))
    size_prices: Mapping[tuple[int, str], float] = field(default_factory=dict)
    gain_percents: Mapping[int, object] = field(default_factory=dict)

    def increment_for(self, size: object) -> float:
        pct = self.size_increments.get(normalize_size(size), 0.0)
        return float(pct) if math.isfinite(float(pct)) and pct >= 0 else 0.0

    def size_price_for(self, product_id: int, size: object) -> Optional[float]:
        return self.size_prices.get((int(product_id), normalize_size(size)))

    def cached_gain_for(self, product_id: int) -> object:
        return self.gain_percents.get(int(product_id))


class PricingConfigService:
    def __init__(self, store: SettingsStore, backend: Backend | None = None):
        self.store = store
        self.backend = backend
        self._config: PricingConfig | None = None

    @property
    def config(self) -> PricingConfig:
        if self._config is None:
            return self.load()
        return self._config

    def load(self) -> PricingConfig:
        increments = dict(DEFAULT_SIZE_INCREMENTS)
        increments.update(self.store.get_size_increments())
        self._config = PricingConfig(
            size_increments=increments,
            size_prices=dict(self.store.get_size_prices()),
            gain_percents=dict(self.store.get_gain_percents()),
        )
        return self._config

    def save_size_increments(self, increments: Mapping[str, float]) -> PricingConfig:
        cleaned: dict[str, float] = {}
        for size, pct in increments.items():
            key = normalize_size(size)
            if not key:
                raise ValidationError("Size label is required.")
            value = float(pct)
            if not math.isfinite(value) or value < 0:
                raise ValidationError(f"Increment for size {key} must be >= 0.")
            cleaned[key] = value

        merged = dict(self.config.size_increments)
        merged.update(cleaned)
        self.store.set_size_increments(merged)
        return self.load()

    def save_gain_percent(self, product_id: int, percent: float) -> PricingConfig:
        value = float(percent)
        if not math.isfinite(value) or value < 0:
            raise ValidationError(f"Gain percent for product {product_id} must be >= 0.")
        self.store.set_gain_percent(int(product_id), value)
        return self.load()

    def fetch_size_price(self, product_id: int, size: str) -> Optional[float]:
        """Stored override for (product, size); degrades to the local cache when the backend fails."""
        if not normalize_size(size):
            return None
        if self.backend is not None:
            try:
                price = self.backend.get_size_price(int(product_id), normalize_size(size))
                if price is not None:
                    return float(price)
            except _REMOTE_FAILURES as e:
                log.warning("size_price_remote_failed product_id=%s size=%s error=%s", product_id, size, e)
        return self.config.size_price_for(int(product_id), size)

    def save_size_price(self, product_id: int, size: str, price: float) -> bool:
        """Returns True when the backend accepted the override; the local cache is always written."""
        key = normalize_size(size)
        if not key:
            raise ValidationError("Size label is required.")
        value = float(price)
        if not math.isfinite(value) or value <= 0:
            raise ValidationError(f"Price for size {key} must be > 0.")

        saved_remotely = False
        if self.backend is not None:
            try:
                self.backend.save_size_price(int(product_id), key, value)
                saved_remotely = True
            except _REMOTE_FAILURES as e:
                log.warning("size_price_save_remote_failed product_id=%s size=%s error=%s", product_id, key, e)

        self.store.set_size_price(int(product_id), key, value)
        self.load()
        return saved_remotely
