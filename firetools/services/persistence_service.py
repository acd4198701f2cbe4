"""
Encrypted persistence of allocation state and calculator inputs.

State is serialized to JSON, encrypted, and written under fixed keys with a
fixed lifetime. Loads never raise: a missing, expired, undecryptable or
malformed entry reads as None and is logged.
"""

import json
import logging
from datetime import timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from firetools.config import settings
from firetools.core.exceptions import StorageError
from firetools.schemas.asset_allocation import Asset, AssetClass, AssetClassTarget, ClassTargets
from firetools.schemas.calculator import CalculatorInputs
from firetools.services.encryption_service import EncryptionService, get_encryption_service
from firetools.services.storage_service import Clock, StorageBackend, get_storage_backend
from firetools.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

ASSET_ALLOCATION_KEY = "fire-calculator-asset-allocation"
ASSET_CLASS_TARGETS_KEY = "fire-calculator-asset-class-targets"
FIRE_CALCULATOR_INPUTS_KEY = "fire-calculator-inputs"

_assets_adapter = TypeAdapter(List[Asset])
_class_targets_adapter = TypeAdapter(Dict[AssetClass, AssetClassTarget])


class PersistenceService:
    """Save and load toolkit state through an encrypted key-value backend."""

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        encryption: Optional[EncryptionService] = None,
        expiry_days: Optional[int] = None,
        clock: Clock = utc_now,
    ):
        self._backend = backend if backend is not None else get_storage_backend()
        self._encryption = encryption if encryption is not None else get_encryption_service()
        self._expiry = timedelta(days=expiry_days or settings.STORAGE_EXPIRY_DAYS)
        self._clock = clock

    def _save(self, key: str, payload: str) -> None:
        try:
            ciphertext = self._encryption.encrypt(payload)
        except ValueError as e:
            raise StorageError(f"Failed to encrypt data for '{key}': {e}") from e
        self._backend.set(key, ciphertext, self._clock() + self._expiry)

    def _load(self, key: str) -> Optional[str]:
        ciphertext = self._backend.get(key)
        if ciphertext is None:
            return None
        try:
            return self._encryption.decrypt(ciphertext)
        except ValueError as e:
            logger.warning("stored_data_undecryptable", extra={"key": key, "error": str(e)})
            return None

    # --- Asset allocation ---

    def save_asset_allocation(
        self,
        assets: Sequence[Asset],
        class_targets: Mapping[AssetClass, AssetClassTarget],
    ) -> None:
        """
        Persist assets and class targets as two entries.

        Raises:
            StorageError: If encryption or the backend write fails
        """
        self._save(
            ASSET_ALLOCATION_KEY,
            json.dumps([asset.model_dump(mode="json") for asset in assets]),
        )
        self._save(
            ASSET_CLASS_TARGETS_KEY,
            json.dumps(
                {cls.value: target.model_dump(mode="json") for cls, target in class_targets.items()}
            ),
        )
        logger.info(
            "asset_allocation_saved",
            extra={"asset_count": len(assets), "class_count": len(class_targets)},
        )

    def load_asset_allocation(self) -> Tuple[Optional[List[Asset]], Optional[ClassTargets]]:
        """
        Load assets and class targets. Each part is None independently when
        missing or invalid.
        """
        assets = None
        raw_assets = self._load(ASSET_ALLOCATION_KEY)
        if raw_assets is not None:
            try:
                assets = _assets_adapter.validate_json(raw_assets)
            except ValidationError as e:
                logger.warning(
                    "stored_assets_invalid",
                    extra={"key": ASSET_ALLOCATION_KEY, "error_count": e.error_count()},
                )

        class_targets = None
        raw_targets = self._load(ASSET_CLASS_TARGETS_KEY)
        if raw_targets is not None:
            try:
                class_targets = _class_targets_adapter.validate_json(raw_targets)
            except ValidationError as e:
                logger.warning(
                    "stored_class_targets_invalid",
                    extra={"key": ASSET_CLASS_TARGETS_KEY, "error_count": e.error_count()},
                )

        return assets, class_targets

    def clear_asset_allocation(self) -> None:
        self._backend.delete(ASSET_ALLOCATION_KEY)
        self._backend.delete(ASSET_CLASS_TARGETS_KEY)

    # --- FIRE calculator inputs ---

    def save_fire_inputs(self, inputs: CalculatorInputs) -> None:
        self._save(FIRE_CALCULATOR_INPUTS_KEY, inputs.model_dump_json())
        logger.info("fire_inputs_saved")

    def load_fire_inputs(self) -> Optional[CalculatorInputs]:
        raw = self._load(FIRE_CALCULATOR_INPUTS_KEY)
        if raw is None:
            return None
        try:
            return CalculatorInputs.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "stored_fire_inputs_invalid",
                extra={"key": FIRE_CALCULATOR_INPUTS_KEY, "error_count": e.error_count()},
            )
            return None

    def clear_fire_inputs(self) -> None:
        self._backend.delete(FIRE_CALCULATOR_INPUTS_KEY)

    def clear_all_data(self) -> None:
        """Remove every persisted entry."""
        self.clear_asset_allocation()
        self.clear_fire_inputs()
        logger.info("persisted_data_cleared")
