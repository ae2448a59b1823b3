"""Running-average cost tracking persisted to a JSON file."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

COST_DATA_VERSION = "1.0"


def _now() -> str:
    return datetime.now(UTC).isoformat()


class ModelCostData(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    average_cost: float
    min_cost: float
    max_cost: float
    sample_count: int
    last_updated: str = Field(default_factory=_now)
    parameters: dict[str, Any] | None = None


class CostDatabase(BaseModel):
    version: str = COST_DATA_VERSION
    models: dict[str, ModelCostData] = Field(default_factory=dict)
    last_updated: str = Field(default_factory=_now)


class CostTracker:
    """Tracks observed credit usage per model.

    Each ``record_cost`` updates the model's running average, min, max and
    sample count in memory and writes the whole database back to disk. Disk
    failures are logged and never propagate to the caller.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._data = self._load()

    def _load(self) -> CostDatabase:
        if self.path is None or not self.path.exists():
            return CostDatabase()
        try:
            return CostDatabase.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Failed to load cost data from {self.path}: {e}")
            return CostDatabase()

    def save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._data.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save cost data to {self.path}: {e}")

    def record_cost(
        self,
        model_id: str,
        credits_used: float,
        parameters: dict[str, Any] | None = None,
    ) -> ModelCostData:
        """Fold one observed cost into the model's running statistics."""
        existing = self._data.models.get(model_id)
        if existing is None:
            updated = ModelCostData(
                model_id=model_id,
                average_cost=credits_used,
                min_cost=credits_used,
                max_cost=credits_used,
                sample_count=1,
                parameters=parameters,
            )
        else:
            count = existing.sample_count + 1
            updated = ModelCostData(
                model_id=model_id,
                average_cost=(existing.average_cost * existing.sample_count + credits_used) / count,
                min_cost=min(existing.min_cost, credits_used),
                max_cost=max(existing.max_cost, credits_used),
                sample_count=count,
                parameters=parameters or existing.parameters,
            )

        self._data.models[model_id] = updated
        self._data.last_updated = _now()
        logger.debug(f"Cost recorded for {model_id}: {credits_used} (avg {updated.average_cost:.4f})")
        self.save()
        return updated

    def get_estimated_cost(self, model_id: str) -> float | None:
        data = self._data.models.get(model_id)
        if data is not None and data.sample_count > 0:
            return data.average_cost
        return None

    def get_cost_info(self, model_id: str) -> ModelCostData | None:
        return self._data.models.get(model_id)

    def get_all_costs(self) -> dict[str, ModelCostData]:
        return dict(self._data.models)

    def clear_model_data(self, model_id: str) -> None:
        if self._data.models.pop(model_id, None) is not None:
            self.save()

    def export_data(self) -> CostDatabase:
        return self._data.model_copy(deep=True)

    def import_data(self, data: CostDatabase) -> None:
        """Merge another database, keeping whichever side has more samples."""
        for model_id, incoming in data.models.items():
            existing = self._data.models.get(model_id)
            if existing is None or incoming.sample_count > existing.sample_count:
                self._data.models[model_id] = incoming
        self.save()
