"""In-memory index over the model catalog."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError

from .models import CATALOG, ModelCategory, ModelDescriptor


@dataclass(frozen=True)
class ParameterValidation:
    """Outcome of validating mapped parameters against a model schema."""

    ok: bool
    data: dict[str, Any] | None = None
    error: str | None = None


def format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors as 'field: message, ...'."""
    parts = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "(root)"
        parts.append(f"{field}: {err['msg']}")
    return ", ".join(parts)


class ModelRegistry:
    """Read-only lookup over a fixed set of model descriptors.

    Built once at startup; the capability table (parameter names per model)
    is computed here so handlers never introspect schemas at call time.
    """

    def __init__(self, models: Iterable[ModelDescriptor] = CATALOG):
        self._models: dict[str, ModelDescriptor] = {}
        self._by_category: dict[ModelCategory, list[str]] = {cat: [] for cat in ModelCategory}
        self._capabilities: dict[str, frozenset[str]] = {}

        for model in models:
            self._models[model.id] = model
            self._by_category[model.category].append(model.id)
            self._capabilities[model.id] = model.parameter_names

        logger.debug(
            "Model registry initialized",
            total_models=len(self._models),
            categories={str(cat): len(ids) for cat, ids in self._by_category.items()},
        )

    def get_model(self, model_id: str) -> ModelDescriptor | None:
        return self._models.get(model_id)

    def get_models_by_category(self, category: ModelCategory | str) -> list[ModelDescriptor]:
        try:
            category = ModelCategory(category)
        except ValueError:
            return []
        return [self._models[model_id] for model_id in self._by_category[category]]

    def get_all_models(self) -> list[ModelDescriptor]:
        return list(self._models.values())

    def get_categories(self) -> list[ModelCategory]:
        return list(ModelCategory)

    def search_models(self, query: str) -> list[ModelDescriptor]:
        """Case-insensitive match on id, name and description."""
        needle = query.lower()
        return [
            model
            for model in self._models.values()
            if needle in model.id.lower()
            or needle in model.name.lower()
            or needle in model.description.lower()
        ]

    def capabilities(self, model_id: str) -> frozenset[str]:
        return self._capabilities.get(model_id, frozenset())

    def supports(self, model_id: str, parameter: str) -> bool:
        """Whether a model's schema declares the given parameter."""
        return parameter in self._capabilities.get(model_id, frozenset())

    def validate_parameters(self, model_id: str, params: dict[str, Any]) -> ParameterValidation:
        """Validate mapped parameters against the model's declared schema.

        Returns:
            ParameterValidation with the cleaned payload (None values and
            undeclared keys dropped) or an error naming the offending fields
        """
        model = self.get_model(model_id)
        if model is None:
            return ParameterValidation(ok=False, error="Model not found")

        try:
            validated = model.parameter_schema.model_validate(params)
        except ValidationError as e:
            return ParameterValidation(ok=False, error=format_validation_error(e))
        return ParameterValidation(ok=True, data=validated.model_dump(exclude_none=True))
