"""Parameter catalog: admin-defined categories and metrics.

The catalog is what shapes the submission form. ``build_structure``
groups every parameter under its category's name, nested under the
category's ESG type:

    {
        "environmental": {
            "Energy": CategoryGroup(category_id=1, parameters=[...]),
        },
        "social": {},
        "governance": {},
    }

A parameter's normalized name doubles as its detail-table column. That
contract is implicit, so the column checks here exist to surface
mismatches before a submission fails on insert.
"""

from dataclasses import dataclass, field

from . import audit
from .db.repository import Category, Database, Parameter
from .db.tables import DETAIL_COLUMNS, ESG_TYPES
from .errors import CatalogConfigError, ValidationError
from .logging import get_logger
from .mapper import normalize_parameter_name

logger = get_logger(__name__)


@dataclass
class CategoryGroup:
    """Parameters belonging to one category."""

    category_id: int
    parameters: list[Parameter] = field(default_factory=list)


@dataclass
class UnmappedParameter:
    """A parameter whose normalized name is not a detail-table column."""

    esg_type: str
    category: str
    parameter_id: int
    name: str
    column: str


def parameter_count(structure: dict) -> int:
    """Total number of parameters across all categories."""
    return sum(
        len(group.parameters)
        for groups in structure.values()
        for group in groups.values()
    )


def is_loaded(structure: dict) -> bool:
    """A structure counts as loaded once it holds at least one parameter."""
    return parameter_count(structure) > 0


def unmapped_parameters(structure: dict) -> list[UnmappedParameter]:
    """List parameters that would be rejected by their detail table."""
    result = []
    for esg_type, groups in structure.items():
        columns = DETAIL_COLUMNS.get(esg_type, ())
        for category_name, group in groups.items():
            for parameter in group.parameters:
                column = normalize_parameter_name(parameter.name)
                if column not in columns:
                    result.append(
                        UnmappedParameter(
                            esg_type=esg_type,
                            category=category_name,
                            parameter_id=parameter.id,
                            name=parameter.name,
                            column=column,
                        )
                    )
    return result


def duplicate_names(structure: dict) -> dict[tuple[str, str], list[int]]:
    """Normalized names used by more than one parameter of the same ESG type.

    Returns:
        Mapping of (esg_type, column) to the colliding parameter IDs, in
        the order the mapper visits them (the last one wins there).
    """
    seen: dict[tuple[str, str], list[int]] = {}
    for esg_type, groups in structure.items():
        for group in groups.values():
            for parameter in group.parameters:
                key = (esg_type, normalize_parameter_name(parameter.name))
                seen.setdefault(key, []).append(parameter.id)
    return {key: ids for key, ids in seen.items() if len(ids) > 1}


def validate_structure(structure: dict) -> None:
    """Raise CatalogConfigError if any parameter cannot be stored cleanly."""
    unmapped = unmapped_parameters(structure)
    duplicates = duplicate_names(structure)
    if not unmapped and not duplicates:
        return

    problems = []
    if unmapped:
        names = ", ".join(f"{u.esg_type}:{u.name}" for u in unmapped)
        problems.append(f"{len(unmapped)} parameter(s) match no column ({names})")
    if duplicates:
        names = ", ".join(f"{t}:{c}" for t, c in duplicates)
        problems.append(f"{len(duplicates)} duplicate column name(s) ({names})")
    raise CatalogConfigError("; ".join(problems), unmapped=unmapped, duplicates=duplicates)


class ParameterCatalog:
    """Read and administer categories and parameters."""

    def __init__(self, db: Database, strict_columns: bool = False):
        self.db = db
        self.strict_columns = strict_columns

    def list_categories(self, type: str | None = None) -> list[Category]:
        return self.db.list_categories(type)

    def list_parameters(self, category_id: int | None = None) -> list[Parameter]:
        return self.db.list_parameters(category_id)

    def build_structure(self) -> dict[str, dict[str, CategoryGroup]]:
        """Group all parameters by ESG type and category name.

        All three ESG types are always present. Categories without
        parameters appear with an empty list. If two categories of one type
        share a name, the one listed last replaces the other.
        """
        try:
            category_list = self.db.list_categories()
            parameter_list = self.db.list_parameters()
        except Exception:
            logger.exception("Error fetching ESG parameter structure")
            raise

        structure: dict[str, dict[str, CategoryGroup]] = {t: {} for t in ESG_TYPES}
        for category in category_list:
            structure.setdefault(category.type, {})[category.name] = CategoryGroup(
                category_id=category.id,
                parameters=[p for p in parameter_list if p.category_id == category.id],
            )

        logger.debug(
            "ESG parameter structure loaded",
            environmental=len(structure["environmental"]),
            social=len(structure["social"]),
            governance=len(structure["governance"]),
            parameters=parameter_count(structure),
        )
        return structure

    # Administration

    def _check_category_input(self, name: str, type: str) -> None:
        if not name or not name.strip():
            raise ValidationError("Category name is required")
        if type not in ESG_TYPES:
            raise ValidationError(
                f"Invalid category type '{type}' (expected one of {', '.join(ESG_TYPES)})"
            )

    def _check_parameter_input(self, name: str, category_id: int) -> Category:
        if not name or not name.strip():
            raise ValidationError("Parameter name is required")
        category = self.db.get_category(category_id)
        if category is None:
            raise ValidationError(f"Category {category_id} does not exist")
        if self.strict_columns:
            column = normalize_parameter_name(name)
            if column not in DETAIL_COLUMNS[category.type]:
                raise CatalogConfigError(
                    f"Parameter '{name}' maps to '{column}', which is not a "
                    f"{category.type} data column"
                )
        return category

    def create_category(self, name: str, type: str, user: str | None = None) -> Category:
        self._check_category_input(name, type)
        category = self.db.create_category(name.strip(), type)
        audit.log_catalog_change("category", "created", category.id, category.name, user)
        return category

    def update_category(
        self, category_id: int, name: str, type: str, user: str | None = None
    ) -> Category | None:
        self._check_category_input(name, type)
        category = self.db.update_category(category_id, name.strip(), type)
        if category:
            audit.log_catalog_change("category", "updated", category.id, category.name, user)
        return category

    def delete_category(self, category_id: int, user: str | None = None) -> bool:
        category = self.db.get_category(category_id)
        deleted = self.db.delete_category(category_id)
        if deleted and category:
            audit.log_catalog_change("category", "deleted", category_id, category.name, user)
        return deleted

    def create_parameter(
        self,
        name: str,
        unit: str | None,
        category_id: int,
        user: str | None = None,
    ) -> Parameter:
        self._check_parameter_input(name, category_id)
        parameter = self.db.create_parameter(name.strip(), unit or None, category_id)
        audit.log_catalog_change("parameter", "created", parameter.id, parameter.name, user)
        return parameter

    def update_parameter(
        self,
        parameter_id: int,
        name: str,
        unit: str | None,
        category_id: int,
        user: str | None = None,
    ) -> Parameter | None:
        self._check_parameter_input(name, category_id)
        parameter = self.db.update_parameter(parameter_id, name.strip(), unit or None, category_id)
        if parameter:
            audit.log_catalog_change("parameter", "updated", parameter.id, parameter.name, user)
        return parameter

    def delete_parameter(self, parameter_id: int, user: str | None = None) -> bool:
        parameter = self.db.get_parameter(parameter_id)
        deleted = self.db.delete_parameter(parameter_id)
        if deleted and parameter:
            audit.log_catalog_change("parameter", "deleted", parameter_id, parameter.name, user)
        return deleted
