"""SQLAlchemy table definitions for esgdash."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)

# Use naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

ESG_TYPES = ("environmental", "social", "governance")
SUBMISSION_STATUSES = ("draft", "pending", "approved", "rejected")

# Metric columns of each detail table, in display order
ENVIRONMENTAL_COLUMNS = (
    # Energy
    "total_electricity",
    "renewable_ppa",
    "renewable_rooftop",
    "i_recs",
    "coal_consumption",
    "hsd_consumption",
    "furnace_oil_consumption",
    "petrol_consumption",
    # Carbon (tCO2e)
    "electricity_emissions",
    "coal_emissions",
    "hsd_emissions",
    "furnace_oil_emissions",
    "petrol_emissions",
    "total_emissions",
    # Air
    "nox",
    "sox",
    "pm",
    "voc",
    "hap",
    "pop",
    # Water
    "water_withdrawal",
    "third_party_water",
    "rainwater",
    "recycled_wastewater",
    "water_discharged",
    "wastewater_generated",
    # Waste
    "total_hazardous",
    "hazardous_landfill",
    "hazardous_incinerated",
    "hazardous_coprocessed",
    "non_hazardous",
    "plastic_waste",
    "e_waste",
    "bio_medical",
    "waste_oil",
    "total_waste",
    # Fugitive (kg)
    "r22_refrigerant",
    "r32_refrigerant",
    "r410_refrigerant",
    "r134a_refrigerant",
    "r514a_refrigerant",
    "co2_refilled",
)

SOCIAL_COLUMNS = (
    "total_employees",
    "male_employees",
    "female_employees",
    "contract_male",
    "contract_female",
    "new_hires",
    "attrition",
    "injuries_employees",
    "injuries_workers",
    "fatalities_employees",
    "fatalities_workers",
    "reportable_employees",
    "reportable_workers",
    "manhours_employees",
    "manhours_workers",
    "ehs_training",
    "gmp_training",
    "other_training",
    "performance_reviews",
    "pf_coverage",
    "esi_coverage",
    "health_insurance",
    "accident_insurance",
    "gratuity_coverage",
    "parental_benefits",
    "median_male_salary",
    "median_female_salary",
    "female_wages_percentage",
    "workplace_complaints",
    "consumer_complaints",
)

GOVERNANCE_COLUMNS = (
    "board_members",
    "women_percentage",
    "board_under30",
    "board_30to50",
    "board_above50",
    "exp_under5",
    "exp_5to10",
    "exp_above10",
    "legal_fines",
    "corruption_incidents",
    "cybersecurity_incidents",
)

DETAIL_COLUMNS = {
    "environmental": ENVIRONMENTAL_COLUMNS,
    "social": SOCIAL_COLUMNS,
    "governance": GOVERNANCE_COLUMNS,
}

# Schema version tracking
schema_version = Table(
    "schema_version",
    metadata,
    Column("version", Integer, primary_key=True),
    Column("applied_at", DateTime, server_default=func.now()),
)

# Reporting sites
sites = Table(
    "sites",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(200), nullable=False),
    Column("location", String(200)),
    Column("type", String(100)),
    Column("created_at", DateTime, server_default=func.now()),
)

# Parameter categories
categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(200), nullable=False),
    Column("type", String(20), nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
    CheckConstraint(
        "type IN ('environmental', 'social', 'governance')",
        name="category_type_check",
    ),
)

# Parameter definitions
parameters = Table(
    "parameters",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(200), nullable=False),
    Column("unit", String(50)),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
)

Index("idx_parameters_category", parameters.c.category_id)

# Submission headers
esg_submissions = Table(
    "esg_submissions",
    metadata,
    Column("id", Integer, primary_key=True),
    # Deleting a site keeps its submissions (site_id becomes NULL)
    Column(
        "site_id",
        Integer,
        ForeignKey("sites.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("period_start", String(10), nullable=False),  # YYYY-MM-DD
    Column("period_end", String(10), nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("submitted_by", String(200), nullable=False),
    Column("reviewer", String(200)),
    Column("review_comment", Text),
    Column("submitted_at", DateTime, server_default=func.now()),
    Column("reviewed_at", DateTime),
    Column("updated_at", DateTime, server_default=func.now()),
    CheckConstraint(
        "status IN ('draft', 'pending', 'approved', 'rejected')",
        name="submission_status_check",
    ),
)

Index("idx_submissions_status", esg_submissions.c.status)
Index("idx_submissions_site", esg_submissions.c.site_id)


def _detail_table(name: str, columns: tuple[str, ...]) -> Table:
    """Build a detail table: one row per submission, one Float per metric."""
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True),
        Column(
            "submission_id",
            Integer,
            ForeignKey("esg_submissions.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        *(Column(col, Float, server_default="0") for col in columns),
        Column("created_at", DateTime, server_default=func.now()),
        Column("updated_at", DateTime, server_default=func.now()),
    )


environmental_data = _detail_table("environmental_data", ENVIRONMENTAL_COLUMNS)
social_data = _detail_table("social_data", SOCIAL_COLUMNS)
governance_data = _detail_table("governance_data", GOVERNANCE_COLUMNS)

DETAIL_TABLES = {
    "environmental": environmental_data,
    "social": social_data,
    "governance": governance_data,
}

# Emission factors by year
emission_factors = Table(
    "emission_factors",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("category", String(100), nullable=False),
    Column("item", String(200), nullable=False),
    Column("unit_of_measure", String(50), nullable=False),
    Column("factor_2023", Float, nullable=False, server_default="0"),
    Column("factor_2024", Float, nullable=False, server_default="0"),
    Column("factor_2025", Float, nullable=False, server_default="0"),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
)

# User directory
users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("email", String(254), nullable=False),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("created_at", DateTime, server_default=func.now()),
    Column("last_login", DateTime),
    CheckConstraint(
        "role IN ('admin', 'approver', 'user')",
        name="user_role_check",
    ),
    CheckConstraint(
        "status IN ('active', 'inactive')",
        name="user_status_check",
    ),
)

SCHEMA_VERSION = 1
