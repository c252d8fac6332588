from restwell.db.base import Base
from restwell.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "user_profiles",
        "timelines",
        "engine_runs",
        "rituals",
        "evening_plans",
        "daily_sleep_checkins",
    }

    assert expected.issubset(table_names)


def test_ritual_unique_key_matches_upsert_columns() -> None:
    rituals = Base.metadata.tables["rituals"]
    unique = [c for c in rituals.constraints if c.name == "uq_rituals_user_category_block_name"]

    assert len(unique) == 1
    assert [col.name for col in unique[0].columns] == ["user_id", "category", "time_block", "name"]


def test_plans_and_checkins_are_one_per_user_and_date() -> None:
    for table_name, constraint_name in [
        ("evening_plans", "uq_evening_plans_user_date"),
        ("daily_sleep_checkins", "uq_daily_sleep_checkins_user_date"),
    ]:
        table = Base.metadata.tables[table_name]
        unique = [c for c in table.constraints if c.name == constraint_name]

        assert len(unique) == 1
        assert [col.name for col in unique[0].columns] == ["user_id", "date"]
