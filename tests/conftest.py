"""
Shooting Pulse - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- Sample raw, cleaned and model tables
"""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

BOROUGHS = ["BRONX", "BROOKLYN", "MANHATTAN", "QUEENS", "STATEN ISLAND"]

RAW_COLUMNS = [
    "INCIDENT_KEY",
    "OCCUR_DATE",
    "OCCUR_TIME",
    "BORO",
    "LOC_OF_OCCUR_DESC",
    "PRECINCT",
    "JURISDICTION_CODE",
    "LOC_CLASSFCTN_DESC",
    "LOCATION_DESC",
    "STATISTICAL_MURDER_FLAG",
    "PERP_AGE_GROUP",
    "PERP_SEX",
    "PERP_RACE",
    "VIC_AGE_GROUP",
    "VIC_SEX",
    "VIC_RACE",
    "X_COORD_CD",
    "Y_COORD_CD",
    "Latitude",
    "Longitude",
    "Lon_Lat",
]

LOCATIONS = ["MULTI DWELL - PUBLIC HOUS", "GROCERY/BODEGA", "BAR/NIGHT CLUB"]
AGE_GROUPS = ["<18", "18-24", "25-44", "45-64", "65+"]


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get the configs directory."""
    return project_root / "configs"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clear_config_cache() -> Generator[None, None, None]:
    """Drop cached configs so environment overrides never leak between tests."""
    from shooting_pulse.shared.config import get_config

    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def test_config() -> Any:
    """Get test configuration."""
    from shooting_pulse.shared.config import reload_config

    return reload_config("dev")


@pytest.fixture
def fast_config(test_config: Any, tmp_path: Path) -> Any:
    """Dev config with a small forest and all output under tmp_path."""
    return test_config.model_copy(
        update={
            "model": test_config.model.model_copy(update={"n_estimators": 10}),
            "reporting": test_config.reporting.model_copy(
                update={
                    "output_dir": str(tmp_path / "reports"),
                    "statistics_dir": str(tmp_path / "statistics"),
                    "plots_enabled": False,
                }
            ),
        }
    )


# =============================================================================
# Sample Data Fixtures
# =============================================================================


def _raw_row(i: int) -> dict[str, str]:
    return {
        "INCIDENT_KEY": str(200000000 + i),
        "OCCUR_DATE": f"{i % 12 + 1:02d}/{i % 28 + 1:02d}/{2006 + i % 17}",
        "OCCUR_TIME": f"{i % 24:02d}:{(i * 7) % 60:02d}:00",
        "BORO": BOROUGHS[i % 5],
        "LOC_OF_OCCUR_DESC": "OUTSIDE",
        "PRECINCT": str(40 + i % 80),
        "JURISDICTION_CODE": "0",
        "LOC_CLASSFCTN_DESC": "STREET",
        "LOCATION_DESC": LOCATIONS[i % 3],
        "STATISTICAL_MURDER_FLAG": "true" if i % 4 == 0 else "false",
        "PERP_AGE_GROUP": "18-24",
        "PERP_SEX": "M" if i % 2 == 0 else "F",
        "PERP_RACE": "BLACK",
        "VIC_AGE_GROUP": AGE_GROUPS[(i // 5) % 5],
        "VIC_SEX": "M" if (i // 2) % 2 == 0 else "F",
        "VIC_RACE": "WHITE HISPANIC",
        "X_COORD_CD": "1006343",
        "Y_COORD_CD": "234270",
        "Latitude": "40.80",
        "Longitude": "-73.92",
        "Lon_Lat": "POINT (-73.92 40.80)",
    }


@pytest.fixture
def make_raw_shooting_df() -> Callable[[int], pd.DataFrame]:
    """Factory for raw export tables: every cell is text, all 21 source columns."""

    def _make(n: int = 200) -> pd.DataFrame:
        return pd.DataFrame([_raw_row(i) for i in range(n)], columns=RAW_COLUMNS)

    return _make


@pytest.fixture
def sample_clean_df() -> pd.DataFrame:
    """Cleaned shooting table as the preprocessor produces it."""
    return pd.DataFrame(
        {
            "incident_key": pd.array([101, 102, 103, 104, 105, 106], dtype="Int64"),
            "occur_date": pd.to_datetime(
                ["2021-01-05", "2021-01-20", "2021-07-04", "2022-07-04", "2022-12-31", "2022-12-31"]
            ),
            "occur_time": pd.to_timedelta(
                ["00:15:00", "13:45:00", "23:59:59", "13:00:00", "02:30:00", "02:31:00"]
            ),
            "boro": ["BRONX", "BROOKLYN", "BROOKLYN", "QUEENS", "BRONX", "BROOKLYN"],
            "loc_of_occur_desc": ["OUTSIDE"] * 6,
            "precinct": pd.array([40, 75, 73, 103, 44, 67], dtype="Int64"),
            "jurisdiction_code": pd.array([0, 0, 2, 0, 0, 1], dtype="Int64"),
            "loc_classfctn_desc": ["STREET"] * 6,
            "location_desc": LOCATIONS * 2,
            "statistical_murder_flag": [True, False, False, True, False, False],
            "perp_age_group": ["18-24", "25-44", "", "18-24", "<18", "25-44"],
            "perp_sex": ["M", "M", "", "F", "M", "M"],
            "perp_race": ["BLACK"] * 6,
            "vic_age_group": ["18-24", "25-44", "<18", "45-64", "18-24", "25-44"],
            "vic_sex": ["M", "F", "M", "M", "F", "M"],
            "vic_race": ["BLACK"] * 6,
        }
    )


@pytest.fixture
def sample_model_df() -> pd.DataFrame:
    """Model table of 100 rows: 50 BROOKLYN, 30 BRONX, 20 QUEENS."""
    boro = ["BROOKLYN"] * 50 + ["BRONX"] * 30 + ["QUEENS"] * 20
    n = len(boro)
    return pd.DataFrame(
        {
            "boro": pd.Categorical(boro, categories=BOROUGHS),
            "vic_sex": pd.Categorical(
                ["M" if i % 3 else "F" for i in range(n)], categories=["F", "M"]
            ),
            "vic_age_group": pd.Categorical(
                [AGE_GROUPS[i % 5] for i in range(n)], categories=sorted(AGE_GROUPS)
            ),
            "perp_sex": pd.Categorical(
                ["M" if i % 4 else "F" for i in range(n)], categories=["F", "M"]
            ),
            "location_desc": pd.Categorical(
                [LOCATIONS[i % 3] for i in range(n)], categories=sorted(LOCATIONS)
            ),
            "occur_date": pd.to_datetime("2010-01-01") + pd.to_timedelta(
                [i * 37 for i in range(n)], unit="D"
            ),
            "occur_time": pd.to_timedelta([(i * 977) % 86400 for i in range(n)], unit="s"),
        }
    )


@pytest.fixture
def model_vocabulary() -> dict[str, list[str]]:
    """Frozen vocabulary matching sample_model_df."""
    return {
        "boro": list(BOROUGHS),
        "vic_sex": ["F", "M"],
        "vic_age_group": sorted(AGE_GROUPS),
        "perp_sex": ["F", "M"],
        "location_desc": sorted(LOCATIONS),
    }
