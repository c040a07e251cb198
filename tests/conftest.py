"""
Shared pytest fixtures for the hydrochemistry diagram test suite.

Provides:
- Common water analysis fixtures (mg/L)
- Test markers registration
- Piper and Stiff input fixtures
"""
import pytest
from typing import Dict, Any, List


# =============================================================================
# Pytest Markers Registration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks unit tests (fast, no plotting libraries)")
    config.addinivalue_line("markers", "piper: marks Piper diagram tests")
    config.addinivalue_line("markers", "stiff: marks Stiff diagram tests")
    config.addinivalue_line("markers", "rendering: marks tests that import matplotlib or plotly")


# =============================================================================
# Water Analysis Fixtures
# =============================================================================

@pytest.fixture
def saline_well_water() -> Dict[str, float]:
    """Sodium chloride dominated well water.

    Reference analysis with known equivalents:
    Ca ~3.044, Mg ~3.538, Na ~20.66, K ~0.0256 mEq/L.
    """
    return {'Ca': 61, 'Mg': 43, 'Na': 475, 'K': 1, 'Cl': 740, 'SO4': 10, 'CO3': 0.6, 'HCO3': 386}


@pytest.fixture
def fresh_well_water() -> Dict[str, float]:
    """Dilute bicarbonate water from the same well field."""
    return {'Ca': 14, 'Mg': 6.9, 'Na': 25, 'K': 4, 'Cl': 26, 'SO4': 4.6, 'CO3': 0.4, 'HCO3': 106}


@pytest.fixture
def hard_groundwater() -> Dict[str, float]:
    """Calcium bicarbonate groundwater, close to charge balance."""
    return {'Ca': 120, 'Mg': 30, 'Na': 20, 'K': 3, 'Cl': 35, 'SO4': 60, 'CO3': 0, 'HCO3': 420}


@pytest.fixture
def seawater() -> Dict[str, float]:
    """Standard seawater major ions."""
    return {'Ca': 412, 'Mg': 1290, 'Na': 10770, 'K': 399, 'Cl': 19350, 'SO4': 2710, 'CO3': 0, 'HCO3': 142}


# =============================================================================
# Diagram Input Fixtures
# =============================================================================

@pytest.fixture
def grouped_piper_input(saline_well_water, fresh_well_water, hard_groundwater) -> Dict[str, Any]:
    """Two named groups: one well with two samples, one with a single sample."""
    return {
        "container_id": "piper-test",
        "groups": [
            {"name": "Well 123456", "values": [saline_well_water, fresh_well_water]},
            {"name": "Spring 7", "values": [hard_groundwater]},
        ],
    }


@pytest.fixture
def stiff_ion_groups() -> List[List[str]]:
    """Conventional three-row Stiff layout."""
    return [['Na', 'K'], ['Ca'], ['Mg'], ['Cl'], ['HCO3', 'CO3'], ['SO4']]
