"""
Tests for mg/L -> mEq/L conversion and concentration record validation.
"""
import math

import numpy as np
import pytest

from hydrodiagrams.exceptions import InvalidConcentrationError, UnknownIonError
from hydrodiagrams.ions import ION_SYMBOLS, get_ion
from hydrodiagrams.unit_conversions import (
    calculate_charge_balance,
    meq_to_mg,
    record_to_equivalents,
    sum_equivalents,
    to_equivalents,
    validate_record,
)

pytestmark = pytest.mark.unit


class TestToEquivalents:
    """Single-ion conversion."""

    def test_calcium(self):
        # Ca: MW=40.078, valence=2, so equiv_weight=20.039
        assert to_equivalents('Ca', 61) == pytest.approx(61 / 20.039)

    def test_accepts_ion_object(self):
        assert to_equivalents(get_ion('Na'), 475) == pytest.approx(475 / 22.98976928)

    def test_anion_uses_absolute_valence(self):
        assert to_equivalents('SO4', 96.062) == pytest.approx(2.0)
        assert to_equivalents('SO4', 10) > 0

    def test_zero_is_zero(self):
        assert to_equivalents('K', 0) == 0.0

    @pytest.mark.parametrize("symbol", ION_SYMBOLS)
    @pytest.mark.parametrize("mg_l", [0.0, 0.6, 61.0, 19350.0])
    def test_linear_in_concentration(self, symbol, mg_l):
        assert to_equivalents(symbol, 2 * mg_l) == pytest.approx(2 * to_equivalents(symbol, mg_l))

    def test_negative_concentration_rejected(self):
        with pytest.raises(InvalidConcentrationError) as exc_info:
            to_equivalents('Mg', -1.0)
        assert exc_info.value.symbol == 'Mg'
        assert "must not be negative" in str(exc_info.value)

    def test_nan_rejected(self):
        with pytest.raises(InvalidConcentrationError):
            to_equivalents('Mg', math.nan)

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidConcentrationError):
            to_equivalents('Mg', "43")

    def test_numpy_scalars_accepted(self):
        assert to_equivalents('Ca', np.float64(61.0)) == pytest.approx(to_equivalents('Ca', 61))
        assert to_equivalents('Ca', np.int64(61)) == pytest.approx(to_equivalents('Ca', 61))

    def test_unknown_ion(self):
        with pytest.raises(UnknownIonError):
            to_equivalents('NO3', 5)

    def test_round_trip_through_meq(self):
        assert meq_to_mg('HCO3', to_equivalents('HCO3', 386)) == pytest.approx(386)


class TestRecords:
    """Whole-record validation and conversion."""

    def test_reference_record_equivalents(self, saline_well_water):
        meq = record_to_equivalents(saline_well_water)
        assert meq['Ca'] == pytest.approx(3.044, abs=1e-3)
        assert meq['Mg'] == pytest.approx(3.538, abs=1e-3)
        assert meq['Na'] + meq['K'] == pytest.approx(20.69, abs=0.01)

    def test_subset_of_symbols(self, saline_well_water):
        meq = record_to_equivalents(saline_well_water, symbols=['Cl', 'SO4'])
        assert set(meq) == {'Cl', 'SO4'}

    def test_sum_equivalents(self, saline_well_water):
        meq = record_to_equivalents(saline_well_water)
        assert sum_equivalents(meq, ['Na', 'K']) == pytest.approx(meq['Na'] + meq['K'])

    def test_missing_required_symbol(self, saline_well_water):
        del saline_well_water['HCO3']
        with pytest.raises(InvalidConcentrationError) as exc_info:
            validate_record(saline_well_water, required=ION_SYMBOLS)
        assert exc_info.value.symbol == 'HCO3'
        assert "no concentration supplied" in str(exc_info.value)

    def test_unknown_key_rejected(self, saline_well_water):
        saline_well_water['NO3'] = 12.0
        with pytest.raises(UnknownIonError) as exc_info:
            validate_record(saline_well_water)
        assert exc_info.value.symbol == 'NO3'

    def test_values_become_floats(self):
        cleaned = validate_record({'Ca': 61, 'Mg': 43})
        assert cleaned == {'Ca': 61.0, 'Mg': 43.0}
        assert all(isinstance(v, float) for v in cleaned.values())


class TestChargeBalance:
    """Charge balance error percentage."""

    def test_balanced(self):
        assert calculate_charge_balance(5.0, 5.0) == 0.0

    def test_imbalance_percent(self):
        assert calculate_charge_balance(6.0, 4.0) == pytest.approx(20.0)

    def test_both_zero(self):
        assert calculate_charge_balance(0.0, 0.0) == 0.0
