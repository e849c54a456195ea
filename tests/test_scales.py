import pytest
from premiacao.bonus.scales import (
    ALL_SCALES, ANNUAL_EBITDA_SCALE, MONTHLY_SCALE_MANAGER, MONTHLY_SCALE_TEAM,
    QUARTERLY_SCALE_MANAGER, QUARTERLY_SCALE_TEAM, PrizeBracket, KPIType, EmployeeRole,
    annual_ebitda_multiplier, bracket_map, resolve_scale, validate_scale,
)

@pytest.mark.parametrize("name", sorted(ALL_SCALES))
def test_every_scale_is_total_and_monotonic(name):
    scale = ALL_SCALES[name]
    validate_scale(scale, name)
    assert len(scale) == 31
    assert scale[0].attaining == 90 and scale[-1].attaining == 120

def test_manager_monthly_and_quarterly_endpoints():
    m = bracket_map(MONTHLY_SCALE_MANAGER)
    assert m[90] == 5.0 and m[100] == 10.0 and m[120] == 20.0
    q = bracket_map(QUARTERLY_SCALE_MANAGER)
    assert q[90] == 10.0 and q[120] == 40.0

def test_team_tables():
    assert bracket_map(MONTHLY_SCALE_TEAM)[100] == 5.0
    q = bracket_map(QUARTERLY_SCALE_TEAM)
    assert q[90] == 2.1 and q[100] == 8.3 and q[120] == 16.7

def test_annual_multiplier_segments():
    assert annual_ebitda_multiplier(90) == pytest.approx(0.25)
    assert annual_ebitda_multiplier(94) == pytest.approx(0.45)
    assert annual_ebitda_multiplier(95) == pytest.approx(0.50)
    assert annual_ebitda_multiplier(100) == pytest.approx(1.00)
    assert annual_ebitda_multiplier(120) == pytest.approx(2.00)
    assert bracket_map(ANNUAL_EBITDA_SCALE)[100] == pytest.approx(100 / 12)

def test_brackets_are_immutable():
    with pytest.raises(Exception):
        MONTHLY_SCALE_MANAGER[0].base_percentage = 99

def test_validate_scale_rejects_bad_tables():
    good = list(MONTHLY_SCALE_MANAGER)
    with pytest.raises(ValueError):
        validate_scale(tuple(good[:-1]))
    with pytest.raises(ValueError):
        validate_scale(tuple(reversed(good)))
    decreasing = good[:10] + [PrizeBracket(100, 1.0)] + good[11:]
    with pytest.raises(ValueError):
        validate_scale(tuple(decreasing))
    negative = [PrizeBracket(90, -1.0)] + good[1:]
    with pytest.raises(ValueError):
        validate_scale(tuple(negative))

def test_resolve_scale_strategies():
    assert resolve_scale(KPIType.MONTHLY_BSC, EmployeeRole.TEAM, "derived") == (MONTHLY_SCALE_MANAGER, 2.0)
    assert resolve_scale(KPIType.MONTHLY_MAT, EmployeeRole.TEAM, "table") == (MONTHLY_SCALE_TEAM, 1.0)
    assert resolve_scale(KPIType.QUARTERLY_GERENCIAL, EmployeeRole.TEAM, "table") == (QUARTERLY_SCALE_TEAM, 1.0)
    assert resolve_scale(KPIType.ANNUAL_EBITDA, EmployeeRole.TEAM, "derived") == (ANNUAL_EBITDA_SCALE, 1.0)
    with pytest.raises(ValueError):
        resolve_scale(KPIType.MONTHLY_BSC, EmployeeRole.TEAM, "half")

def test_role_labels():
    assert EmployeeRole.from_label("Gerente Regional") == EmployeeRole.MANAGER
    assert EmployeeRole.from_label("manager") == EmployeeRole.MANAGER
    assert EmployeeRole.from_label("Analista") == EmployeeRole.TEAM
    assert EmployeeRole.from_label(None) == EmployeeRole.TEAM
    assert KPIType.coerce("MONTHLY_BSC") is KPIType.MONTHLY_BSC
    assert KPIType.coerce("QUARTERLY_SPECIAL") is None
