import pytest

from painel.services.allocations import (
    AllocationTemplate,
    ALLOCATION_TEMPLATES,
    DEFAULT_DISTRIBUTION,
    DEFAULT_TEMPLATE,
    DISTRIBUTION_TABLES,
    _checked,
    get_allocation_template,
    get_distribution,
)
from painel.services.domain import ProfileType


@pytest.mark.parametrize("profile_type", list(ProfileType))
def test_every_profile_has_template_summing_to_100(profile_type):
    template = ALLOCATION_TEMPLATES[profile_type]
    total = template.conservative_pct + template.moderate_pct + template.aggressive_pct
    assert total == 100


@pytest.mark.parametrize("profile_type", list(ProfileType))
def test_distribution_tables_sum_to_100(profile_type):
    assert sum(DISTRIBUTION_TABLES[profile_type]) == pytest.approx(100.0)


def test_template_values():
    moderate = get_allocation_template(ProfileType.MODERATE)
    assert (moderate.conservative_pct, moderate.moderate_pct, moderate.aggressive_pct) == (40, 45, 15)
    aggressive = get_allocation_template(ProfileType.AGGRESSIVE)
    assert aggressive.aggressive_pct == 50


def test_unknown_profile_falls_back_to_full_conservative():
    assert get_allocation_template(None) is DEFAULT_TEMPLATE
    assert DEFAULT_TEMPLATE.conservative_pct == 100
    assert get_distribution(None) == DEFAULT_DISTRIBUTION


def test_checked_rejects_templates_not_summing_to_100():
    with pytest.raises(ValueError):
        _checked(AllocationTemplate(50, 30, 10, "invalido"))


def test_as_dict_rounds_suggested_amount():
    payload = get_allocation_template(ProfileType.CONSERVATIVE).as_dict(1234.567)
    assert payload["suggested_amount"] == 1234.57
    assert payload["conservative_percentage"] == 70
