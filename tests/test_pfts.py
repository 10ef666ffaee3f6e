"""Tests for forte_ed.pfts — PFT catalog selection."""

import pytest

from forte_ed.errors import InvalidArgument
from forte_ed.pfts import PFT_CATALOGS, select_pft_list
from forte_ed.types import PftEntry


class TestSelectPftList:
    @pytest.mark.parametrize("selector", ["umbs", "UMBS", "Umbs", "standard", "STANDARD"])
    def test_four_entries_fixed_codes(self, selector):
        pfts = select_pft_list(selector)
        assert len(pfts) == 4
        assert [p.ed2_pft_number for p in pfts] == [9, 10, 11, 6]

    def test_umbs_names(self):
        names = [p.name for p in select_pft_list("umbs")]
        assert names == [
            "umbs.early_hardwood",
            "umbs.mid_hardwood",
            "umbs.late_hardwood",
            "umbs.northern_pine",
        ]

    def test_standard_names(self):
        names = [p.name for p in select_pft_list("standard")]
        assert names == [
            "temperate.Early_Hardwood",
            "temperate.North_Mid_Hardwood",
            "temperate.Late_Hardwood",
            "temperate.Northern_Pine",
        ]

    def test_catalogs_differ_only_in_names(self):
        umbs = select_pft_list("umbs")
        standard = select_pft_list("standard")
        assert [p.ed2_pft_number for p in umbs] == [p.ed2_pft_number for p in standard]
        assert all(a.name != b.name for a, b in zip(umbs, standard))

    def test_returns_copy(self):
        pfts = select_pft_list("umbs")
        pfts.pop()
        assert len(PFT_CATALOGS['umbs']) == 4

    @pytest.mark.parametrize("bad", ["temperate", "", "boreal"])
    def test_unknown_selector(self, bad):
        with pytest.raises(InvalidArgument, match="pft_type"):
            select_pft_list(bad)

    def test_entry_to_dict(self):
        assert PftEntry("umbs.northern_pine", 6).to_dict() == {
            'name': "umbs.northern_pine", 'ed2_pft_number': 6,
        }
